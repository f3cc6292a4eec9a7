"""Content identifiers (CIDv0/CIDv1) in binary and multibase text form."""

import base64
from typing import Tuple

from archive.varint import encode_varint, read_varint
from common.exceptions import InvalidIdentifierError

SHA2_256 = 0x12
SHA2_256_LENGTH = 32

DAG_PB = 0x70
RAW = 0x55
DAG_CBOR = 0x71

B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_CIDV0_PREFIX = bytes([SHA2_256, SHA2_256_LENGTH])
_CIDV0_LENGTH = len(_CIDV0_PREFIX) + SHA2_256_LENGTH
_CIDV0_TEXT_LENGTH = 46


def b58encode(data: bytes) -> str:
    zeros = len(data) - len(data.lstrip(b"\0"))
    num = int.from_bytes(data, "big")
    chars = []
    while num:
        num, rem = divmod(num, 58)
        chars.append(B58_ALPHABET[rem])
    return "1" * zeros + "".join(reversed(chars))


def b58decode(text: str) -> bytes:
    num = 0
    for char in text:
        index = B58_ALPHABET.find(char)
        if index < 0:
            raise ValueError(f"invalid base58 character {char!r}")
        num = num * 58 + index
    zeros = len(text) - len(text.lstrip("1"))
    return b"\0" * zeros + num.to_bytes((num.bit_length() + 7) // 8, "big")


def _b32decode(body: str) -> bytes:
    padding = "=" * (-len(body) % 8)
    return base64.b32decode(body.upper() + padding)


class ContentIdentifier:
    """
    A CID held in its binary form.

    Equality and hashing use the binary form, so different text encodings
    of the same CID compare equal.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        self._raw = bytes(raw)

    @classmethod
    def create(cls, codec: int, digest: bytes, hash_code: int = SHA2_256) -> "ContentIdentifier":
        """Build a CIDv1 from a codec and a multihash digest."""
        raw = (
            encode_varint(1)
            + encode_varint(codec)
            + encode_varint(hash_code)
            + encode_varint(len(digest))
            + digest
        )
        return cls(raw)

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> Tuple["ContentIdentifier", int]:
        """
        Decode the self-delimiting binary CID starting at offset.

        Args:
            data: Buffer holding the CID, possibly followed by other bytes
            offset: Position of the first CID byte

        Returns:
            (cid, position just past the CID)

        Raises:
            ValueError: If the bytes are not a CIDv0 or CIDv1, or are cut short
        """
        if data[offset:offset + 2] == _CIDV0_PREFIX:
            end = offset + _CIDV0_LENGTH
            if end > len(data):
                raise ValueError("truncated CIDv0")
            return cls(data[offset:end]), end

        version, pos = read_varint(data, offset)
        if version != 1:
            raise ValueError(f"unsupported CID version {version}")
        _codec, pos = read_varint(data, pos)
        _hash_code, pos = read_varint(data, pos)
        digest_length, pos = read_varint(data, pos)
        end = pos + digest_length
        if end > len(data):
            raise ValueError("truncated multihash digest")
        return cls(data[offset:end]), end

    @classmethod
    def parse(cls, text: str) -> "ContentIdentifier":
        """
        Parse a CID from text: a base58btc CIDv0 ("Qm...") or a multibase
        CIDv1 with base32 ("b"/"B"), base58btc ("z") or base16 ("f"/"F").

        Raises:
            InvalidIdentifierError: If the text is not a well-formed CID
        """
        text = text.strip()
        if not text:
            raise InvalidIdentifierError("Empty CID")

        try:
            if len(text) == _CIDV0_TEXT_LENGTH and text.startswith("Qm"):
                raw = b58decode(text)
            else:
                prefix, body = text[0], text[1:]
                if prefix in ("b", "B"):
                    raw = _b32decode(body)
                elif prefix == "z":
                    raw = b58decode(body)
                elif prefix in ("f", "F"):
                    raw = bytes.fromhex(body)
                else:
                    raise ValueError(f"unsupported multibase prefix {prefix!r}")
            cid, end = cls.decode(raw)
            if end != len(raw):
                raise ValueError("trailing bytes after CID")
        except ValueError as e:
            raise InvalidIdentifierError(f"Invalid CID {text!r}: {e}") from e

        return cid

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def version(self) -> int:
        if len(self._raw) == _CIDV0_LENGTH and self._raw.startswith(_CIDV0_PREFIX):
            return 0
        return 1

    @property
    def codec(self) -> int:
        if self.version == 0:
            return DAG_PB
        codec, _ = read_varint(self._raw, read_varint(self._raw)[1])
        return codec

    def __str__(self) -> str:
        if self.version == 0:
            return b58encode(self._raw)
        return "b" + base64.b32encode(self._raw).decode("ascii").lower().rstrip("=")

    def __repr__(self) -> str:
        return f"ContentIdentifier({str(self)!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContentIdentifier):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)
