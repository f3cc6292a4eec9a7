"""Tests for CID parsing, binary decoding and text encoding."""

import hashlib

import pytest

from archive.cid import (
    DAG_CBOR,
    DAG_PB,
    RAW,
    ContentIdentifier,
    b58decode,
    b58encode,
)
from common.exceptions import InvalidIdentifierError

EMPTY_RAW_CID = "bafkreihdwdcefgh4dqkjv67uzcmw7ojee6xedzdetojuzjevtenxquvyku"


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def cid_v0(digest: bytes) -> ContentIdentifier:
    """CIDv0 is the bare sha2-256 multihash of a dag-pb node."""
    return ContentIdentifier(bytes([0x12, 0x20]) + digest)


class TestBase58:

    def test_leading_zero_bytes_become_ones(self):
        assert b58encode(b"\x00\x00\x01") == "112"
        assert b58decode("112") == b"\x00\x00\x01"

    def test_roundtrip_digest(self):
        data = bytes([0x12, 0x20]) + sha256(b"hello")
        assert b58decode(b58encode(data)) == data

    def test_invalid_character(self):
        with pytest.raises(ValueError):
            b58decode("0OIl")


class TestContentIdentifierText:

    def test_empty_raw_block_cid(self):
        cid = ContentIdentifier.create(RAW, sha256(b""))
        assert str(cid) == EMPTY_RAW_CID
        assert ContentIdentifier.parse(EMPTY_RAW_CID) == cid

    @pytest.mark.parametrize("codec, prefix", [
        (RAW, "bafkrei"),
        (DAG_CBOR, "bafyrei"),
        (DAG_PB, "bafybei"),
    ])
    def test_v1_base32_prefixes(self, codec, prefix):
        cid = ContentIdentifier.create(codec, sha256(b"payload"))
        assert str(cid).startswith(prefix)
        assert cid.version == 1
        assert cid.codec == codec

    def test_v0_is_base58_qm(self):
        cid = cid_v0(sha256(b"payload"))
        text = str(cid)
        assert text.startswith("Qm")
        assert len(text) == 46
        assert cid.version == 0
        assert cid.codec == DAG_PB
        assert ContentIdentifier.parse(text) == cid

    def test_other_multibase_forms_compare_equal(self):
        cid = ContentIdentifier.create(RAW, sha256(b"payload"))
        forms = [
            str(cid),
            str(cid).upper(),
            "z" + b58encode(cid.raw),
            "f" + cid.raw.hex(),
            "F" + cid.raw.hex().upper(),
        ]
        for text in forms:
            assert ContentIdentifier.parse(text) == cid
            assert hash(ContentIdentifier.parse(text)) == hash(cid)

    def test_surrounding_whitespace_ignored(self):
        cid = ContentIdentifier.create(RAW, sha256(b"x"))
        assert ContentIdentifier.parse(f"  {cid}\n") == cid

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "xyz",
        "bafy",
        "f0155",
        "Qm" + "0" * 44,
        "f" + "02551220" + "00" * 32,
    ])
    def test_invalid_text(self, text):
        with pytest.raises(InvalidIdentifierError):
            ContentIdentifier.parse(text)

    def test_trailing_bytes_rejected(self):
        cid = ContentIdentifier.create(RAW, sha256(b"x"))
        with pytest.raises(InvalidIdentifierError):
            ContentIdentifier.parse("f" + cid.raw.hex() + "00")

    def test_not_equal_to_string(self):
        cid = ContentIdentifier.create(RAW, sha256(b"x"))
        assert cid != str(cid)


class TestContentIdentifierDecode:

    def test_decode_v1_prefix_of_section(self):
        cid = ContentIdentifier.create(RAW, sha256(b"data"))
        decoded, end = ContentIdentifier.decode(cid.raw + b"data")
        assert decoded == cid
        assert end == len(cid.raw)

    def test_decode_v0_prefix_of_section(self):
        cid = cid_v0(sha256(b"data"))
        decoded, end = ContentIdentifier.decode(cid.raw + b"data")
        assert decoded == cid
        assert end == 34

    def test_truncated_v0(self):
        with pytest.raises(ValueError):
            ContentIdentifier.decode(bytes([0x12, 0x20]) + b"\x00" * 10)

    def test_truncated_digest(self):
        cid = ContentIdentifier.create(RAW, sha256(b"data"))
        with pytest.raises(ValueError):
            ContentIdentifier.decode(cid.raw[:-1])

    def test_unsupported_version(self):
        with pytest.raises(ValueError):
            ContentIdentifier.decode(b"\x02\x55\x12\x20" + b"\x00" * 32)
