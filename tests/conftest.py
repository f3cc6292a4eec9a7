"""Shared pytest fixtures for all tests."""

import hashlib
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from archive.cid import RAW, ContentIdentifier
from archive.varint import encode_varint
from gateway.config import Settings
from gateway.database import get_db_connection, init_database
from gateway.main import create_app


def _cbor_text(text: str) -> bytes:
    return bytes([0x60 | len(text)]) + text.encode("ascii")


def encode_header(roots) -> bytes:
    """DAG-CBOR {"roots": [...], "version": 1} with tag-42 CID links."""
    out = bytearray([0xA2])
    out += _cbor_text("roots")
    out.append(0x80 | len(roots))
    for cid in roots:
        link = b"\x00" + cid.raw
        out += b"\xd8\x2a" + bytes([0x58, len(link)]) + link
    out += _cbor_text("version") + b"\x01"
    return bytes(out)


def encode_car(blocks, roots=None) -> bytes:
    """
    Encode a CARv1 archive.

    Args:
        blocks: List of (ContentIdentifier, payload) pairs
        roots: Root CIDs for the header (defaults to the first block)
    """
    if roots is None:
        roots = [blocks[0][0]] if blocks else []
    header = encode_header(roots)
    out = bytearray(encode_varint(len(header)) + header)
    for cid, payload in blocks:
        section = cid.raw + payload
        out += encode_varint(len(section)) + section
    return bytes(out)


@pytest.fixture
def make_block():
    """Factory for (cid, payload) pairs addressed by the payload's sha2-256."""
    def _make(payload: bytes, codec: int = RAW):
        return ContentIdentifier.create(codec, hashlib.sha256(payload).digest()), payload
    return _make


@pytest.fixture
def make_car():
    return encode_car


@pytest.fixture
def sample_blocks(make_block):
    return [
        make_block(b"first block payload"),
        make_block(bytes(range(256)) * 20),
        make_block(b"third"),
    ]


@pytest.fixture
def car_file(tmp_path, sample_blocks):
    """
    Write a three-block archive to disk.

    Returns:
        Path to the .car file
    """
    path = tmp_path / "sample.car"
    path.write_bytes(encode_car(sample_blocks))
    return path


@pytest.fixture
def mapping_db(tmp_path):
    """
    Create an empty mapping database.

    Returns:
        Path to the SQLite file
    """
    db_path = tmp_path / "mapping" / "records.db"
    init_database(str(db_path))
    return db_path


@pytest.fixture
def register_archive(mapping_db):
    """Insert archive_records rows the way the sealing pipeline would."""
    def _register(identifier: str, file_path) -> None:
        with get_db_connection(str(mapping_db), read_only=False) as conn:
            conn.execute(
                "INSERT INTO archive_records (identifier, file_path, created_at) VALUES (?, ?, ?)",
                (identifier, str(file_path), datetime.now().isoformat())
            )
            conn.commit()
    return _register


@pytest.fixture
def settings(mapping_db):
    return Settings(database_path=str(mapping_db), stream_buffer_size=1024)


@pytest.fixture
def client(settings):
    """Create FastAPI test client."""
    return TestClient(create_app(settings))
