"""Tests for master file retrieval and reassembly."""

import pytest

from common.types import ChunkRecord
from controller.account_pool import AccountPool
from controller.chunk_cipher import encrypt_chunk, generate_key
from controller.database import get_db_connection
from controller.exceptions import DecryptionError, NotFound, PartialDataError
from controller.repositories.chunk_repository import ChunkRepository
from controller.services.retrieval_service import RetrievalService
from controller.utils import generate_uuid

HOLDERS = {"A": "cred-a", "B": "cred-b", "C": "cred-c"}


def store_file(backend, name, pieces, holders=("A", "B", "C"), skip=()):
    """Encrypt, upload and register pieces the way the worker does."""
    master_uuid = generate_uuid()
    for seq, piece in enumerate(pieces, start=1):
        account_id = holders[(seq - 1) % len(holders)]
        ciphertext, key_hex, iv_hex = encrypt_chunk(piece)
        object_id = backend.put(HOLDERS.get(account_id, account_id), f"{master_uuid}_{seq}.enc", ciphertext)
        if seq in skip:
            continue
        ChunkRepository.register(ChunkRecord(
            chunk_id=generate_uuid(),
            master_file_uuid=master_uuid,
            master_file_name=name,
            sequence_number=seq,
            holder_account_id=account_id,
            backend_object_id=object_id,
            size_bytes=len(piece),
            encryption_key=key_hex,
            encryption_iv=iv_hex,
        ))
    return master_uuid


def test_retrieve_reassembles_in_order(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "notes.txt", [b"first ", b"second ", b"third"])

    retrieved = RetrievalService(account_pool).retrieve(master_uuid)

    assert retrieved.file_name == "notes.txt"
    assert retrieved.content_type == "text/plain"
    assert retrieved.size == len(b"first second third")
    assert retrieved.read() == b"first second third"
    retrieved.close()


def test_iter_content_streams_and_closes(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "photo.png", [b"a" * 100, b"b" * 50])

    retrieved = RetrievalService(account_pool).retrieve(master_uuid)
    pieces = list(retrieved.iter_content(piece_size=64))

    assert retrieved.content_type == "image/png"
    assert [len(p) for p in pieces] == [64, 64, 22]
    assert b"".join(pieces) == b"a" * 100 + b"b" * 50
    assert retrieved.spool.closed


def test_unknown_content_type(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "blob", [b"\x00\x01"])
    assert RetrievalService(account_pool).retrieve(master_uuid).content_type == "application/octet-stream"


def test_unknown_master_file(account_pool):
    with pytest.raises(NotFound):
        RetrievalService(account_pool).retrieve("no-such-uuid")


def test_sequence_gap_fails_before_fetching(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "gap.bin", [b"1", b"2", b"3"], skip=(2,))

    with pytest.raises(PartialDataError, match="expected 2"):
        RetrievalService(account_pool).retrieve(master_uuid)
    assert fake_backend.get_calls == 0


def test_missing_backend_object(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "lost.bin", [b"1", b"2", b"3"])
    lost = ChunkRepository.list_by_master(master_uuid)[1]
    del fake_backend.objects[("cred-b", lost.backend_object_id)]

    with pytest.raises(PartialDataError) as exc_info:
        RetrievalService(account_pool).retrieve(master_uuid)

    assert exc_info.value.sequence_number == 2
    assert exc_info.value.master_file_uuid == master_uuid


def test_wrong_key_is_partial_data(account_pool, fake_backend, test_db):
    master_uuid = store_file(fake_backend, "bad.bin", [b"payload"])
    with get_db_connection() as conn:
        conn.execute(
            "UPDATE chunk_registry SET encryption_key = ? WHERE master_file_uuid = ?",
            (generate_key().hex(), master_uuid)
        )
        conn.commit()

    with pytest.raises(PartialDataError) as exc_info:
        RetrievalService(account_pool).retrieve(master_uuid)

    assert isinstance(exc_info.value.__cause__, DecryptionError)


def test_unregistered_holder_is_partial_data(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "orphan.bin", [b"x"], holders=("retired",))

    with pytest.raises(PartialDataError) as exc_info:
        RetrievalService(account_pool).retrieve(master_uuid)

    assert isinstance(exc_info.value.__cause__, NotFound)


def test_rejected_credential_is_partial_data(accounts, make_backend):
    backend = make_backend()
    master_uuid = store_file(backend, "locked.bin", [b"x", b"y"])
    backend.rejected.add("cred-b")

    with pytest.raises(PartialDataError) as exc_info:
        RetrievalService(AccountPool(backend)).retrieve(master_uuid)

    assert exc_info.value.sequence_number == 2


def test_retrieve_bytes(account_pool, fake_backend):
    master_uuid = store_file(fake_backend, "small.txt", [b"hello"])
    assert RetrievalService(account_pool).retrieve_bytes(master_uuid) == b"hello"
