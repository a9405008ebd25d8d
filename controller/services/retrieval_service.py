"""Retrieval and reassembly of master files from their encrypted chunks."""

import tempfile
from dataclasses import dataclass
from typing import Any, Iterator

from common.constants import STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from controller.account_pool import AccountPool
from controller.chunk_cipher import decrypt_chunk
from controller.exceptions import (
    BackendAuthError,
    BackendIOError,
    DecryptionError,
    NotFound,
    PartialDataError,
    RegistryIntegrityError,
)
from controller.repositories.chunk_repository import ChunkRepository
from controller.utils import guess_content_type

logger = get_logger(__name__)

SPOOL_MEMORY_BYTES = 8 * 1024 * 1024


@dataclass
class RetrievedFile:
    """
    A fully reassembled master file held in a spool.

    The spool is only handed out once every chunk decrypted, so reading it
    never yields a truncated file.
    """
    master_file_uuid: str
    file_name: str
    content_type: str
    size: int
    spool: Any

    def iter_content(self, piece_size: int = STREAM_PIECE_SIZE_BYTES) -> Iterator[bytes]:
        """Yield the file in pieces, closing the spool when exhausted."""
        try:
            self.spool.seek(0)
            while True:
                piece = self.spool.read(piece_size)
                if not piece:
                    break
                yield piece
        finally:
            self.close()

    def read(self) -> bytes:
        self.spool.seek(0)
        return self.spool.read()

    def close(self) -> None:
        self.spool.close()


class RetrievalService:
    def __init__(self, account_pool: AccountPool):
        self.chunk_repo = ChunkRepository()
        self.account_pool = account_pool

    def retrieve(self, master_file_uuid: str) -> RetrievedFile:
        """
        Fetch, decrypt and concatenate every chunk of a master file in order.

        Raises:
            NotFound: If no chunk records exist for the uuid
            PartialDataError: If any chunk is missing, unfetchable or fails to decrypt
        """
        records = self.chunk_repo.list_by_master(master_file_uuid)
        if not records:
            raise NotFound(f"Master file {master_file_uuid} not found")

        try:
            self.chunk_repo.verify_sequence(records)
        except RegistryIntegrityError as e:
            raise PartialDataError(str(e), master_file_uuid=master_file_uuid) from e

        file_name = records[0].master_file_name
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MEMORY_BYTES)
        size = 0

        try:
            for record in records:
                plaintext = self._fetch_plaintext(record)
                spool.write(plaintext)
                size += len(plaintext)
        except Exception:
            spool.close()
            raise

        logger.info(f"Reassembled {file_name} [master_uuid={master_file_uuid}] {len(records)} chunks, {size} bytes")
        return RetrievedFile(
            master_file_uuid=master_file_uuid,
            file_name=file_name,
            content_type=guess_content_type(file_name),
            size=size,
            spool=spool,
        )

    def _fetch_plaintext(self, record) -> bytes:
        try:
            session = self.account_pool.session_for(record.holder_account_id)
            ciphertext = self.account_pool.backend.get(session, record.backend_object_id)
            return decrypt_chunk(ciphertext, record.encryption_key, record.encryption_iv)
        except (NotFound, BackendAuthError, BackendIOError, DecryptionError) as e:
            if isinstance(e, BackendAuthError):
                self.account_pool.invalidate(record.holder_account_id)
            logger.error(
                f"Chunk {record.sequence_number} of {record.master_file_uuid} unavailable "
                f"on account {record.holder_account_id}: {e}"
            )
            raise PartialDataError(
                f"Chunk {record.sequence_number} could not be retrieved: {e}",
                master_file_uuid=record.master_file_uuid,
                sequence_number=record.sequence_number,
            ) from e

    def retrieve_bytes(self, master_file_uuid: str) -> bytes:
        """Convenience wrapper returning the whole file in memory."""
        retrieved = self.retrieve(master_file_uuid)
        try:
            return retrieved.read()
        finally:
            retrieved.close()
