"""Tests for master file listing and deletion."""

import pytest

from common.constants import JOB_STATUS_COMPLETE, JOB_STATUS_FILE_DELETED
from controller.exceptions import NotFound
from controller.job_notifier import JobNotifier
from controller.repositories.chunk_repository import ChunkRepository
from controller.repositories.job_repository import JobRepository
from controller.services.file_service import FileService
from worker.distribution_worker import DistributionWorker


def distribute(pool, tmp_path, name, data, chunk_size=4):
    source = tmp_path / name
    source.write_bytes(data)
    job = JobRepository.create_job("alice", name, str(source))
    worker = DistributionWorker(
        pool, worker_id="w", chunk_size=chunk_size, notifier=JobNotifier(), delete_source=False
    )
    worker.run_once()
    return JobRepository.get_by_id(job.job_id)


def test_list_master_files(account_pool, tmp_path):
    job = distribute(account_pool, tmp_path, "report.pdf", b"0123456789")

    files = FileService(account_pool).list_master_files()

    assert len(files) == 1
    assert files[0].master_file_uuid == job.master_file_uuid
    assert files[0].master_file_name == "report.pdf"
    assert files[0].chunk_count == 3
    assert files[0].total_size == 10


def test_list_master_files_empty(test_db, account_pool):
    assert FileService(account_pool).list_master_files() == []


def test_list_chunks(account_pool, tmp_path):
    job = distribute(account_pool, tmp_path, "report.pdf", b"0123456789")

    chunks = FileService(account_pool).list_chunks(job.master_file_uuid)

    assert [c.sequence_number for c in chunks] == [1, 2, 3]
    assert [c.holder_account_id for c in chunks] == ["A", "B", "C"]


def test_list_chunks_unknown(account_pool):
    with pytest.raises(NotFound):
        FileService(account_pool).list_chunks("missing")


def test_delete_cascades(account_pool, fake_backend, tmp_path):
    job = distribute(account_pool, tmp_path, "report.pdf", b"0123456789")
    assert job.status == JOB_STATUS_COMPLETE
    assert len(fake_backend.objects) == 3

    result = FileService(account_pool).delete_master_file(job.master_file_uuid)

    assert result.objects_deleted == 3
    assert result.objects_failed == 0
    assert result.records_deleted == 3
    assert result.job_marked_deleted
    assert result.job_id == job.job_id
    assert fake_backend.objects == {}
    assert ChunkRepository.list_by_master(job.master_file_uuid) == []
    assert FileService(account_pool).list_master_files() == []
    assert JobRepository.get_by_id(job.job_id).status == JOB_STATUS_FILE_DELETED


def test_delete_survives_backend_failures(account_pool, fake_backend, tmp_path):
    job = distribute(account_pool, tmp_path, "report.pdf", b"0123456789")
    fake_backend.fail_deletes = True

    result = FileService(account_pool).delete_master_file(job.master_file_uuid)

    assert result.objects_deleted == 0
    assert result.objects_failed == 3
    assert result.records_deleted == 3
    assert ChunkRepository.list_by_master(job.master_file_uuid) == []


def test_delete_unknown(account_pool):
    with pytest.raises(NotFound):
        FileService(account_pool).delete_master_file("missing")


def test_delete_keeps_other_files(account_pool, fake_backend, tmp_path):
    first = distribute(account_pool, tmp_path, "a.txt", b"aaaa")
    second = distribute(account_pool, tmp_path, "b.txt", b"bbbb")

    FileService(account_pool).delete_master_file(first.master_file_uuid)

    remaining = FileService(account_pool).list_master_files()
    assert [f.master_file_uuid for f in remaining] == [second.master_file_uuid]
    assert len(fake_backend.objects) == 1
    assert JobRepository.get_by_id(second.job_id).status == JOB_STATUS_COMPLETE
