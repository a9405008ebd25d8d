"""Concurrent workers never claim the same job twice."""

import threading

from common.constants import JOB_STATUS_PROCESSING
from controller.repositories.job_repository import JobRepository


def test_parallel_claims_are_exclusive(test_db):
    job_count = 10
    worker_count = 4
    for i in range(job_count):
        JobRepository.create_job("alice", f"file{i}.bin", f"/tmp/file{i}.bin")

    barrier = threading.Barrier(worker_count)
    claims = {f"w{n}": [] for n in range(worker_count)}
    errors = []

    def claim_all(worker_id):
        barrier.wait()
        try:
            while True:
                job = JobRepository.claim_next(worker_id, 60)
                if job is None:
                    return
                claims[worker_id].append(job.job_id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=claim_all, args=(w,)) for w in claims]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    claimed = [job_id for ids in claims.values() for job_id in ids]
    assert len(claimed) == job_count
    assert len(set(claimed)) == job_count

    for worker_id, ids in claims.items():
        for job_id in ids:
            job = JobRepository.get_by_id(job_id)
            assert job.status == JOB_STATUS_PROCESSING
            assert job.worker_id == worker_id


def test_try_claim_race_has_one_winner(test_db):
    job = JobRepository.create_job("alice", "race.bin", "/tmp/race.bin")
    barrier = threading.Barrier(5)
    results = []
    lock = threading.Lock()

    def contend(worker_id):
        barrier.wait()
        won = JobRepository.try_claim(job.job_id, worker_id, 60)
        with lock:
            results.append(won)

    threads = [threading.Thread(target=contend, args=(f"w{n}",)) for n in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert results.count(True) == 1
    assert results.count(False) == 4
