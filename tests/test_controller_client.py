"""Unit tests for ControllerClient."""

import json

import httpx
import pytest

from cli.controller_client import ControllerClient

JOB = {
    'job_id': 7,
    'owner_id': 'alice',
    'master_file_name': 'video.mp4',
    'status': 'PROCESSING',
    'created_at': '2025-03-01T12:00:00+00:00',
    'started_at': '2025-03-01T12:00:01+00:00',
    'finished_at': None,
    'error_message': None,
    'retry_count': 0,
    'master_file_uuid': 'uuid-7',
    'chunks_total': 3,
    'chunks_done': 1,
    'size_bytes': 7 * 1024 * 1024,
}


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def mock_transport_success(requests_seen):
    """Mock transport that returns successful responses."""
    def handler(request):
        requests_seen.append(request)
        path = request.url.path

        if path == '/jobs' and request.method == 'POST':
            return httpx.Response(202, json={
                'job_id': 7,
                'master_file_name': 'test.txt',
                'status': 'PENDING',
                'size_bytes': 26,
            })
        elif path == '/jobs' and request.method == 'GET':
            jobs = [JOB, {**JOB, 'job_id': 8, 'status': 'FAILED', 'error_message': 'Cancelled'}]
            return httpx.Response(200, json={'jobs': jobs})
        elif path == '/jobs/7' and request.method == 'GET':
            return httpx.Response(200, json={'job': JOB, 'elapsed_seconds': 12, 'progress_percent': 33})
        elif path == '/jobs/7/control':
            action = json.loads(request.content)['action']
            return httpx.Response(200, json={
                'job_id': 7, 'action': action, 'success': True, 'message': 'Job 7 cancelled'
            })
        elif path == '/files' and request.method == 'GET':
            return httpx.Response(200, json={'files': [{
                'master_file_uuid': 'uuid-7',
                'master_file_name': 'video.mp4',
                'chunk_count': 3,
                'total_size': 7 * 1024 * 1024,
            }]})
        elif path == '/files/uuid-7/chunks':
            return httpx.Response(200, json={
                'master_file_uuid': 'uuid-7',
                'master_file_name': 'video.mp4',
                'chunks': [
                    {'sequence_number': 1, 'holder_account_id': 'A', 'backend_object_id': 'o1',
                     'size_bytes': 3 * 1024 * 1024, 'created_at': None},
                    {'sequence_number': 2, 'holder_account_id': 'B', 'backend_object_id': 'o2',
                     'size_bytes': 3 * 1024 * 1024, 'created_at': None},
                ],
            })
        elif path == '/files/uuid-7' and request.method == 'DELETE':
            return httpx.Response(200, json={
                'master_file_uuid': 'uuid-7',
                'objects_deleted': 3,
                'objects_failed': 0,
                'records_deleted': 3,
                'job_marked_deleted': True,
                'job_id': 7,
            })
        elif path == '/files/uuid-7/download':
            return httpx.Response(200, content=b'reassembled bytes', headers={
                'Content-Disposition': "attachment; filename=\"r?sum?.txt\"; filename*=UTF-8''r%C3%A9sum%C3%A9.txt",
                'Content-Length': '17',
            })
        elif path == '/media' and request.method == 'POST':
            return httpx.Response(201, json={
                'object_id': 'obj-9',
                'account_id': request.headers['X-Account-ID'],
                'name': 'avatar.png',
                'size_bytes': 2048,
                'content_type': 'image/png',
                'url': '/media/obj-9',
            })
        elif path == '/accounts':
            return httpx.Response(200, json={'accounts': [
                {'account_id': 'A', 'label': 'A', 'enabled': True, 'has_credential': True,
                 'quota_used': 1024, 'quota_limit': 2048, 'quota_remaining': 1024, 'quota_checked_at': None},
                {'account_id': 'B', 'label': 'B', 'enabled': False, 'has_credential': False,
                 'quota_used': 0, 'quota_limit': 0, 'quota_remaining': None, 'quota_checked_at': None},
            ]})

        return httpx.Response(404, json={'detail': 'Master file missing not found', 'code': 'NOT_FOUND'})

    return httpx.MockTransport(handler)


@pytest.fixture
def client_with_mock(temp_config, mock_transport_success):
    """Create ControllerClient with mocked HTTP transport."""
    temp_config.data['download_dir'] = str(temp_config.config_path.parent / 'downloads')
    client = ControllerClient(temp_config)
    client.session = httpx.Client(transport=mock_transport_success, base_url='http://test')
    return client


def client_returning(temp_config, status_code, body):
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code, json=body))
    client = ControllerClient(temp_config)
    client.session = httpx.Client(transport=transport, base_url='http://test')
    return client


def test_submit_success(client_with_mock, sample_file, requests_seen):
    result = client_with_mock.submit(str(sample_file), 'alice')

    assert 'Queued: test.txt' in result
    assert 'Job ID: 7' in result
    body = requests_seen[0].content
    assert b'name="owner_id"' in body
    assert b'alice' in body
    assert b'Sample content for testing' in body


def test_submit_uses_configured_owner(client_with_mock, temp_config, sample_file, requests_seen):
    temp_config.data['owner_id'] = 'configured-owner'

    client_with_mock.submit(str(sample_file))

    assert b'configured-owner' in requests_seen[0].content


def test_submit_missing_file(client_with_mock, tmp_path):
    result = client_with_mock.submit(str(tmp_path / 'nope.txt'))
    assert result.startswith('Error: File not found')


def test_submit_directory(client_with_mock, tmp_path):
    assert client_with_mock.submit(str(tmp_path)).startswith('Error: Not a file')


def test_list_jobs(client_with_mock, requests_seen):
    result = client_with_mock.list_jobs('all')

    assert '2 job(s)' in result
    assert '#7' in result
    assert 'error: Cancelled' in result
    assert requests_seen[0].url.params['scope'] == 'all'


@pytest.mark.parametrize('scope,message', [('active', 'No active jobs.'), ('all', 'No jobs recorded.')])
def test_list_jobs_empty(temp_config, scope, message):
    client = client_returning(temp_config, 200, {'jobs': []})
    assert client.list_jobs(scope) == message


def test_job_status(client_with_mock):
    result = client_with_mock.job_status(7)

    assert 'Status:   PROCESSING' in result
    assert 'Progress: 33% (1/3 chunks)' in result
    assert 'File ID:  uuid-7' in result


def test_job_status_not_found(temp_config):
    client = client_returning(temp_config, 404, {'detail': 'Job 9 not found', 'code': 'NOT_FOUND'})
    assert client.job_status(9) == 'Error: Not found on server. (Job 9 not found)'


def test_control(client_with_mock, requests_seen):
    result = client_with_mock.control('cancel', 7)

    assert result == 'OK: Job 7 cancelled'
    assert json.loads(requests_seen[0].content) == {'action': 'cancel'}


def test_control_noop(temp_config):
    client = client_returning(temp_config, 200, {
        'job_id': 7, 'action': 'retry', 'success': False, 'message': 'Job 7 is not FAILED; nothing to retry'
    })
    assert client.control('retry', 7).startswith('No change: Job 7 is not FAILED')


def test_list_files(client_with_mock):
    result = client_with_mock.list_files()

    assert 'Found 1 file(s)' in result
    assert 'video.mp4' in result
    assert 'ID: uuid-7' in result
    assert '7.00 MiB in 3 chunk(s)' in result


def test_list_files_empty(temp_config):
    assert client_returning(temp_config, 200, {'files': []}).list_files() == 'No files stored.'


def test_list_chunks(client_with_mock):
    result = client_with_mock.list_chunks('uuid-7')

    assert result.startswith('video.mp4 (2 chunk(s)):')
    assert 'A' in result and 'o2' in result


def test_delete_file(client_with_mock):
    result = client_with_mock.delete_file('uuid-7')

    assert 'Deleted 3 chunk record(s); 3 object(s) removed from storage' in result
    assert 'Job 7 marked FILE_DELETED' in result


def test_delete_file_not_found(client_with_mock):
    assert client_with_mock.delete_file('missing').startswith('Error: Not found on server.')


def test_list_accounts(client_with_mock, requests_seen):
    result = client_with_mock.list_accounts(refresh=True)

    assert '2 account(s)' in result
    assert 'A (enabled): 1.00 KiB / 2.00 KiB' in result
    assert 'B (disabled, no credential): 0 B used' in result
    assert requests_seen[0].url.params['refresh'] == 'true'


def test_upload_media(client_with_mock, tmp_path, requests_seen):
    image = tmp_path / 'avatar.png'
    image.write_bytes(b'\x89PNG\r\n\x1a\n' + b'\x00' * 2040)

    result = client_with_mock.upload_media('A', str(image))

    assert 'Stored: avatar.png (2.00 KiB, image/png) in account A' in result
    assert 'URL: /media/obj-9' in result
    request = requests_seen[0]
    assert request.headers['X-Account-ID'] == 'A'
    assert b'filename="avatar.png"' in request.content


def test_upload_media_missing_file(client_with_mock, tmp_path, requests_seen):
    result = client_with_mock.upload_media('A', str(tmp_path / 'nope.png'))

    assert result.startswith('Error: File not found')
    assert requests_seen == []


def test_upload_media_too_large(temp_config, tmp_path):
    image = tmp_path / 'huge.png'
    image.write_bytes(b'x')
    client = client_returning(temp_config, 413, {'detail': 'Media files are limited to 1 bytes'})

    result = client.upload_media('A', str(image))

    assert result == f"Error uploading {image}: File too large"


def test_download_uses_server_file_name(client_with_mock, temp_config):
    result = client_with_mock.download('uuid-7')

    saved = temp_config.get_download_dir() / 'résumé.txt'
    assert saved.read_bytes() == b'reassembled bytes'
    assert 'Downloaded: résumé.txt' in result


def test_download_to_explicit_path(client_with_mock, tmp_path):
    target = tmp_path / 'out.bin'

    client_with_mock.download('uuid-7', str(target))

    assert target.read_bytes() == b'reassembled bytes'


def test_download_into_directory(client_with_mock, tmp_path):
    client_with_mock.download('uuid-7', str(tmp_path))
    assert (tmp_path / 'résumé.txt').exists()


def test_download_partial_data_writes_nothing(temp_config, tmp_path):
    client = client_returning(temp_config, 502, {'detail': 'Chunk 2 could not be retrieved', 'code': 'PARTIAL_DATA'})
    target = tmp_path / 'out.bin'

    result = client.download('uuid-7', str(target))

    assert result.startswith('Error: File is incomplete')
    assert not target.exists()


def test_server_error_retries_then_reports(temp_config, monkeypatch):
    monkeypatch.setattr('cli.controller_client.time.sleep', lambda seconds: None)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={'detail': 'No storage account could be authenticated',
                                         'code': 'CONFIGURATION_ERROR'})

    client = ControllerClient(temp_config)
    client.session = httpx.Client(transport=httpx.MockTransport(handler), base_url='http://test')

    result = client.list_files()

    assert len(calls) == 4
    assert result.startswith('Error: No usable storage accounts are configured')


def test_connection_error(temp_config, monkeypatch):
    monkeypatch.setattr('cli.controller_client.time.sleep', lambda seconds: None)

    def handler(request):
        raise httpx.ConnectError('refused', request=request)

    client = ControllerClient(temp_config)
    client.session = httpx.Client(transport=httpx.MockTransport(handler), base_url='http://test')

    assert client.list_jobs() == 'Error: Cannot connect to controller server. Is it running?'


def test_format_error_without_json(temp_config):
    client = ControllerClient(temp_config)
    response = httpx.Response(413, text='too big')
    assert client._format_error(response) == 'File too large'
