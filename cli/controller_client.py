"""HTTP client for communicating with Controller service."""

import os
import sys
import time
import uuid
from pathlib import Path
from typing import Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.utils import (
    ProgressFileWrapper,
    clear_progress_line,
    filename_from_disposition,
    format_file_size,
    write_progress,
)

logger = get_logger(__name__)


class ControllerClient:
    """HTTP client for Controller API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize controller client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized ControllerClient [base_url={config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = 30.0
        size_mb = file_size / (1024 * 1024)
        return base_timeout + size_mb * 0.1

    def _resolve_download_path(self, output_path: Optional[str], filename: str) -> Path:
        """
        Pick the output file: an explicit path (a directory receives the
        server's file name) or the configured download directory.
        """
        if output_path:
            output_file = Path(output_path).expanduser()
            if output_file.is_dir():
                output_file = output_file / filename
        else:
            output_file = self.config.get_download_dir() / filename

        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        if 'headers' not in kwargs:
            kwargs['headers'] = {}
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(
            f"Making request: {method} {endpoint} [request_id={self.request_id}]"
        )

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to controller server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        if not isinstance(detail, str):
            detail = str(detail)

        error_messages = {
            'NOT_FOUND': 'Not found on server.',
            'SOURCE_NOT_FOUND': 'The uploaded source file is missing on the server.',
            'PARTIAL_DATA': 'File is incomplete: one or more chunks could not be retrieved. Nothing was written.',
            'DECRYPTION_FAILED': 'A chunk failed to decrypt. The stored key material does not match.',
            'BACKEND_AUTH_FAILED': 'A storage account could not authenticate. Check its credentials.',
            'BACKEND_IO_FAILED': 'A storage account failed to read or write an object.',
            'QUOTA_EXCEEDED': 'A storage account is out of quota.',
            'CONFIGURATION_ERROR': 'No usable storage accounts are configured on the server.',
            'REGISTRY_INTEGRITY': 'Chunk registry is inconsistent for this file.',
        }

        if code in error_messages:
            return f"{error_messages[code]} ({detail})"

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            413: 'File too large',
            422: 'Invalid request',
            500: 'Server error',
            502: 'Storage backend error',
            503: 'Service unavailable',
            507: 'Insufficient storage',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def submit(self, file_path: str, owner_id: Optional[str] = None) -> str:
        """
        Upload a file and queue it for distribution.

        Args:
            file_path: Local path of the file to upload
            owner_id: Owner to record (defaults to the configured owner)

        Returns:
            Result message with the new job id
        """
        path = Path(file_path).expanduser()
        if not path.exists():
            return f"Error: File not found: {file_path}"
        if not path.is_file():
            return f"Error: Not a file: {file_path}"

        owner = owner_id or self.config.get_owner_id()
        file_size = os.path.getsize(path)
        upload_timeout = self._calculate_upload_timeout(file_size)

        logger.info(f"Submitting {path.name} ({file_size} bytes) owner={owner}")
        try:
            with ProgressFileWrapper(str(path), file_size, path.name) as wrapper:
                response = self.session.post(
                    '/jobs',
                    files={'file': (path.name, wrapper)},
                    data={'owner_id': owner},
                    headers={'X-Request-ID': str(uuid.uuid4())},
                    timeout=upload_timeout,
                )

            if response.status_code == 202:
                result = response.json()
                return (
                    f"Queued: {result['master_file_name']} "
                    f"(Job ID: {result['job_id']}, Size: {format_file_size(result['size_bytes'])})\n"
                    f"Track it with: status {result['job_id']}"
                )
            return f"Error submitting {file_path}: {self._format_error(response)}"

        except httpx.ConnectError:
            clear_progress_line()
            return f"Error submitting {file_path}: Cannot connect to controller server"
        except httpx.TimeoutException:
            clear_progress_line()
            return (
                f"Error submitting {file_path}: Upload timed out "
                f"(file size: {format_file_size(file_size)}, timeout: {upload_timeout:.1f}s)"
            )
        except OSError as e:
            clear_progress_line()
            return f"Error reading {file_path}: {e}"

    def list_jobs(self, scope: str = "active") -> str:
        """
        List jobs in the distribution queue.

        Args:
            scope: "active" or "all"

        Returns:
            Formatted job table
        """
        try:
            response = self._request_with_retry('GET', '/jobs', params={'scope': scope})
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        jobs = response.json()['jobs']
        if not jobs:
            return "No active jobs." if scope == "active" else "No jobs recorded."

        output = [f"{len(jobs)} job(s):\n"]
        for job in jobs:
            line = (
                f"  #{job['job_id']:<5} {job['status']:<13} {job['master_file_name']} "
                f"({format_file_size(job['size_bytes'])}, owner {job['owner_id']}, retries {job['retry_count']})"
            )
            if job.get('error_message'):
                line += f"\n         error: {job['error_message']}"
            output.append(line)
        return '\n'.join(output)

    def job_status(self, job_id: int) -> str:
        """
        Show one job's status and progress.

        Returns:
            Formatted status block
        """
        try:
            response = self._request_with_retry('GET', f'/jobs/{job_id}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        job = data['job']
        lines = [
            f"Job {job['job_id']}: {job['master_file_name']}",
            f"  Status:   {job['status']}",
            f"  Progress: {data['progress_percent']}% ({job['chunks_done']}/{job['chunks_total']} chunks)",
            f"  Elapsed:  {data['elapsed_seconds']}s",
        ]
        if job.get('master_file_uuid'):
            lines.append(f"  File ID:  {job['master_file_uuid']}")
        if job.get('error_message'):
            lines.append(f"  Error:    {job['error_message']}")
        return '\n'.join(lines)

    def control(self, action: str, job_id: int) -> str:
        """
        Send an admin control action for a job.

        Args:
            action: retry, cancel or delete_history
            job_id: Target job

        Returns:
            Server's status message
        """
        try:
            response = self._request_with_retry(
                'POST',
                f'/jobs/{job_id}/control',
                json={'action': action}
            )
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        prefix = "OK" if data['success'] else "No change"
        return f"{prefix}: {data['message']}"

    def list_files(self) -> str:
        """
        List retrievable master files.

        Returns:
            Formatted list of files
        """
        try:
            response = self._request_with_retry('GET', '/files')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        files = response.json()['files']
        if not files:
            return "No files stored."

        output = [f"Found {len(files)} file(s):\n"]
        for file_meta in files:
            output.append(
                f"  - {file_meta['master_file_name']}\n"
                f"    ID: {file_meta['master_file_uuid']}\n"
                f"    Size: {format_file_size(file_meta['total_size'])} in {file_meta['chunk_count']} chunk(s)"
            )
        return '\n'.join(output)

    def list_chunks(self, master_file_uuid: str) -> str:
        """
        Show a master file's chunk placement.
        """
        try:
            response = self._request_with_retry('GET', f'/files/{master_file_uuid}/chunks')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        output = [f"{data['master_file_name']} ({len(data['chunks'])} chunk(s)):"]
        for chunk in data['chunks']:
            output.append(
                f"  {chunk['sequence_number']:>4}  {chunk['holder_account_id']:<20} "
                f"{format_file_size(chunk['size_bytes']):>12}  {chunk['backend_object_id']}"
            )
        return '\n'.join(output)

    def delete_file(self, master_file_uuid: str) -> str:
        """
        Delete a master file's chunks everywhere.
        """
        try:
            response = self._request_with_retry('DELETE', f'/files/{master_file_uuid}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        message = (
            f"Deleted {data['records_deleted']} chunk record(s); "
            f"{data['objects_deleted']} object(s) removed from storage"
        )
        if data['objects_failed']:
            message += f", {data['objects_failed']} could not be removed"
        if data['job_marked_deleted']:
            message += f"\nJob {data['job_id']} marked FILE_DELETED"
        return message

    def list_accounts(self, refresh: bool = False) -> str:
        """
        List storage accounts with quota snapshots.
        """
        try:
            response = self._request_with_retry(
                'GET', '/accounts', params={'refresh': 'true' if refresh else 'false'}
            )
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        accounts = response.json()['accounts']
        if not accounts:
            return "No storage accounts configured."

        output = [f"{len(accounts)} account(s):"]
        for account in accounts:
            state = "enabled" if account['enabled'] else "disabled"
            if not account['has_credential']:
                state += ", no credential"
            if account['quota_limit'] > 0:
                quota = f"{format_file_size(account['quota_used'])} / {format_file_size(account['quota_limit'])}"
            else:
                quota = f"{format_file_size(account['quota_used'])} used"
            output.append(f"  - {account['account_id']} ({state}): {quota}")
        return '\n'.join(output)

    def upload_media(self, account_id: str, file_path: str) -> str:
        """
        Store a media file as one unencrypted object in an account.

        Args:
            account_id: Account that holds the object
            file_path: Local media file

        Returns:
            Result message with the object id and its /media URL
        """
        path = Path(file_path).expanduser()
        if not path.is_file():
            return f"Error: File not found: {file_path}"

        try:
            content = path.read_bytes()
        except OSError as e:
            return f"Error reading {file_path}: {e}"

        try:
            response = self._request_with_retry(
                'POST',
                '/media',
                files={'file': (path.name, content)},
                headers={'X-Account-ID': account_id},
                timeout=self._calculate_upload_timeout(len(content)),
            )
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 201:
            return f"Error uploading {file_path}: {self._format_error(response)}"

        data = response.json()
        return (
            f"Stored: {data['name']} ({format_file_size(data['size_bytes'])}, {data['content_type']}) "
            f"in account {data['account_id']}\n"
            f"Object ID: {data['object_id']}\n"
            f"URL: {data['url']}"
        )

    def download(self, master_file_uuid: str, output_path: Optional[str] = None) -> str:
        """
        Download a reassembled master file with progress feedback.

        The server only starts responding once every chunk decrypted, so a
        non-200 response means nothing was written locally.

        Args:
            master_file_uuid: Master file to download
            output_path: Optional output file or directory

        Returns:
            Success message with download details
        """
        try:
            url = f'/files/{master_file_uuid}/download'

            with self.session.stream('GET', url, headers={'X-Request-ID': str(uuid.uuid4())}) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                filename = filename_from_disposition(response.headers.get('Content-Disposition')) or master_file_uuid
                output_file = self._resolve_download_path(output_path, filename)
                total_size = int(response.headers.get('Content-Length', 0))
                downloaded = 0

                with open(output_file, 'wb') as f:
                    for piece in response.iter_bytes(chunk_size=8192):
                        f.write(piece)
                        downloaded += len(piece)
                        write_progress("Downloading", filename, downloaded, total_size)

                sys.stdout.write('\n')
                sys.stdout.flush()

                return f"Downloaded: {filename} ({format_file_size(downloaded)})\nSaved to: {output_file.absolute()}"

        except httpx.ConnectError:
            return "Error: Cannot connect to controller server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        except OSError as e:
            return f"Error writing file: {e}"

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
