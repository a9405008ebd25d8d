"""Utility functions for CLI operations."""

import re
import sys
from typing import Optional
from urllib.parse import unquote

from cli.constants import GREEN, RESET

_FILENAME_STAR = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME_PLAIN = re.compile(r'filename="([^"]*)"', re.IGNORECASE)


class ProgressFileWrapper:
    """File-like wrapper that displays upload progress to stdout."""

    def __init__(self, file_path: str, file_size: int, filename: str):
        """
        Args:
            file_path: Path to the file to read
            file_size: Total size of the file in bytes
            filename: Display name for the file
        """
        self.file_path = file_path
        self.file_size = file_size
        self.filename = filename
        self._file = open(file_path, 'rb')
        self._uploaded = 0
        self._finished = False

    def read(self, size: int = -1) -> bytes:
        piece = self._file.read(size if size > 0 else 8192)
        if piece:
            self._uploaded += len(piece)
            write_progress("Uploading", self.filename, self._uploaded, self.file_size)
        elif not self._finished:
            self._finished = True
            sys.stdout.write('\n')
            sys.stdout.flush()
        return piece

    def close(self) -> None:
        if self._file:
            self._file.close()

    def __enter__(self) -> 'ProgressFileWrapper':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def write_progress(verb: str, label: str, done: int, total: int) -> None:
    """Redraw a single progress line."""
    if total > 0:
        progress = (done / total) * 100
        sys.stdout.write(
            f"\r{verb} {label}: {format_file_size(done)} / {format_file_size(total)} ({GREEN}{progress:.1f}%{RESET})"
        )
    else:
        sys.stdout.write(f"\r{verb} {label}: {format_file_size(done)}")
    sys.stdout.flush()


def clear_progress_line() -> None:
    sys.stdout.write('\r' + ' ' * 100 + '\r')
    sys.stdout.flush()


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the file name from a Content-Disposition header.

    Prefers the RFC 5987 filename* form over the plain ASCII fallback.
    """
    if not header:
        return None
    match = _FILENAME_STAR.search(header)
    if match:
        return unquote(match.group(1))
    match = _FILENAME_PLAIN.search(header)
    if match:
        return match.group(1)
    return None


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
