"""
File helpers shared by the caption pipeline.
"""

import os
import tempfile
from pathlib import Path


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage."""
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        filename = filename.replace(char, "_")
    return filename


def ensure_directory(path: str) -> None:
    """Ensure directory exists, create if not."""
    Path(path).mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: str | os.PathLike[str], content: str, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` so readers see either the old file or the whole new one.

    The text goes to a temporary file in the destination directory first and is
    moved over the target with ``os.replace``, which is atomic on POSIX and Windows
    as long as both paths live on the same filesystem.
    """
    target = Path(path)
    ensure_directory(str(target.parent))
    fd, temp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as tmp_file:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(temp_path, target)
    finally:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
