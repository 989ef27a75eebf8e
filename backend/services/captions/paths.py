"""Deterministic cache paths for rendered subtitle files."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from shared.enums import SubtitleFormat
from shared.file_utils import sanitize_filename


def resolve_path(
    base_dir: str | os.PathLike[str],
    filename: str,
    languages: Sequence[str],
    fmt: SubtitleFormat,
) -> Path:
    """Return ``<base_dir>/static/<fmt>/<filename>.<lang>[.<lang>].<fmt>``.

    Languages are joined in the order given, so ``("en", "fr")`` and
    ``("fr", "en")`` are different cache entries.
    """
    if not languages:
        raise ValueError("at least one language is required")
    name = ".".join([sanitize_filename(filename), *languages]) + fmt.suffix
    return Path(base_dir) / fmt.directory / name
