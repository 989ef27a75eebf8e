"""Subtitle orchestrator: cache lookup, fetch, render, merge and write."""

from __future__ import annotations

import asyncio
import os
import weakref
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

from services.captions.errors import StorageError
from services.captions.fetcher import CaptionFetcher
from services.captions.merger import merge
from services.captions.paths import resolve_path
from services.captions.renderer import render_plain_text, render_timed
from shared.enums import SubtitleFormat
from shared.file_utils import atomic_write_text
from shared.models import SubtitleRequest
from shared.utils import config, setup_logging

logger = setup_logging("subtitle-orchestrator")


class SubtitleOrchestrator:
    """Produce subtitle files on demand and cache them on disk.

    A file that exists at its resolved path is a cache hit and is never
    refreshed. Misses are fetched from the provider, rendered and written
    atomically; bilingual requests are built from the two single-language
    files, which are cached along the way.
    """

    def __init__(
        self,
        base_dir: str | os.PathLike[str] | None = None,
        fetcher: CaptionFetcher | None = None,
        coalesce: bool | None = None,
    ):
        self.base_dir = Path(base_dir or config.get("subtitle_root"))
        self.fetcher = fetcher or CaptionFetcher()
        if coalesce is None:
            coalesce = config.get_pipeline_value("orchestrator.coalesce_requests", True)
        self.coalesce = bool(coalesce)
        self._locks: weakref.WeakValueDictionary[Path, asyncio.Lock] = weakref.WeakValueDictionary()

    def resolve(self, request: SubtitleRequest) -> Path:
        return resolve_path(self.base_dir, request.filename, request.languages, request.format)

    async def get_subtitle_for(
        self,
        talk_id: str,
        filename: str,
        languages: Sequence[str],
        time_lag: float = 0.0,
        fmt: SubtitleFormat = SubtitleFormat.SRT,
    ) -> Path:
        """Keyword form of :meth:`get_subtitle`."""
        request = SubtitleRequest(
            talk_id=talk_id,
            filename=filename,
            languages=tuple(languages),
            time_lag=time_lag,
            format=fmt,
        )
        return await self.get_subtitle(request)

    async def get_subtitle(self, request: SubtitleRequest) -> Path:
        """Return the path of the rendered file, producing it on a cache miss.

        Raises:
            CaptionError: any fetch, parse or write failure; nothing is written
                at the requested path in that case.
        """
        path = self.resolve(request)
        if path.exists():
            logger.debug(f"Cache hit: {path}")
            return path

        async with self._guard(path):
            if path.exists():
                logger.debug(f"Cache filled by a concurrent request: {path}")
                return path

            logger.info(
                f"Cache miss for talk {request.talk_id} "
                f"[{'.'.join(request.languages)}] as {request.format.value}"
            )
            if len(request.languages) == 1:
                content = await self._render_single(request)
            else:
                content = await self._render_merged(request)
            self._write(path, content, request)
        return path

    @asynccontextmanager
    async def _guard(self, path: Path) -> AsyncIterator[None]:
        """Serialize producers of one cache path when coalescing is enabled."""
        if not self.coalesce:
            yield
            return
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        async with lock:
            yield

    async def _render_single(self, request: SubtitleRequest) -> str:
        language = request.languages[0]
        if request.format is SubtitleFormat.TXT:
            html = await self.fetcher.fetch_transcript_html(request.talk_id, language)
            return render_plain_text(html)
        items = await self.fetcher.fetch(request.talk_id, language)
        return render_timed(items, request.time_lag, request.format)

    async def _render_merged(self, request: SubtitleRequest) -> str:
        first, second = await asyncio.gather(
            *(self.get_subtitle(request.for_language(code)) for code in request.languages)
        )
        lines_a = self._read_lines(first, request)
        lines_b = self._read_lines(second, request)
        merged = merge(lines_a, lines_b)
        logger.info(f"Merged {len(lines_a)} and {len(lines_b)} lines into {len(merged)}")
        return "".join(f"{line}\n" for line in merged)

    @staticmethod
    def _read_lines(path: Path, request: SubtitleRequest) -> list[str]:
        try:
            with open(path, encoding="utf-8", newline="") as stream:
                text = stream.read()
        except OSError as e:
            logger.error(f"Failed to read cached subtitle {path}: {e}")
            raise StorageError(f"cannot read {path}: {e}", talk_id=request.talk_id) from e
        # Only "\n" separates lines; other Unicode line breaks belong to caption text
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    @staticmethod
    def _write(path: Path, content: str, request: SubtitleRequest) -> None:
        try:
            atomic_write_text(path, content)
        except OSError as e:
            logger.error(f"Failed to write subtitle {path}: {e}")
            raise StorageError(f"cannot write {path}: {e}", talk_id=request.talk_id) from e
        logger.info(f"Wrote {path} ({len(content)} chars)")
