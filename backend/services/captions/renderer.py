"""Render caption tracks as SRT, WebVTT or plain text."""

from __future__ import annotations

import math
from collections.abc import Iterable
from html.parser import HTMLParser

from shared.enums import SubtitleFormat
from shared.models import CaptionItem

VTT_HEADER = "WEBVTT\n\n"

# Whitespace artifacts of the provider's transcript markup
_DROPPED_FRAGMENTS = frozenset({"\n", "\n\t\t\t\t\t"})
_PARAGRAPH_BREAK = "\n\t\t\t"


def format_timestamp(milliseconds: int, fmt: SubtitleFormat) -> str:
    """Format a millisecond offset as ``HH:MM:SS,mmm`` (SRT) or ``HH:MM:SS.mmm`` (VTT)."""
    seconds, millis = divmod(milliseconds, 1000)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    separator = "," if fmt is SubtitleFormat.SRT else "."
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{separator}{millis:03d}"


def render_timed(items: Iterable[CaptionItem], time_lag: float, fmt: SubtitleFormat) -> str:
    """Render a caption track as numbered SRT or WebVTT cues.

    Every cue starts at ``start_time + floor(time_lag)`` and lasts ``duration``.
    Cues are numbered from 1 in track order; nothing is merged or reordered.
    """
    if not fmt.is_timed:
        raise ValueError(f"{fmt.value} is not a timed subtitle format")

    lag = math.floor(time_lag)
    blocks = [VTT_HEADER] if fmt is SubtitleFormat.VTT else []
    for index, item in enumerate(items, 1):
        start = item.start_time + lag
        end = start + item.duration
        blocks.append(
            f"{index}\n"
            f"{format_timestamp(start, fmt)} --> {format_timestamp(end, fmt)}\n"
            f"{item.content}\n\n"
        )
    return "".join(blocks)


class _ParagraphTextExtractor(HTMLParser):
    """Collect the text nodes found inside ``<p>`` elements."""

    def __init__(self) -> None:
        super().__init__()
        self.fragments: list[str] = []
        self._depth = 0

    def handle_starttag(self, tag, attrs):
        if tag == "p":
            # HTML does not nest paragraphs; a new <p> closes the open one
            self._depth = 1

    def handle_endtag(self, tag):
        if tag == "p":
            self._depth = 0

    def handle_data(self, data):
        if self._depth:
            self.fragments.append(data)


def render_plain_text(html: str) -> str:
    """Turn the provider's HTML transcript page into plain text.

    Only text inside ``<p>`` elements is kept. Pure indentation fragments are
    dropped and the ``"\\n\\t\\t\\t"`` artifact between paragraphs becomes a blank
    line.
    """
    extractor = _ParagraphTextExtractor()
    extractor.feed(html)
    extractor.close()

    cleaned = []
    for fragment in extractor.fragments:
        if fragment in _DROPPED_FRAGMENTS:
            continue
        cleaned.append("\n\n" if fragment == _PARAGRAPH_BREAK else fragment)
    return "".join(cleaned)
