"""
Enums and constants used across the application.
"""

from enum import Enum


class SubtitleFormat(str, Enum):
    """Subtitle file formats served from the cache directories."""

    SRT = "srt"
    VTT = "vtt"
    TXT = "txt"

    @property
    def directory(self) -> str:
        """Cache directory relative to the subtitle root."""
        return f"static/{self.value}"

    @property
    def suffix(self) -> str:
        """File suffix including the leading dot."""
        return f".{self.value}"

    @property
    def is_timed(self) -> bool:
        """Whether the format carries cue timestamps."""
        return self is not SubtitleFormat.TXT

    @property
    def media_type(self) -> str:
        """MIME type used when serving the file."""
        return {
            SubtitleFormat.SRT: "application/x-subrip",
            SubtitleFormat.VTT: "text/vtt",
            SubtitleFormat.TXT: "text/plain",
        }[self]
