import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import SubtitleFormat

LANGUAGE_CODE_PATTERN = re.compile(r"[A-Za-z0-9-]+")


# Caption pipeline models
class CaptionItem(BaseModel):
    """One timed caption as delivered by the provider (times in milliseconds)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    duration: int = Field(..., ge=0, description="Display duration in milliseconds")
    content: str = Field(..., description="Caption text")
    start_of_paragraph: bool = Field(default=False, alias="startOfParagraph")
    start_time: int = Field(..., ge=0, alias="startTime", description="Start offset in milliseconds")


class SubtitleRequest(BaseModel):
    """One rendering job: a talk, one or two languages and an output format."""

    model_config = ConfigDict(frozen=True)

    talk_id: str = Field(..., min_length=1, description="Provider talk identifier")
    filename: str = Field(..., min_length=1, description="Base filename of the cached file")
    languages: tuple[str, ...] = Field(..., description="One or two language codes, in output order")
    time_lag: float = Field(default=0.0, description="Offset in milliseconds added to every start time")
    format: SubtitleFormat = Field(default=SubtitleFormat.SRT)

    @field_validator("talk_id", mode="before")
    @classmethod
    def _coerce_talk_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @field_validator("languages")
    @classmethod
    def _check_languages(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not 1 <= len(value) <= 2:
            raise ValueError("a subtitle request takes one or two languages")
        if any(not code.strip() for code in value):
            raise ValueError("language codes must not be blank")
        # Codes become part of the cache filename
        if any(not LANGUAGE_CODE_PATTERN.fullmatch(code) for code in value):
            raise ValueError("language codes may only contain letters, digits and hyphens")
        return value

    def for_language(self, language: str) -> "SubtitleRequest":
        """Return the single-language request for one side of a bilingual job."""
        return self.model_copy(update={"languages": (language,)})


# Talk catalogue models
class TalkLanguage(BaseModel):
    code: str
    name: str


class TalkPayload(BaseModel):
    """Talk metadata as parsed from the provider."""

    id: int
    name: str
    slug: str
    filmed: datetime | None = None
    published: datetime | None = None
    description: str | None = None
    image: str | None = None
    languages: list[TalkLanguage] = Field(default_factory=list)
    media_slug: str
    media_pad: float = Field(default=0.0, description="Time lag in milliseconds")


class Talk(TalkPayload):
    """Talk row as returned by the API."""

    model_config = ConfigDict(from_attributes=True)
