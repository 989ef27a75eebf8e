"""Caption fetcher for the content provider's subtitle endpoints."""

from __future__ import annotations

import asyncio
import json

import aiohttp
from pydantic import ValidationError

from services.captions.errors import NetworkError, NotFoundError, ParseError
from shared.http_client import AsyncHTTPClient
from shared.models import CaptionItem
from shared.utils import config, setup_logging

logger = setup_logging("caption-fetcher")


def parse_track(body: str) -> list[CaptionItem]:
    """Parse a provider caption document into an ordered list of caption items.

    The document looks like ``{"captions": [{"duration": .., "content": ..,
    "startOfParagraph": .., "startTime": ..}, ...]}``.

    Raises:
        ParseError: body is not JSON, lacks ``captions`` or an item is malformed
        NotFoundError: the document is valid but holds no captions
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"caption payload is not JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("captions"), list):
        raise ParseError("caption payload has no 'captions' list")

    try:
        items = [CaptionItem.model_validate(raw) for raw in payload["captions"]]
    except ValidationError as e:
        raise ParseError(f"malformed caption item: {e}") from e

    if not items:
        raise NotFoundError("caption payload is empty")
    return items


class CaptionFetcher:
    """Retrieve caption tracks and transcript pages for a talk."""

    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or config.get("provider_base_url")).rstrip("/")
        self.timeout = timeout or config.get("http_timeout", 30)
        user_agent = config.get_pipeline_value("fetcher.user_agent")
        self.headers = {"User-Agent": user_agent} if user_agent else None

    def track_url(self, talk_id: str, language: str) -> str:
        return f"{self.base_url}/talks/subtitles/id/{talk_id}/lang/{language}"

    def transcript_url(self, talk_id: str, language: str) -> str:
        return f"{self.track_url(talk_id, language)}/format/html"

    async def fetch(self, talk_id: str, language: str) -> list[CaptionItem]:
        """Fetch and parse the caption track of one language."""
        body = await self._get_text(self.track_url(talk_id, language), talk_id, language)
        try:
            items = parse_track(body)
        except (ParseError, NotFoundError) as e:
            e.talk_id, e.language = talk_id, language
            logger.warning(f"Caption track {talk_id}/{language} unusable: {e}")
            raise
        logger.info(f"Fetched {len(items)} captions for talk {talk_id} ({language})")
        return items

    async def fetch_transcript_html(self, talk_id: str, language: str) -> str:
        """Fetch the HTML transcript page used for plain-text output."""
        body = await self._get_text(self.transcript_url(talk_id, language), talk_id, language)
        logger.info(f"Fetched transcript page for talk {talk_id} ({language}), {len(body)} chars")
        return body

    async def _get_text(self, url: str, talk_id: str, language: str) -> str:
        logger.debug(f"GET {url}")
        try:
            async with AsyncHTTPClient(timeout=self.timeout, headers=self.headers) as client:
                return await client.get_text(url)
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                logger.info(f"No captions for talk {talk_id} in {language}")
                raise NotFoundError(
                    f"provider has no captions for talk {talk_id} in {language}",
                    talk_id=talk_id,
                    language=language,
                ) from e
            logger.error(f"Provider returned HTTP {e.status} for {url}")
            raise NetworkError(
                f"provider returned HTTP {e.status}", talk_id=talk_id, language=language
            ) from e
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable response body from {url}: {e}")
            raise ParseError(
                f"provider answered with a body that is not valid text: {e}",
                talk_id=talk_id,
                language=language,
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Request to {url} failed: {e!r}")
            raise NetworkError(
                f"request to provider failed: {e!r}", talk_id=talk_id, language=language
            ) from e
