"""Provider client for talk metadata and search."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any

import aiohttp
from pydantic import ValidationError

from services.captions.errors import NetworkError, NotFoundError, ParseError
from shared.http_client import AsyncHTTPClient
from shared.models import TalkLanguage, TalkPayload
from shared.utils import config, setup_logging

logger = setup_logging("talk-client")


def _timestamp(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(float(value), tz=timezone.utc).replace(tzinfo=None)


def talk_languages(talk: dict[str, Any]) -> list[tuple[str, str]]:
    """Return ``(code, name)`` pairs from ``{"en": {"name": "English", ...}}``."""
    languages = talk.get("languages") or {}
    if not isinstance(languages, dict):
        raise ParseError("talk languages must be an object keyed by language code")
    return [(code, info["name"]) for code, info in languages.items()]


def talk_image(talk: dict[str, Any]) -> str | None:
    """Pick the talk image url; the provider lists the preferred size second."""
    images = talk.get("images") or []
    if not images:
        return None
    entry = images[1] if len(images) > 1 else images[0]
    return entry.get("image", {}).get("url")


def parse_talk(document: Any) -> TalkPayload:
    """Build a :class:`TalkPayload` from a provider ``{"talk": {...}}`` document."""
    if not isinstance(document, dict) or not isinstance(document.get("talk"), dict):
        raise ParseError("talk payload has no 'talk' object")
    talk = document["talk"]
    try:
        return TalkPayload(
            id=talk["id"],
            name=talk["name"],
            slug=talk["slug"],
            filmed=_timestamp(talk.get("filmed")),
            published=_timestamp(talk.get("published")),
            description=talk.get("description"),
            image=talk_image(talk),
            languages=[TalkLanguage(code=code, name=name) for code, name in talk_languages(talk)],
            media_slug=talk.get("media_slug") or talk["slug"],
            media_pad=float(talk.get("media_pad") or 0.0) * 1000,
        )
    except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
        raise ParseError(f"malformed talk payload: {e!r}") from e


class TalkClient:
    """Look up talks on the provider's public API."""

    def __init__(self, api_url: str | None = None, api_key: str | None = None, timeout: int | None = None):
        self.api_url = (api_url or config.get("provider_api_url")).rstrip("/")
        self.api_key = api_key or config.get("provider_api_key")
        self.timeout = timeout or config.get("http_timeout", 30)

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.api_key:
            params["api-key"] = self.api_key
        return params

    async def fetch_talk(self, slug: str) -> TalkPayload:
        """Fetch metadata for the talk published under ``slug``."""
        document = await self._get_json(f"{self.api_url}/talks/{slug}.json", self._params())
        talk = parse_talk(document)
        logger.info(f"Fetched talk {talk.id} ('{talk.slug}')")
        return talk

    async def search(self, query: str) -> list[str]:
        """Return the slugs of talks matching ``query``."""
        document = await self._get_json(f"{self.api_url}/search.json", self._params(q=query))
        try:
            slugs = [hit["talk"]["slug"] for hit in document.get("results", [])]
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError(f"malformed search payload: {e!r}") from e
        logger.info(f"Search '{query}' returned {len(slugs)} talks")
        return slugs

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        try:
            async with AsyncHTTPClient(timeout=self.timeout) as client:
                return await client.get(url, params=params or None)
        except aiohttp.ContentTypeError as e:
            logger.error(f"Non-JSON response from {url}")
            raise ParseError(f"provider answered {url} with non-JSON content") from e
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                raise NotFoundError(f"provider has nothing at {url}") from e
            logger.error(f"Provider returned HTTP {e.status} for {url}")
            raise NetworkError(f"provider returned HTTP {e.status}") from e
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable response body from {url}: {e}")
            raise ParseError(f"provider answered {url} with undecodable content") from e
        except json.JSONDecodeError as e:
            raise ParseError(f"provider answered {url} with malformed JSON") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Request to {url} failed: {e!r}")
            raise NetworkError(f"request to provider failed: {e!r}") from e
