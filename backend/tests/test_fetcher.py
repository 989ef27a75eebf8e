"""Tests for the caption fetcher."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from services.captions.errors import NetworkError, NotFoundError, ParseError
from services.captions.fetcher import CaptionFetcher, parse_track

TRACK = {
    "captions": [
        {"duration": 2000, "content": "Hello", "startOfParagraph": True, "startTime": 0},
        {"duration": 1500, "content": "World", "startOfParagraph": False, "startTime": 2000},
    ]
}


def _response_error(status: int) -> aiohttp.ClientResponseError:
    return aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=status)


class TestParseTrack:
    def test_parses_items_in_order(self) -> None:
        items = parse_track(json.dumps(TRACK))
        assert [item.content for item in items] == ["Hello", "World"]
        assert items[1].start_time == 2000
        assert items[0].start_of_paragraph is True

    def test_not_json(self) -> None:
        with pytest.raises(ParseError):
            parse_track("<html>oops</html>")

    def test_missing_captions_key(self) -> None:
        with pytest.raises(ParseError):
            parse_track(json.dumps({"subtitles": []}))

    def test_item_missing_field(self) -> None:
        with pytest.raises(ParseError):
            parse_track(json.dumps({"captions": [{"duration": 1, "content": "x"}]}))

    def test_item_wrong_type(self) -> None:
        payload = {"captions": [{"duration": "long", "content": "x", "startTime": 0}]}
        with pytest.raises(ParseError):
            parse_track(json.dumps(payload))

    def test_empty_captions_is_not_found(self) -> None:
        with pytest.raises(NotFoundError):
            parse_track(json.dumps({"captions": []}))


class TestCaptionFetcher:
    def test_urls(self) -> None:
        fetcher = CaptionFetcher(base_url="https://provider.test/")
        assert fetcher.track_url("66", "en") == "https://provider.test/talks/subtitles/id/66/lang/en"
        assert fetcher.transcript_url("66", "en") == (
            "https://provider.test/talks/subtitles/id/66/lang/en/format/html"
        )

    @pytest.mark.asyncio
    async def test_fetch_success(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.text.return_value = json.dumps(TRACK)
            mock_response.raise_for_status.return_value = None
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            items = await fetcher.fetch("66", "en")

            assert len(items) == 2
            mock_session.get.assert_called_once_with(
                "https://provider.test/talks/subtitles/id/66/lang/en", headers=None, params=None
            )

    @pytest.mark.asyncio
    async def test_fetch_transcript_html(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.text.return_value = "<p>Hi</p>"
            mock_response.raise_for_status.return_value = None
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            assert await fetcher.fetch_transcript_html("66", "en") == "<p>Hi</p>"
            called_url = mock_session.get.call_args[0][0]
            assert called_url.endswith("/lang/en/format/html")

    @pytest.mark.asyncio
    async def test_http_404_is_not_found(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.raise_for_status.side_effect = _response_error(404)
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            with pytest.raises(NotFoundError) as exc_info:
                await fetcher.fetch("66", "xx")
            assert exc_info.value.talk_id == "66"
            assert exc_info.value.language == "xx"

    @pytest.mark.asyncio
    async def test_http_500_is_network_error(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.raise_for_status.side_effect = _response_error(500)
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            with pytest.raises(NetworkError):
                await fetcher.fetch("66", "en")

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_session.get.side_effect = asyncio.TimeoutError()
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            with pytest.raises(NetworkError):
                await fetcher.fetch("66", "en")

    @pytest.mark.asyncio
    async def test_malformed_body_carries_context(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.text.return_value = "not json"
            mock_response.raise_for_status.return_value = None
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            with pytest.raises(ParseError) as exc_info:
                await fetcher.fetch("66", "en")
            assert exc_info.value.talk_id == "66"
            assert exc_info.value.language == "en"

    @pytest.mark.asyncio
    async def test_undecodable_body_is_parse_error(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = AsyncMock()
            mock_response = AsyncMock()
            mock_response.text.side_effect = UnicodeDecodeError(
                "utf-8", b'{"captions":[{"content":"\xff\xfe"}]}', 25, 26, "invalid start byte"
            )
            mock_response.raise_for_status.return_value = None
            mock_session.get.return_value.__aenter__.return_value = mock_response
            mock_session_class.return_value = mock_session

            fetcher = CaptionFetcher(base_url="https://provider.test")
            with pytest.raises(ParseError) as exc_info:
                await fetcher.fetch("66", "en")
            assert exc_info.value.talk_id == "66"
            assert exc_info.value.language == "en"

            with pytest.raises(ParseError):
                await fetcher.fetch_transcript_html("66", "en")
