"""Tests for the talk service HTTP API."""

from typing import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from database import get_db
from models.database import Talk, Transcript
from services.captions import app as captions_module
from services.captions.errors import NetworkError, NotFoundError
from services.captions.orchestrator import SubtitleOrchestrator
from services.talks.app import app as talks_app, get_key_store, get_talk_client
from services.talks.store import TalkKeyStore

SLUG = "ken_robinson_says_schools_kill_creativity"


@pytest.fixture
def client(
    db_session: Session,
    key_store: TalkKeyStore,
    fake_talk_client: MagicMock,
    orchestrator: SubtitleOrchestrator,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    monkeypatch.setattr(captions_module, "orchestrator", orchestrator)

    def _get_test_db():
        yield db_session

    talks_app.dependency_overrides[get_db] = _get_test_db
    talks_app.dependency_overrides[get_key_store] = lambda: key_store
    talks_app.dependency_overrides[get_talk_client] = lambda: fake_talk_client
    try:
        with TestClient(talks_app) as test_client:
            yield test_client
    finally:
        talks_app.dependency_overrides.clear()


def _add_talk(db: Session, talk_id: int, transcript: str | None = None) -> None:
    db.add(Talk(id=talk_id, name=f"Talk {talk_id}", slug=f"talk-{talk_id}", media_slug=f"Talk{talk_id}"))
    if transcript is not None:
        db.add(Transcript(id=talk_id, content=transcript))
    db.commit()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json()["message"] == "Talk Service is healthy"


def test_get_talk_by_slug(client: TestClient) -> None:
    response = client.get(f"/talks/{SLUG}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 66
    assert body["media_slug"] == "KenRobinson_2006"
    assert body["languages"][0] == {"code": "en", "name": "English"}


def test_unknown_talk_is_404(client: TestClient, fake_talk_client: MagicMock) -> None:
    fake_talk_client.fetch_talk.side_effect = NotFoundError("no such talk")
    assert client.get("/talks/nope").status_code == 404


def test_list_talks(client: TestClient, db_session: Session) -> None:
    for talk_id in (1, 2, 3):
        _add_talk(db_session, talk_id)

    response = client.get("/talks", params={"limit": 2})

    assert response.status_code == 200
    assert [talk["id"] for talk in response.json()] == [3, 2]


def test_list_talks_rejects_bad_limit(client: TestClient) -> None:
    assert client.get("/talks", params={"limit": 0}).status_code == 422


def test_random_talk(client: TestClient, db_session: Session) -> None:
    assert client.get("/talks/random").status_code == 404
    _add_talk(db_session, 9)
    assert client.get("/talks/random").json()["id"] == 9


def test_search_uses_provider(client: TestClient) -> None:
    response = client.get("/search", params={"q": "creativity"})

    assert response.status_code == 200
    assert [talk["slug"] for talk in response.json()] == [SLUG]


def test_search_falls_back_to_transcripts(
    client: TestClient, db_session: Session, fake_talk_client: MagicMock
) -> None:
    _add_talk(db_session, 4, "Talk 4 about creativity")
    fake_talk_client.search.side_effect = NetworkError("provider down")

    response = client.get("/search", params={"q": "Creativity"})

    assert [talk["id"] for talk in response.json()] == [4]


def test_talk_subtitles_use_media_slug_and_pad(client: TestClient, fake_fetcher: MagicMock) -> None:
    response = client.get(f"/talks/{SLUG}/subtitles", params={"lang": "en"})

    assert response.status_code == 200
    assert "KenRobinson_2006.en.srt" in response.headers["content-disposition"]
    # media_pad of 11820 ms shifts the first cue
    assert response.text.startswith("1\n00:00:11,820 --> 00:00:13,820\nHello\n\n")
    fake_fetcher.fetch.assert_awaited_with("66", "en")


def test_talk_subtitles_for_unknown_talk(client: TestClient, fake_talk_client: MagicMock) -> None:
    fake_talk_client.fetch_talk.side_effect = NotFoundError("no such talk")
    assert client.get("/talks/nope/subtitles", params={"lang": "en"}).status_code == 404


def test_talk_subtitles_reject_three_languages(client: TestClient) -> None:
    response = client.get(
        f"/talks/{SLUG}/subtitles", params=[("lang", "en"), ("lang", "fr"), ("lang", "de")]
    )
    assert response.status_code == 422
