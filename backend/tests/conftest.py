import os
import sys
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

# The database module connects at import time; keep it off PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
PROJECT_ROOT = ROOT_DIR.parent
for path in (PROJECT_ROOT, ROOT_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import models.database  # noqa: E402,F401
from database import Base  # noqa: E402
from services.captions.orchestrator import SubtitleOrchestrator  # noqa: E402
from services.talks.store import TalkKeyStore, redis as redis_module  # noqa: E402
from shared.models import CaptionItem, TalkLanguage, TalkPayload  # noqa: E402
from shared.utils import config as service_config  # noqa: E402

TRANSCRIPT_HTML = (
    "<html><body><h1>Transcript</h1>"
    "<p>\n\t\t\t<span>Good morning.</span>\n\t\t\t<span>How are you?</span>\n</p>"
    "</body></html>"
)


def make_items(*contents: str, start: int = 0, step: int = 2000) -> list[CaptionItem]:
    """Build a caption track with one cue per content string."""
    return [
        CaptionItem(
            duration=step,
            content=content,
            start_of_paragraph=index == 0,
            start_time=start + index * step,
        )
        for index, content in enumerate(contents)
    ]


def make_talk_payload(**overrides) -> TalkPayload:
    fields = {
        "id": 66,
        "name": "Do schools kill creativity?",
        "slug": "ken_robinson_says_schools_kill_creativity",
        "description": "A talk about education",
        "image": "https://images.example.com/66.jpg",
        "languages": [TalkLanguage(code="en", name="English"), TalkLanguage(code="fr", name="French")],
        "media_slug": "KenRobinson_2006",
        "media_pad": 11820.0,
    }
    fields.update(overrides)
    return TalkPayload(**fields)


class DummyPipeline:
    def __init__(self, redis_client: "DummyRedis") -> None:
        self._redis = redis_client
        self._commands: list[tuple[str, tuple]] = []

    def setex(self, key: str, ttl: int, value: str) -> "DummyPipeline":
        self._commands.append(("setex", (key, ttl, value)))
        return self

    def set(self, key: str, value: str) -> "DummyPipeline":
        self._commands.append(("set", (key, value)))
        return self

    def execute(self) -> list:
        results = [getattr(self._redis, name)(*args) for name, args in self._commands]
        self._commands.clear()
        return results


class DummyRedis:
    """In-memory subset of the redis client used by the talk key store."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        return self._store.get(key)

    def set(self, key: str, value: str) -> bool:
        self._store[key] = value
        return True

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        self.ttls[key] = ttl
        return True

    def pipeline(self, transaction: bool = True) -> DummyPipeline:
        return DummyPipeline(self)


@pytest.fixture(scope="session", autouse=True)
def fake_redis() -> Generator[None, None, None]:
    """Patch redis client to use in-memory storage for tests."""
    original_from_url = redis_module.Redis.from_url

    def fake_from_url(cls, url: str, *args, **kwargs):  # type: ignore[unused-argument]
        return DummyRedis()

    redis_module.Redis.from_url = classmethod(fake_from_url)  # type: ignore[assignment]
    try:
        yield
    finally:
        redis_module.Redis.from_url = original_from_url  # type: ignore[assignment]


@pytest.fixture(autouse=True)
def subtitle_root(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the subtitle cache at a per-test directory."""
    root = tmp_path / "subtitles"
    previous = service_config.get("subtitle_root")
    service_config.set("subtitle_root", str(root))
    try:
        yield root
    finally:
        service_config.set("subtitle_root", previous)


@pytest.fixture
def db_session(tmp_path: Path) -> Generator[Session, None, None]:
    """SQLite session with the talk tables created."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'talks.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def fake_fetcher() -> MagicMock:
    """Caption fetcher double returning a two-cue English track and a transcript page."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=make_items("Hello", "World"))
    fetcher.fetch_transcript_html = AsyncMock(return_value=TRANSCRIPT_HTML)
    return fetcher


@pytest.fixture
def orchestrator(subtitle_root: Path, fake_fetcher: MagicMock) -> SubtitleOrchestrator:
    return SubtitleOrchestrator(base_dir=subtitle_root, fetcher=fake_fetcher, coalesce=True)


@pytest.fixture
def key_store() -> TalkKeyStore:
    return TalkKeyStore(redis_url="redis://localhost:6379/15", ttl=60)


@pytest.fixture
def fake_talk_client() -> MagicMock:
    client = MagicMock()
    client.fetch_talk = AsyncMock(return_value=make_talk_payload())
    client.search = AsyncMock(return_value=["ken_robinson_says_schools_kill_creativity"])
    return client
