"""Talk catalogue API endpoints."""

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import get_db
from services.captions import app as captions_module
from services.talks.client import TalkClient
from services.talks.repository import TalkRepository
from services.talks.store import TalkKeyStore
from shared.enums import SubtitleFormat
from shared.models import SubtitleRequest, Talk
from shared.response_models import APIResponse
from shared.utils import config, setup_logging

logger = setup_logging("talk-service")

app = FastAPI(
    title="Talk Service",
    description="Talk metadata, search and per-talk subtitle downloads",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_key_store: TalkKeyStore | None = None
_talk_client: TalkClient | None = None


def get_key_store() -> TalkKeyStore:
    global _key_store
    if _key_store is None:
        _key_store = TalkKeyStore()
    return _key_store


def get_talk_client() -> TalkClient:
    global _talk_client
    if _talk_client is None:
        _talk_client = TalkClient()
    return _talk_client


def get_repository(
    db: Session = Depends(get_db),
    store: TalkKeyStore = Depends(get_key_store),
    client: TalkClient = Depends(get_talk_client),
) -> TalkRepository:
    return TalkRepository(db, store, client, captions_module.orchestrator)


@app.get("/health")
async def health_check():
    """Health check endpoint for the talk service."""
    return APIResponse(message="Talk Service is healthy")


@app.get("/talks", response_model=list[Talk])
async def list_talks(
    limit: int = Query(20, ge=1, le=100),
    repository: TalkRepository = Depends(get_repository),
):
    """List the most recently published talks known locally."""
    return repository.get_talks(limit)


@app.get("/talks/random", response_model=Talk)
async def random_talk(repository: TalkRepository = Depends(get_repository)):
    talk = repository.get_random_talk()
    if talk is None:
        raise HTTPException(status_code=404, detail="No talks stored yet")
    return talk


@app.get("/talks/{slug}", response_model=Talk)
async def get_talk(slug: str, repository: TalkRepository = Depends(get_repository)):
    """Return a talk by slug, fetching it from the provider when unknown or stale."""
    talk = await repository.get_talk_by_slug(slug)
    if talk is None:
        raise HTTPException(status_code=404, detail=f"Talk '{slug}' not found")
    return talk


@app.get("/search", response_model=list[Talk])
async def search_talks(
    q: str = Query(..., min_length=1, description="Search words"),
    repository: TalkRepository = Depends(get_repository),
):
    return await repository.search_talks(q)


@app.get("/talks/{slug}/subtitles")
async def talk_subtitles(
    slug: str,
    lang: list[str] = Query(..., description="One or two language codes"),
    format: SubtitleFormat = Query(SubtitleFormat.SRT),
    repository: TalkRepository = Depends(get_repository),
) -> FileResponse:
    """Download subtitles for a talk, aligned with its media padding."""
    talk = await repository.get_talk_by_slug(slug)
    if talk is None:
        raise HTTPException(status_code=404, detail=f"Talk '{slug}' not found")

    try:
        request = SubtitleRequest(
            talk_id=talk.id,
            filename=talk.media_slug,
            languages=tuple(lang),
            time_lag=talk.media_pad or 0.0,
            format=format,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()]) from e
    return await captions_module.serve_subtitle(request)
