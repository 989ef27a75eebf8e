"""Caption service API endpoints."""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import ValidationError

from services.captions.errors import CaptionError, NetworkError, NotFoundError, ParseError
from services.captions.orchestrator import SubtitleOrchestrator
from shared.enums import SubtitleFormat
from shared.models import SubtitleRequest
from shared.response_models import APIResponse
from shared.utils import config, setup_logging

logger = setup_logging("caption-service")

app = FastAPI(
    title="Caption Service",
    description="Subtitle download, rendering and bilingual merging for talks",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

orchestrator = SubtitleOrchestrator()


def caption_error_status(error: CaptionError) -> int:
    """Map a pipeline failure onto an HTTP status code."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (NetworkError, ParseError)):
        return 502
    return 500


async def serve_subtitle(request: SubtitleRequest) -> FileResponse:
    """Produce (or reuse) the subtitle file for ``request`` and stream it back."""
    try:
        path = await orchestrator.get_subtitle(request)
    except CaptionError as e:
        raise HTTPException(status_code=caption_error_status(e), detail=str(e)) from e
    return FileResponse(path, media_type=request.format.media_type, filename=path.name)


@app.get("/health")
async def health_check():
    """Health check endpoint for the caption service."""
    return APIResponse(message="Caption Service is healthy")


@app.get("/subtitles/{talk_id}/{filename}")
async def download_subtitle(
    talk_id: str,
    filename: str,
    lang: list[str] = Query(..., description="One or two language codes"),
    lag: float = Query(0.0, description="Time lag in milliseconds"),
    format: SubtitleFormat = Query(SubtitleFormat.SRT),
) -> FileResponse:
    """Download a single-language or bilingual subtitle file for a talk."""
    try:
        request = SubtitleRequest(
            talk_id=talk_id, filename=filename, languages=tuple(lang), time_lag=lag, format=format
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()]) from e
    return await serve_subtitle(request)
