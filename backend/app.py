"""
Talk Subtitles Backend - Unified Application Entry Point
Mounts the caption and talk services under a single FastAPI application
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import init_database
from services.captions.app import app as captions_app
from services.talks.app import app as talks_app
from shared.utils import config, setup_logging

logger = setup_logging("talksubs-backend")

app = FastAPI(
    title="Talk Subtitles Backend API",
    description="""
    Unified API for talk metadata and subtitle downloads.

    Single-language and bilingual subtitles are rendered on demand and cached on disk.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Captions",
            "description": "Subtitle rendering service - mounted at /api/v1/captions",
        },
        {
            "name": "Talks",
            "description": "Talk catalogue service - mounted at /api/v1/talks",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes to exclude (internal FastAPI docs routes)
EXCLUDED_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"}

MOUNTED_SERVICES = (
    (captions_app, "/api/v1/captions", "Captions", "captions"),
    (talks_app, "/api/v1/talks", "Talks", "talks"),
)

for service_app, prefix, tag, name_prefix in MOUNTED_SERVICES:
    for route in service_app.routes:
        if hasattr(route, "path") and hasattr(route, "endpoint"):
            # Skip internal documentation routes
            if route.path in EXCLUDED_PATHS:
                continue
            route_kwargs = {
                "path": f"{prefix}{route.path}",
                "endpoint": route.endpoint,
                "methods": route.methods,
                "tags": [tag],
            }
            if hasattr(route, "name"):
                route_kwargs["name"] = f"{name_prefix}_{route.name}"
            if hasattr(route, "response_model"):
                route_kwargs["response_model"] = route.response_model
            app.add_api_route(**route_kwargs)


@app.on_event("startup")
async def create_tables():
    init_database()


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "Talk Subtitles Backend API",
        "version": "1.0.0",
        "services": {
            "captions": {
                "base_url": "/api/v1/captions",
                "health": "/api/v1/captions/health",
            },
            "talks": {
                "base_url": "/api/v1/talks",
                "health": "/api/v1/talks/health",
            },
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for all services"""
    return {
        "status": "healthy",
        "services": {
            "api_gateway": "operational",
            "captions": "operational",
            "talks": "operational",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Talk Subtitles Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
