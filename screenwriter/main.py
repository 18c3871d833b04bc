"""Screenwriter agent service: FastAPI app.

Loads config.yaml on startup. Exposes POST /agent, which streams an agent
run as NDJSON, plus operational endpoints for health, config viewing, and
hot-reload.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from screenwriter.agents.cache import invalidate as invalidate_cache
from screenwriter.config import get_config, load_config, reload_config
from screenwriter.runtime import resolve_run, stream_agent_run
from screenwriter.schemas import AgentRequest

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load config on startup."""
    config = load_config()
    logger.info(
        f"Screenwriter agent started (origins={config.allowed_origins}, "
        f"auth={'enabled' if config.api_key else 'disabled'}, "
        f"plan={config.phases.plan}, execute={config.phases.execute}, "
        f"toolsets={len(config.toolsets)}, voices={len(config.voices)})"
    )
    yield
    invalidate_cache()
    logger.info("Screenwriter agent shutting down")


# Load config early so we can read allowed_origins for CORS middleware.
_boot_config = load_config()

app = FastAPI(title="Screenwriter Agent", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_boot_config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------


async def verify_api_key(request: Request) -> None:
    """Validate X-API-Key header against the configured key.
    If no api_key is set in config, auth is disabled (dev mode).
    """
    config = get_config()
    if not config.api_key:
        return  # Auth disabled: no key configured

    key = request.headers.get("X-API-Key")
    if key != config.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


# ---------------------------------------------------------------------------
# Agent endpoint
# ---------------------------------------------------------------------------


@app.post("/agent", dependencies=[Depends(verify_api_key)])
async def run_agent_endpoint(request: AgentRequest):
    """Run the plan-then-execute agent against the submitted screenplay.

    Streams one JSON event per line (NDJSON). The last line is either a
    ``done`` event carrying the final document or an ``error`` event.
    """
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message must be a non-empty string")

    config = get_config()

    try:
        toolset, voice = resolve_run(config, request)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return StreamingResponse(
        stream_agent_run(config, request, toolset, voice),
        media_type="application/x-ndjson",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Operational endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    """Liveness check."""
    config = get_config()
    return {
        "status": "healthy",
        "toolsets": len(config.toolsets),
        "voices": len(config.voices),
    }


@app.get("/config")
async def get_current_config():
    """Return current config as JSON, without the API key."""
    config = get_config()
    return config.model_dump(exclude={"api_key"})


@app.post("/reload", dependencies=[Depends(verify_api_key)])
async def reload():
    """Hot-reload config.yaml without container restart.

    Reloads config and invalidates the graph cache. Runs already streaming
    keep the graph they started with.
    """
    try:
        new_config = reload_config()
        invalidate_cache()
        return {
            "status": "reloaded",
            "toolsets": len(new_config.toolsets),
            "voices": len(new_config.voices),
        }
    except Exception as e:
        logger.error(f"Reload failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Reload failed: {e}")
