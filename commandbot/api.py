from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .config import get_settings
from .integrations.graph import GraphClient
from .models import CommandRequest
from .orchestrator import CommandOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    # Both clients live as long as the app and are closed on shutdown
    llm_http = httpx.AsyncClient()
    graph = GraphClient(
        access_token=settings.graph_access_token,
        base_url=settings.graph_base_url,
        user_id=settings.graph_user_id or None,
    )
    app.state.llm_http = llm_http
    app.state.graph = graph
    app.state.orchestrator = CommandOrchestrator.from_settings(
        settings, directory=graph, http_async_client=llm_http
    )
    logger.info("commandbot ready")
    try:
        yield
    finally:
        await graph.aclose()
        await llm_http.aclose()
        logger.info("commandbot stopped")


app = FastAPI(title="commandbot", version="0.1.0", lifespan=lifespan)

# Any origin may call the command endpoint
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> CommandOrchestrator:
    return request.app.state.orchestrator


# --------------------------------------------------------------------------- #
# Endpoints
# --------------------------------------------------------------------------- #

@app.post("/api/command", response_class=PlainTextResponse)
async def process_command(
    request: CommandRequest,
    orchestrator: CommandOrchestrator = Depends(get_orchestrator),
):
    """Run a command such as "email bob about the budget"."""
    if not request.command:
        raise HTTPException(status_code=400, detail="Command is required")

    result = await orchestrator.process_command(request.command)
    if not result.success:
        return PlainTextResponse(result.message, status_code=500)
    return result.message
