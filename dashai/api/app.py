"""
HTTP entry point for the assistant.

Endpoints:
  - POST /api/chat: answer one message for the authenticated caller
  - GET /api/health: liveness probe

Authentication happens upstream; the gateway forwards the verified caller id
in the ``X-Authenticated-User`` header. A request without it is rejected
before any ledger is touched.
"""

import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header
from fastapi.responses import JSONResponse

from dashai.config.loader import load_config
from dashai.core.errors import (
    AuthenticationRequired,
    InvalidInput,
    ModelInvocationFailure,
    RateLimited,
)
from dashai.core.pipeline import AssistantPipeline

logger = logging.getLogger(__name__)

CALLER_HEADER = "X-Authenticated-User"

router = APIRouter()


@lru_cache(maxsize=1)
def get_pipeline() -> AssistantPipeline:
    """Build the shared pipeline once per process."""
    return AssistantPipeline.from_config(load_config())


def get_caller_id(caller: Optional[str] = Header(default=None, alias=CALLER_HEADER)) -> Optional[str]:
    return caller


@router.post("/chat")
def chat(
    payload: Any = Body(default=None),
    caller_id: Optional[str] = Depends(get_caller_id),
    pipeline: AssistantPipeline = Depends(get_pipeline)
):
    """Answer one chat message.

    Returns ``{reply, tokensUsed, cost}`` on success. Errors come back as
    ``{"error": message}`` with 401 (no caller), 400 (bad payload), 429
    (daily limit, with ``limit``) or 502 (model failure).

    Declared as a plain function so FastAPI runs it in the threadpool; the
    store and model calls block.
    """
    try:
        result = pipeline.handle(caller_id, payload)
    except AuthenticationRequired as e:
        logger.info("[chat] Rejected unauthenticated request")
        return JSONResponse({"error": str(e)}, status_code=401)
    except InvalidInput as e:
        logger.info(f"[chat] Rejected invalid request from {caller_id}: {e}")
        return JSONResponse({"error": str(e)}, status_code=400)
    except RateLimited as e:
        return JSONResponse({"error": str(e), "limit": e.limit}, status_code=429)
    except ModelInvocationFailure as e:
        logger.error(f"[chat] Model failure for {caller_id}: {e}")
        return JSONResponse({"error": str(e)}, status_code=502)

    return JSONResponse(result.to_dict())


@router.get("/health")
def health():
    return {"status": "ok"}


def create_app() -> FastAPI:
    """Build the ASGI app with the API routes mounted under /api."""
    application = FastAPI(title="DashAI")
    application.include_router(router, prefix="/api", tags=["Chat"])
    return application


app = create_app()
