"""FastAPI application entry point for the repository setup app.

Endpoints:
- POST /webhook: GitHub ``repository`` webhook receiver
- GET /health: Liveness probe, always ``OK``
- GET /metrics: Prometheus metrics

The webhook endpoint answers immediately. Setup for an accepted delivery
runs as a background task after the response is sent, so GitHub never
waits on API latency and downstream failures never change the response.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from .config import SetupSettings, get_settings
from .context import ServerContext, build_context
from .orchestrator import AuthenticationRejected, InvalidPayloadError
from .webhook.signature import SIGNATURE_HEADER

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EVENT_HEADER = "X-GitHub-Event"

router = APIRouter()


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: SetupSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Setup app configuration:")
    logger.info(f"  GitHub Base URL: {settings.github_base_url}")
    logger.info(f"  GitHub App ID: {settings.github_app_id}")
    logger.info("  GitHub Private Key: <redacted>")
    logger.info(f"  Label App ID: {_redact_secret(settings.label_app_id)}")
    logger.info("  Label Private Key: <redacted>")
    logger.info(f"  Webhook Secret: {_redact_secret(settings.webhook_secret)}")
    logger.info(f"  Request Timeout Seconds: {settings.request_timeout_seconds}")
    logger.info(f"  Sync Labels: {settings.sync_labels}")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")

    if not settings.verification_enabled:
        logger.warning(
            "WEBHOOK_SECRET is empty: webhook signature verification is "
            "DISABLED and any caller can trigger repository setup"
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the server context on startup and close it on shutdown.

    A context already placed on ``app.state`` (for example by tests) is
    used as is.
    """
    logger.info("Setup app starting up...")

    context: Optional[ServerContext] = getattr(app.state, "context", None)
    if context is None:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level)
        _log_configuration(settings)
        context = build_context(settings)
        app.state.context = context

    logger.info("Setup app started successfully")

    yield

    logger.info("Setup app shutting down...")
    await context.close()
    logger.info("Setup app shutdown complete")


@router.get("/health", response_class=PlainTextResponse)
async def health():
    """Liveness probe endpoint."""
    return "OK"


@router.get("/metrics")
async def metrics(request: Request):
    """Prometheus metrics endpoint."""
    context: ServerContext = request.app.state.context
    return Response(
        content=context.metrics.generate_output(),
        media_type=CONTENT_TYPE_LATEST,
    )


@router.post("/webhook")
async def github_webhook(request: Request, background_tasks: BackgroundTasks):
    """GitHub webhook receiver endpoint.

    Responses:
    - 401 if the signature does not verify (nothing else happens)
    - 400 if a ``repository.created`` payload is malformed
    - 200 ``ignored`` for any other event type or action
    - 200 ``processing`` once setup has been scheduled
    """
    context: ServerContext = request.app.state.context
    raw_body = await request.body()

    try:
        run = context.orchestrator.admit(
            raw_body,
            request.headers.get(SIGNATURE_HEADER),
            request.headers.get(EVENT_HEADER),
        )
    except AuthenticationRejected:
        return JSONResponse(
            status_code=401,
            content={"status": "rejected", "message": "Invalid signature"},
        )
    except InvalidPayloadError as e:
        return JSONResponse(
            status_code=400,
            content={"status": "invalid", "message": str(e)},
        )

    if run is None:
        return {"status": "ignored"}

    background_tasks.add_task(context.orchestrator.execute, run)

    return {
        "status": "processing",
        "repository": run.repository.full_name,
        "run_id": run.run_id,
    }


def create_app(context: Optional[ServerContext] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        context: Pre-built context; when omitted it is built from the
            environment on startup.
    """
    application = FastAPI(
        title="Repository Setup App",
        description="Bootstraps secrets and template files in new GitHub repositories",
        version="1.0.0",
        lifespan=lifespan,
    )
    if context is not None:
        application.state.context = context
    application.include_router(router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    dev_settings = get_settings()
    uvicorn.run(
        "src.setup_app.main:app",
        host=dev_settings.host,
        port=dev_settings.port,
    )
