"""
ProBot - SMS command bot with a Free / Pro subscription tier.
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from src.config import get_settings
from src.api.router import api_router
from src.api.health import VERSION
from src.services.command_router import build_router
from src.services.identity_store import IdentityStore
from src.services.task_dispatch import TaskRunner
from src.services.transactional_email import check_email_configured
from src.utils.locks import IdentityLocks
from src.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger("probot")

SHUTDOWN_DRAIN_SECONDS = 10.0


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the bot on startup; drain background work on shutdown."""
    settings = get_settings()
    logger.info("ProBot starting up (env=%s)", settings.app_env)

    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        logger.warning("Twilio credentials not set - replies will fail to send")
    if not settings.twilio_validate_signature:
        logger.warning(
            "TWILIO_VALIDATE_SIGNATURE is off - inbound webhooks are not authenticated. "
            "Never run like this in production."
        )

    # Non-fatal: the bot still answers commands without email
    check_email_configured()

    store = IdentityStore()
    store.seed_pro(settings.pro_allowlist_identities)
    task_runner = TaskRunner()

    app.state.identity_store = store
    app.state.task_runner = task_runner
    app.state.identity_locks = IdentityLocks()
    app.state.command_router = build_router(settings, store, task_runner)
    logger.info("Command router ready: %s", ", ".join(app.state.command_router.commands))

    yield

    logger.info("ProBot shutting down")
    await task_runner.drain(timeout=SHUTDOWN_DRAIN_SECONDS)


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title=settings.bot_name,
        description="SMS command bot with Free / Pro tiers",
        version=VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(CorrelationIdMiddleware)
    application.include_router(api_router)

    return application


app = create_app()
