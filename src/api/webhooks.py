"""
Webhook endpoints - receive inbound SMS from Twilio and hand commands to the bot.

Security layers (in order):
1. Signature validation (X-Twilio-Signature)
2. Command-prefix filter (plain chatter is never routed)
3. Per-identity serialization
4. Outer error boundary: one failing command never stops the bot
"""
import logging

from fastapi import APIRouter, Request, HTTPException

from src.config import get_settings
from src.schemas.api_responses import WebhookPayloadResponse
from src.services.command_router import CommandRouter
from src.utils import templates
from src.utils.alerting import AlertType, send_alert
from src.utils.locks import IdentityLocks
from src.utils.logging import mask_identity
from src.utils.webhook_signatures import verify_twilio_request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhook", tags=["webhooks"])


async def handle_inbound_message(
    command_router: CommandRouter,
    locks: IdentityLocks,
    identity: str,
    text: str,
) -> bool:
    """
    Route one inbound command inside the error boundary.

    Returns True if the command completed, False if it raised. On failure the
    sender gets one generic error reply; if that reply also fails it is dropped.
    """
    masked = mask_identity(identity)
    try:
        async with locks.hold(identity):
            await command_router.route(text, identity)
        return True
    except Exception as e:
        logger.error(
            "Error handling message from %s: %s", masked, str(e),
            exc_info=True, extra={"identity": masked},
        )
        await send_alert(
            AlertType.COMMAND_FAILED,
            f"Command from {masked} failed: {e}",
            extra={"error_type": type(e).__name__},
        )
        try:
            await command_router.capabilities.send_text(identity, templates.INTERNAL_ERROR)
        except Exception as reply_error:
            logger.warning("Generic error reply to %s also failed: %s", masked, str(reply_error))
        return False


@router.post("/twilio/sms", response_model=WebhookPayloadResponse)
async def twilio_sms_webhook(request: Request):
    """
    Twilio inbound SMS webhook.
    Twilio sends form-encoded data, not JSON. Always answers 200 once the
    request is authentic so Twilio does not redeliver a failed command.
    """
    form_data = await request.form()
    form_params = {k: str(v) for k, v in form_data.items()}

    if not verify_twilio_request(request, form_params):
        await send_alert(
            AlertType.WEBHOOK_SIGNATURE_INVALID,
            "Rejected inbound SMS webhook with invalid signature",
            severity="warning",
        )
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    identity = form_params.get("From", "").strip()
    body = form_params.get("Body", "")
    if not identity:
        raise HTTPException(status_code=400, detail="Missing From")

    settings = get_settings()
    # Prefix must be the very first character, as sent
    if not body.startswith(settings.command_prefix):
        return WebhookPayloadResponse(status="ignored", message="Not a command")

    command_router: CommandRouter = request.app.state.command_router
    completed = await handle_inbound_message(
        command_router, request.app.state.identity_locks, identity, body,
    )
    if not completed:
        return WebhookPayloadResponse(status="failed", message="Command failed")
    return WebhookPayloadResponse(status="accepted")
