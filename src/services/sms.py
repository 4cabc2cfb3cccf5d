"""
SMS service - Twilio delivery for every bot reply.

Replies are kept within REPLY_SEGMENT_LIMIT segments. Menus are trimmed on a
line boundary so a command listing never ends halfway through an entry.

Carrier errors that will never succeed (bad number, carrier opt-out, landline)
fail immediately. Everything else is retried with a short backoff.
"""
import asyncio
import logging
import math
from typing import NamedTuple, Optional

from src.utils.errors import SmsDeliveryError
from src.utils.logging import mask_identity

logger = logging.getLogger(__name__)

# (single-segment chars, per-segment chars once concatenated)
SEGMENT_SIZES = {
    "gsm7": (160, 153),
    "ucs2": (70, 67),
}
REPLY_SEGMENT_LIMIT = 3
TRUNCATION_MARKER = "..."

SEND_ATTEMPTS = 3
BACKOFF_SECONDS = (1, 3)

UNDELIVERABLE_CODES = frozenset({
    "21211",  # Invalid "To" number
    "21610",  # Recipient replied STOP
    "21612",  # "To" number cannot receive SMS
    "30006",  # Landline or unreachable carrier
})

TWILIO_CLIENT_TIMEOUT = 10


class PreparedReply(NamedTuple):
    body: str
    encoding: str
    segments: int
    truncated: bool


def detect_encoding(text: str) -> str:
    # Plain ASCII always fits GSM-7; anything else is billed as UCS-2
    return "gsm7" if text.isascii() else "ucs2"


def segment_count(text: str, encoding: Optional[str] = None) -> int:
    single, multi = SEGMENT_SIZES[encoding or detect_encoding(text)]
    if len(text) <= single:
        return 1
    return math.ceil(len(text) / multi)


def prepare_reply(text: str) -> PreparedReply:
    """Fit a reply into the segment limit, dropping trailing lines first."""
    encoding = detect_encoding(text)
    if segment_count(text, encoding) <= REPLY_SEGMENT_LIMIT:
        return PreparedReply(text, encoding, segment_count(text, encoding), False)

    budget = SEGMENT_SIZES[encoding][1] * REPLY_SEGMENT_LIMIT - len(TRUNCATION_MARKER)
    lines = text.splitlines()
    kept = []
    used = 0
    for line in lines:
        cost = len(line) + (1 if kept else 0)
        if used + cost > budget:
            break
        kept.append(line)
        used += cost

    # A single oversized line: hard cut
    body = "\n".join(kept) if kept else text[:budget]
    body += TRUNCATION_MARKER
    prepared = PreparedReply(body, encoding, segment_count(body, encoding), True)
    logger.warning(
        "Reply trimmed from %d to %d chars (%s, %d segments)",
        len(text), len(body), encoding, prepared.segments,
    )
    return prepared


def is_undeliverable(error_code: Optional[str]) -> bool:
    return error_code is not None and error_code in UNDELIVERABLE_CODES


def _twilio_error_code(error: Exception) -> Optional[str]:
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def _get_twilio_client():
    """Get a Twilio REST client with configured timeout."""
    from twilio.http.http_client import TwilioHttpClient
    from twilio.rest import Client as TwilioClient
    from src.config import get_settings
    settings = get_settings()
    return TwilioClient(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        http_client=TwilioHttpClient(timeout=TWILIO_CLIENT_TIMEOUT),
    )


async def _send_twilio(to: str, body: str) -> dict:
    from src.config import get_settings
    settings = get_settings()
    client = _get_twilio_client()

    params = {"to": to, "body": body}
    if settings.twilio_messaging_service_sid:
        params["messaging_service_sid"] = settings.twilio_messaging_service_sid
    else:
        params["from_"] = settings.twilio_from_number

    # twilio-python is blocking
    loop = asyncio.get_running_loop()
    message = await loop.run_in_executor(None, lambda: client.messages.create(**params))
    return {"sid": message.sid, "status": message.status}


async def send_sms(to: str, body: str) -> dict:
    """
    Send one reply through Twilio.

    Returns: {
        "sid": str|None, "status": "sent"|"failed", "segments": int,
        "encoding": str, "error": str|None, "error_code": str|None,
    }
    """
    reply = prepare_reply(body)
    masked = mask_identity(to)
    outcome = {
        "sid": None,
        "status": "failed",
        "segments": reply.segments,
        "encoding": reply.encoding,
        "error": None,
        "error_code": None,
    }

    for attempt in range(1, SEND_ATTEMPTS + 1):
        try:
            result = await _send_twilio(to, reply.body)
        except Exception as e:
            outcome["error"] = str(e)
            outcome["error_code"] = _twilio_error_code(e)
        else:
            logger.info(
                "Reply sent to %s (%d segments): %s",
                masked, reply.segments, result.get("sid"),
                extra={"identity": masked, "provider": "twilio"},
            )
            outcome.update(sid=result.get("sid"), status="sent")
            return outcome

        if is_undeliverable(outcome["error_code"]):
            logger.warning(
                "Reply to %s is undeliverable (code=%s)",
                masked, outcome["error_code"],
                extra={"identity": masked, "error_code": outcome["error_code"]},
            )
            break
        if attempt < SEND_ATTEMPTS:
            delay = BACKOFF_SECONDS[min(attempt, len(BACKOFF_SECONDS)) - 1]
            logger.warning(
                "Twilio send to %s failed (attempt %d/%d), retrying in %ds: %s",
                masked, attempt, SEND_ATTEMPTS, delay, outcome["error"],
            )
            await asyncio.sleep(delay)

    logger.error("Reply to %s failed: %s", masked, outcome["error"])
    return outcome


async def send_text(identity: str, text: str) -> dict:
    """Deliver a bot reply. Raises SmsDeliveryError if Twilio did not accept it."""
    result = await send_sms(identity, text)
    if result["status"] != "sent":
        raise SmsDeliveryError(
            f"SMS to {mask_identity(identity)} failed: {result['error']}",
            error_code=result["error_code"],
        )
    return result
