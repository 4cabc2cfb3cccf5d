"""
Webhook signature validation - verify inbound Twilio SMS webhooks are authentic.
Twilio signs each request with HMAC-SHA1 in the X-Twilio-Signature header.
"""
import logging

logger = logging.getLogger(__name__)


def validate_twilio_signature(
    auth_token: str,
    signature: str,
    url: str,
    params: dict,
) -> bool:
    """
    Validate Twilio webhook signature using their RequestValidator.
    Returns True if valid, False if invalid or on error.
    """
    if not signature:
        logger.warning("Missing X-Twilio-Signature header")
        return False

    try:
        from twilio.request_validator import RequestValidator
        validator = RequestValidator(auth_token)
        return validator.validate(url, params, signature)
    except Exception as e:
        logger.error("Twilio signature validation error: %s", str(e))
        return False


def get_webhook_url(request) -> str:
    """
    Reconstruct the public URL Twilio signed.
    Behind a reverse proxy request.url is the internal URL, so prefer the
    X-Forwarded-Proto / X-Forwarded-Host headers when present.
    """
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host", "")
    base = f"{proto}://{host}{request.url.path}"
    if request.url.query:
        return f"{base}?{request.url.query}"
    return base


def verify_twilio_request(request, form_params: dict) -> bool:
    """
    Check an inbound Twilio request against the configured auth token.
    Validation can be switched off for local development only.
    """
    from src.config import get_settings
    settings = get_settings()

    if not settings.twilio_validate_signature:
        return True

    if not settings.twilio_auth_token:
        logger.error("TWILIO_AUTH_TOKEN not set - rejecting signed webhook")
        return False

    signature = request.headers.get("X-Twilio-Signature", "")
    return validate_twilio_signature(
        settings.twilio_auth_token,
        signature,
        get_webhook_url(request),
        form_params,
    )
