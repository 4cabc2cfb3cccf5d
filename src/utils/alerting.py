"""
Critical alerting - the observability sink for failures nobody is waiting on.

Alert channels:
1. Structured log (always) - at ERROR or CRITICAL level
2. Webhook (configurable) - Discord/Slack URL via ALERT_WEBHOOK_URL env var

Rate limiting: per-type in-memory cooldowns to prevent alert storms.
"""
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)

ALERT_COOLDOWN_SECONDS = 300  # 5 minutes (default)

# Per-type cooldown overrides (seconds)
ALERT_COOLDOWN_OVERRIDES: dict[str, int] = {
    "sms_delivery_failed": 900,
    "webhook_signature_invalid": 900,
}

_local_cooldowns: dict[str, float] = {}  # alert_type → expiry (monotonic)


class AlertType:
    """Alert type constants."""
    EMAIL_NOTIFY_FAILED = "email_notify_failed"
    BACKGROUND_TASK_FAILED = "background_task_failed"
    COMMAND_FAILED = "command_failed"
    SMS_DELIVERY_FAILED = "sms_delivery_failed"
    WEBHOOK_SIGNATURE_INVALID = "webhook_signature_invalid"


def _get_cooldown_seconds(alert_type: str) -> int:
    return ALERT_COOLDOWN_OVERRIDES.get(alert_type, ALERT_COOLDOWN_SECONDS)


def _acquire_cooldown(alert_type: str) -> bool:
    """Check-and-set the cooldown for an alert type. Returns True if the alert should fire."""
    now = time.monotonic()
    if now < _local_cooldowns.get(alert_type, 0):
        return False
    _local_cooldowns[alert_type] = now + _get_cooldown_seconds(alert_type)
    return True


def reset_cooldowns() -> None:
    _local_cooldowns.clear()


async def send_alert(
    alert_type: str,
    message: str,
    correlation_id: Optional[str] = None,
    severity: str = "error",
    extra: Optional[dict] = None,
) -> None:
    """
    Send an alert through all configured channels.
    Rate-limited per alert type. Never raises.
    """
    if not _acquire_cooldown(alert_type):
        return

    from src.utils.logging import get_correlation_id
    cid = correlation_id or get_correlation_id()

    log_message = f"ALERT [{alert_type}]: {message}"
    if cid:
        log_message += f" (correlation_id={cid})"

    if severity == "critical":
        logger.critical(log_message)
    else:
        logger.error(log_message)

    await _send_webhook_alert(alert_type, message, cid, severity, extra)


async def _send_webhook_alert(
    alert_type: str,
    message: str,
    correlation_id: Optional[str],
    severity: str = "error",
    extra: Optional[dict] = None,
) -> None:
    """Send alert to configured webhook (Discord/Slack)."""
    try:
        from src.config import get_settings
        settings = get_settings()

        webhook_url = getattr(settings, "alert_webhook_url", "")
        if not webhook_url:
            return

        import httpx

        severity_emoji = {
            "critical": "\U0001f6a8",
            "error": "❌",
            "warning": "⚠️",
        }.get(severity, "ℹ️")
        content = f"{severity_emoji} **{alert_type}**\n{message}"
        if correlation_id:
            content += f"\n`correlation_id: {correlation_id}`"
        if extra:
            for key, val in extra.items():
                content += f"\n`{key}: {val}`"

        async with httpx.AsyncClient(timeout=5.0) as client:
            await client.post(webhook_url, json={"content": content})
    except Exception as e:
        # Alert sending failure should never crash the bot
        logger.warning("Failed to send webhook alert: %s", str(e))
