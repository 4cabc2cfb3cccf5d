"""
Transactional email service - SendGrid-based Pro welcome emails.

Called in the background after a successful activation. A failure here is
raised to the task runner, which logs and alerts; the user has already
received their confirmation SMS.
"""
import asyncio
import logging
from datetime import datetime, timezone

from src.config import get_settings
from src.utils.errors import EmailDeliveryError
from src.utils.logging import mask_email

logger = logging.getLogger(__name__)


def check_email_configured() -> bool:
    """Log a warning at startup if welcome emails cannot be sent. Never raises."""
    settings = get_settings()
    if not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY not set - Pro welcome emails will not be sent")
        return False
    if not settings.sendgrid_from_email:
        logger.warning("SENDGRID_FROM_EMAIL not set - Pro welcome emails will not be sent")
        return False
    logger.info("SendGrid configured for transactional email")
    return True


async def _send_transactional(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: str,
) -> dict:
    """
    Send a transactional email via SendGrid.

    Returns: {"message_id": str|None, "status": str, "error": str|None}
    """
    settings = get_settings()
    api_key = settings.sendgrid_api_key

    if not api_key:
        logger.error("No SendGrid API key configured for transactional email")
        return {"message_id": None, "status": "error", "error": "SendGrid not configured"}

    try:
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail, Email, To, Content

        message = Mail(
            from_email=Email(settings.sendgrid_from_email, settings.sendgrid_from_name),
            to_emails=To(to_email),
            subject=subject,
        )
        message.content = [
            Content("text/plain", text_content),
            Content("text/html", html_content),
        ]

        sg = SendGridAPIClient(api_key=api_key)
        # Offload synchronous SendGrid SDK call to thread pool
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, lambda: sg.send(message))
        message_id = response.headers.get("X-Message-Id", "")

        logger.info(
            "Transactional email sent: to=%s subject=%s",
            mask_email(to_email), subject[:40],
        )
        return {"message_id": message_id, "status": "sent", "error": None}

    except Exception as e:
        logger.error(
            "Transactional email failed: to=%s error=%s",
            mask_email(to_email), str(e),
        )
        return {"message_id": None, "status": "error", "error": str(e)}


def _render_welcome(identity: str, bot_name: str) -> tuple[str, str]:
    """Build (html, text) bodies for the Pro welcome email."""
    year = datetime.now(timezone.utc).year

    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 560px; margin: 0 auto; background: #fff;">
      <div style="background: #25D366; padding: 28px; text-align: center; color: #fff;">
        <h1 style="margin: 0; font-size: 24px;">Welcome to Pro!</h1>
      </div>
      <div style="padding: 28px; color: #333; line-height: 1.6;">
        <span style="display: inline-block; background: #FFD700; font-weight: bold; padding: 4px 12px; border-radius: 20px;">PRO MEMBER</span>
        <p>Hi <strong>{identity}</strong>,</p>
        <p>Your account has been <strong>successfully upgraded to Pro</strong>.
           You now have access to all premium features on {bot_name}.</p>
        <h3>What's included in Pro?</h3>
        <ul>
          <li>Unlimited /premium commands</li>
          <li>Priority response queue</li>
          <li>Exclusive Pro-only features</li>
          <li>Direct support channel</li>
        </ul>
        <p>Text <strong>/premium</strong> to try it out right now!</p>
      </div>
      <div style="background: #f0f0f0; padding: 16px; text-align: center; font-size: 12px; color: #888;">
        &copy; {year} {bot_name} &mdash; You received this because you upgraded your account.
      </div>
    </div>
    """

    text = (
        f"Hi! Your account ({identity}) has been upgraded to Pro. "
        f"Enjoy all premium features!\n\n-- {bot_name}"
    )
    return html, text


async def send_pro_welcome_email(email: str, identity: str) -> dict:
    """Send the "Welcome to Pro" email. Raises EmailDeliveryError on failure."""
    settings = get_settings()
    html, text = _render_welcome(identity, settings.bot_name)
    result = await _send_transactional(
        email, "Welcome to Pro - your upgrade is confirmed!", html, text,
    )
    if result["status"] != "sent":
        raise EmailDeliveryError(f"Welcome email to {mask_email(email)} failed: {result['error']}")
    return result
