"""
Bot reply templates - every message the bot sends lives here.
Templates use {variable} substitution. Keep them SMS-friendly: plain text, no markup.
"""
from datetime import datetime

from src.schemas.identity import IdentityRecord, IdentityStats

HELP_MENU = (
    "Welcome to {bot_name}!\n\n"
    "Available commands:\n"
    "{prefix}start - Show this menu\n"
    "{prefix}status - Check your account tier\n"
    "{prefix}premium - Access Pro features (Pro only)\n"
    "{prefix}activate <email> - Activate Pro after payment"
)

PAYMENT_REQUIRED = (
    "Pro Feature - Payment Required\n\n"
    "This command is only available to Pro subscribers.\n\n"
    "Upgrade to Pro and unlock:\n"
    "- {prefix}premium commands\n"
    "- Priority support\n"
    "- Exclusive features\n\n"
    "Pay & upgrade now:\n{payment_link}\n\n"
    "After payment, send {prefix}activate <your-email> to unlock your account."
)

PRO_ZONE = (
    "Welcome to the Pro Zone!\n\n"
    "You have access to all premium features:\n"
    "- Advanced analytics\n"
    "- Unlimited requests\n"
    "- Priority support queue\n"
    "- Beta feature access\n\n"
    "More features coming soon!"
)

STATUS = "Your current tier: {tier}{since}"
STATUS_SINCE = "\nPro since: {date}"

ACTIVATE_USAGE = "Please provide a valid email.\nUsage: {prefix}activate your@email.com"
ALREADY_PRO = "Your account is already Pro! Enjoy the features."
ACTIVATED = (
    "Congratulations! Your account has been upgraded to Pro.\n\n"
    "A welcome email is being sent to: {email}\n\n"
    "Send {prefix}premium to explore your new features!"
)

ADMIN_ONLY = "Access denied. This command is for admins only."
ADMIN_PANEL = (
    "Admin Panel\n\n"
    "Total users tracked: {total}\n"
    "Pro users: {pro}\n"
    "Free users: {free}"
)

INTERNAL_ERROR = "An internal error occurred. Please try again later."


def render_help(bot_name: str, prefix: str) -> str:
    return HELP_MENU.format(bot_name=bot_name, prefix=prefix)


def render_payment_required(payment_link: str, prefix: str) -> str:
    return PAYMENT_REQUIRED.format(payment_link=payment_link, prefix=prefix)


def format_date(value: datetime) -> str:
    """Short human date, e.g. 'Sat Oct 18 2026'."""
    return value.strftime("%a %b %d %Y")


def render_status(record: IdentityRecord) -> str:
    tier = "Pro" if record.is_pro else "Free"
    since = ""
    if record.upgraded_at is not None:
        since = STATUS_SINCE.format(date=format_date(record.upgraded_at))
    return STATUS.format(tier=tier, since=since)


def render_activated(email: str, prefix: str) -> str:
    return ACTIVATED.format(email=email, prefix=prefix)


def render_admin_panel(stats: IdentityStats) -> str:
    return ADMIN_PANEL.format(total=stats.total, pro=stats.pro, free=stats.free)


def render_usage(prefix: str) -> str:
    return ACTIVATE_USAGE.format(prefix=prefix)
