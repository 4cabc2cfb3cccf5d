"""
Test configuration and fixtures.
Every test gets an isolated identity store. All external services are mocked.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from src.services.access_gate import AccessGate
from src.services.command_router import BotCapabilities, CommandRouter
from src.services.identity_store import IdentityStore
from src.services.task_dispatch import TaskRunner
from src.utils.alerting import reset_cooldowns
from src.utils.locks import IdentityLocks

ADMIN = "+15550000000"
PAYMENT_LINK = "https://pay.example.com/test-pro"


@pytest.fixture(autouse=True)
def _clear_alert_cooldowns():
    reset_cooldowns()
    yield
    reset_cooldowns()


@pytest.fixture
def store():
    """Fresh in-memory identity store."""
    return IdentityStore()


@pytest.fixture
def send_text():
    """Mock for send_text - records every reply instead of calling Twilio."""
    mock = AsyncMock()
    mock.return_value = {"sid": "SM_test_123", "status": "sent"}
    return mock


@pytest.fixture
def notify_upgrade():
    """Mock for the Pro welcome email - prevents real SendGrid calls."""
    mock = AsyncMock()
    mock.return_value = {"message_id": "msg_test", "status": "sent", "error": None}
    return mock


@pytest.fixture
def task_runner():
    return TaskRunner()


@pytest.fixture
def identity_locks():
    """Per-test lock registry, as the app lifespan creates one per app."""
    return IdentityLocks()


@pytest.fixture
def gate(store):
    return AccessGate(store, PAYMENT_LINK)


@pytest.fixture
def command_router(store, gate, send_text, notify_upgrade, task_runner):
    capabilities = BotCapabilities(
        send_text=send_text,
        notify_upgrade=notify_upgrade,
        tasks=task_runner,
    )
    return CommandRouter(store, gate, capabilities, admin_identity=ADMIN)


@pytest.fixture
def mock_settings():
    """A Settings stand-in with safe test values."""
    settings = MagicMock()
    settings.app_env = "test"
    settings.log_level = "WARNING"
    settings.bot_name = "ProBot"
    settings.command_prefix = "/"
    settings.admin_identity = ADMIN
    settings.pro_allowlist_identities = []
    settings.payment_link = PAYMENT_LINK
    settings.twilio_account_sid = "AC_test"
    settings.twilio_auth_token = "test_token"
    settings.twilio_from_number = "+15125550000"
    settings.twilio_messaging_service_sid = ""
    settings.twilio_validate_signature = False
    settings.sendgrid_api_key = "SG_test"
    settings.sendgrid_from_email = "noreply@probot.test"
    settings.sendgrid_from_name = "ProBot"
    settings.alert_webhook_url = ""
    return settings
