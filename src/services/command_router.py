"""
Command router - parses inbound text and dispatches to command handlers.

Commands:
    start / help       - capability menu
    status             - current tier (and Pro-since date)
    premium            - Pro-only feature (access gate)
    activate <email>   - Free -> Pro upgrade, welcome email in the background
    admin              - tier counts (access gate + administrator identity)

Unknown commands are ignored without a reply. Exceptions raised by a handler
are not caught here; the transport boundary owns the generic error reply.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from src.config import Settings
from src.services.access_gate import AccessGate, SendText
from src.services.identity_store import IdentityStore
from src.services.task_dispatch import TaskRunner
from src.utils import templates
from src.utils.alerting import AlertType
from src.utils.logging import mask_email, mask_identity

logger = logging.getLogger(__name__)

NotifyUpgrade = Callable[[str, str], Awaitable[object]]


@dataclass
class BotCapabilities:
    """Outbound capabilities the router needs from its host."""
    send_text: SendText
    notify_upgrade: NotifyUpgrade
    tasks: TaskRunner


def parse_command(text: str, prefix: str = "/") -> tuple[str, list[str]]:
    """
    Split inbound text into (command, args).

    The command is the first whitespace-separated token, lowercased, with the
    command prefix removed. Returns ("", []) for blank input.
    """
    tokens = text.split()
    if not tokens:
        return "", []
    command = tokens[0].lower()
    if prefix and command.startswith(prefix):
        command = command[len(prefix):]
    return command, tokens[1:]


def is_valid_activation(args: list[str]) -> bool:
    return len(args) == 1 and "@" in args[0]


class CommandRouter:
    """Routes one inbound message to its command handler."""

    def __init__(
        self,
        store: IdentityStore,
        gate: AccessGate,
        capabilities: BotCapabilities,
        admin_identity: str,
        bot_name: str = "ProBot",
        command_prefix: str = "/",
    ):
        self.store = store
        self.gate = gate
        self.capabilities = capabilities
        self.admin_identity = admin_identity
        self.bot_name = bot_name
        self.command_prefix = command_prefix
        self._handlers = {
            "start": self._handle_start,
            "help": self._handle_start,
            "status": self._handle_status,
            "premium": self._handle_premium,
            "activate": self._handle_activate,
            "admin": self._handle_admin,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    async def route(self, text: str, identity: str) -> None:
        command, args = parse_command(text, self.command_prefix)
        masked = mask_identity(identity)

        handler = self._handlers.get(command)
        if handler is None:
            logger.debug("Ignoring unknown command %r from %s", command, masked)
            return

        logger.info(
            "Command %s from %s (%d args)", command, masked, len(args),
            extra={"identity": masked, "command": command},
        )
        await handler(identity, args)

    async def _reply(self, identity: str, text: str) -> None:
        await self.capabilities.send_text(identity, text)

    async def _handle_start(self, identity: str, args: list[str]) -> None:
        await self._reply(identity, templates.render_help(self.bot_name, self.command_prefix))

    async def _handle_status(self, identity: str, args: list[str]) -> None:
        await self._reply(identity, templates.render_status(self.store.get(identity)))

    async def _handle_premium(self, identity: str, args: list[str]) -> None:
        gate = await self.gate.check_access(identity, self.capabilities.send_text)
        if gate.blocked:
            return

        await self._reply(identity, templates.PRO_ZONE)

    async def _handle_activate(self, identity: str, args: list[str]) -> None:
        if not is_valid_activation(args):
            await self._reply(identity, templates.render_usage(self.command_prefix))
            return

        email = args[0]
        if self.store.is_pro(identity):
            await self._reply(identity, templates.ALREADY_PRO)
            return

        # TODO: verify the payment reference with the billing provider before upgrading
        self.store.upgrade(identity, email)
        await self._reply(identity, templates.render_activated(email, self.command_prefix))

        logger.info(
            "Pro activated for %s, welcome email to %s",
            mask_identity(identity), mask_email(email),
        )
        self.capabilities.tasks.dispatch(
            "notify_upgrade",
            self.capabilities.notify_upgrade,
            email,
            identity,
            alert_type=AlertType.EMAIL_NOTIFY_FAILED,
        )

    async def _handle_admin(self, identity: str, args: list[str]) -> None:
        gate = await self.gate.check_access(identity, self.capabilities.send_text)
        if gate.blocked:
            return

        # Second, independent gate: Pro is necessary but not sufficient
        if identity != self.admin_identity:
            logger.warning("Admin command refused for %s", mask_identity(identity))
            await self._reply(identity, templates.ADMIN_ONLY)
            return

        await self._reply(identity, templates.render_admin_panel(self.store.stats()))


def build_router(
    settings: Settings,
    store: IdentityStore,
    tasks: TaskRunner,
    send_text: Optional[SendText] = None,
    notify_upgrade: Optional[NotifyUpgrade] = None,
) -> CommandRouter:
    """Wire a CommandRouter to the Twilio and SendGrid adapters (or test doubles)."""
    if send_text is None:
        from src.services.sms import send_text
    if notify_upgrade is None:
        from src.services.transactional_email import send_pro_welcome_email as notify_upgrade

    gate = AccessGate(store, settings.payment_link, settings.command_prefix)
    capabilities = BotCapabilities(
        send_text=send_text,
        notify_upgrade=notify_upgrade,
        tasks=tasks,
    )
    return CommandRouter(
        store,
        gate,
        capabilities,
        admin_identity=settings.admin_identity,
        bot_name=settings.bot_name,
        command_prefix=settings.command_prefix,
    )
