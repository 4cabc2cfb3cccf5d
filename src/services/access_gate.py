"""
Access gate - THE PAYWALL.
Every Pro-only command passes through check_access() before doing any work.

Flow:
1. Look up the caller's tier in the identity store.
2. Pro  -> GateResult allowed, no side effect; the command continues.
3. Free -> send the payment-required notice, then return a denied GateResult;
   the command stops (the caller has already been told why).

If sending the notice fails, the exception propagates: a user who never sees
the payment wall is an error the outer boundary must handle.
"""
import logging
from typing import Awaitable, Callable

from src.services.identity_store import IdentityStore
from src.utils.logging import mask_identity
from src.utils.templates import render_payment_required

logger = logging.getLogger(__name__)

SendText = Callable[[str, str], Awaitable[object]]


class GateResult:
    """Result of an access check. Either allowed, or denied with a reason."""

    def __init__(self, allowed: bool, reason: str = ""):
        self.allowed = allowed
        self.reason = reason

    @property
    def blocked(self) -> bool:
        """True means the calling command must stop."""
        return not self.allowed

    @classmethod
    def allow(cls) -> "GateResult":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "GateResult":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed

    def __repr__(self) -> str:
        status = "ALLOWED" if self.allowed else "DENIED"
        return f"<GateResult {status}: {self.reason}>"


class AccessGate:
    """Pro-tier precondition shared by every gated command."""

    def __init__(self, store: IdentityStore, payment_link: str, command_prefix: str = "/"):
        self.store = store
        self.payment_link = payment_link
        self.command_prefix = command_prefix

    @property
    def denial_message(self) -> str:
        return render_payment_required(self.payment_link, self.command_prefix)

    async def check_access(self, identity: str, send_text: SendText) -> GateResult:
        """
        Check whether an identity may run a Pro command.
        Re-evaluated on every call from current store state.
        """
        if self.store.is_pro(identity):
            return GateResult.allow()

        logger.info(
            "Pro gate denied %s", mask_identity(identity),
            extra={"identity": mask_identity(identity)},
        )
        await send_text(identity, self.denial_message)
        return GateResult.deny("pro_required")
