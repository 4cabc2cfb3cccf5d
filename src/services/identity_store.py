"""
Identity store - in-memory tier state per sender identity.

Records are created lazily on first lookup and live for the lifetime of the
process. Nothing is persisted and nothing is evicted.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from src.schemas.identity import IdentityRecord, IdentityStats, Tier
from src.utils.logging import mask_identity

logger = logging.getLogger(__name__)


class IdentityStore:
    """Owns every IdentityRecord. Construct one per application (or per test)."""

    def __init__(self):
        self._records: dict[str, IdentityRecord] = {}

    def get(self, identity: str) -> IdentityRecord:
        """Return the record for an identity, creating a default Free one if unseen."""
        record = self._records.get(identity)
        if record is None:
            record = IdentityRecord(id=identity)
            self._records[identity] = record
        return record

    def is_pro(self, identity: str) -> bool:
        return self.get(identity).tier == Tier.PRO

    def upgrade(self, identity: str, email: Optional[str] = None) -> IdentityRecord:
        """
        Move an identity to Pro.

        upgraded_at is stamped only on the Free -> Pro transition, so repeated
        calls keep the original date. A missing email never clears a stored one.
        """
        record = self.get(identity)
        if record.tier != Tier.PRO:
            record.tier = Tier.PRO
            record.upgraded_at = datetime.now(timezone.utc)
            logger.info("Identity %s upgraded to Pro", mask_identity(identity))
        if email:
            record.contact_email = email
        return record

    def revoke(self, identity: str) -> IdentityRecord:
        """Drop an identity back to Free. Email and upgrade date are kept for audit."""
        record = self.get(identity)
        if record.tier == Tier.PRO:
            logger.info("Identity %s revoked to Free", mask_identity(identity))
        record.tier = Tier.FREE
        return record

    def seed_pro(self, identities: Iterable[str]) -> None:
        """Mark allow-listed identities as Pro at startup. Safe to call twice."""
        seeded = 0
        for identity in identities:
            self.upgrade(identity)
            seeded += 1
        logger.info("Seeded %d Pro identities", seeded)

    def list_all(self) -> list[IdentityRecord]:
        return [record.model_copy() for record in self._records.values()]

    def stats(self) -> IdentityStats:
        pro = sum(1 for r in self._records.values() if r.tier == Tier.PRO)
        return IdentityStats(total=len(self._records), pro=pro, free=len(self._records) - pro)

    def __len__(self) -> int:
        return len(self._records)
