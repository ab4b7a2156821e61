"""Audit trail writer backed by the log_audit procedure"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from rentdesk.domain.exceptions import BackendError
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import AuditRepository
from rentdesk.infrastructure.observability.metrics import audit_failure_counter

logger = logging.getLogger(__name__)

AUDIT_ACTIONS = (
    "rent_full",
    "water_full",
    "rent_partial",
    "water_partial",
    "undo",
    "occupancy_set",
    "occupancy_clear",
    "rent_price_change",
)


@dataclass
class AuditPayload:
    action: str
    house_id: Optional[str] = None
    house_code: Optional[str] = None
    period: Optional[str] = None
    kind: Optional[str] = None
    amount: Optional[float] = None
    note: Optional[str] = None


def _period_or_none(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


def audit_params(actor_name: str, payload: AuditPayload) -> Dict[str, Any]:
    """Arguments for log_audit; unparsable periods are sent as null"""
    return {
        "p_actor_name": actor_name,
        "p_action": payload.action,
        "p_house_id": payload.house_id,
        "p_house_code": payload.house_code,
        "p_period": _period_or_none(payload.period),
        "p_kind": payload.kind,
        "p_amount": payload.amount,
        "p_note": payload.note,
    }


class AuditClient:
    """Client for writing audit records after a mutation succeeded"""

    def __init__(self, client: PostgrestClient, actor_name: str):
        self.repository = AuditRepository(client)
        self.actor_name = actor_name

    async def write(self, payload: AuditPayload) -> bool:
        """
        Record an admin action.

        Runs as a background task, so failures are logged and counted
        instead of raised. Anonymous actors are not audited.

        Returns:
            True when the backend accepted the record
        """
        if not self.actor_name:
            return False
        if payload.action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {payload.action}")
        try:
            await self.repository.log(audit_params(self.actor_name, payload))
            return True
        except BackendError as e:
            audit_failure_counter.inc()
            logger.error(
                f"log_audit failed: {e}",
                extra={"action": payload.action, "house_id": payload.house_id, "period": payload.period},
            )
            return False
