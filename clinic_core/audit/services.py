# clinic_core/audit/services.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from django.db import transaction

from clinic_core.audit.models import AuditEvent
from clinic_core.common.context import Actor

logger = logging.getLogger(__name__)


def _humanize(entity_type: str) -> str:
    # "PharmacyItem" -> "Pharmacy Item"
    return re.sub(r"(?<!^)(?=[A-Z])", " ", entity_type)


def default_description(action: str, entity_type: str, entity_id) -> str:
    return f"Action '{action}' performed on {_humanize(entity_type)} (ID: {entity_id})"


class AuditService:
    """
    Central audit writer.

    By default a write is a best-effort side effect: it runs in its own
    savepoint so a failure rolls back only the audit row, is logged as a
    warning, and the caller's mutation carries on. strict=True (the dedicated
    audit endpoint) lets errors propagate.
    """

    @staticmethod
    def log(
        *,
        action: str,
        entity_type: str,
        entity_id,
        actor: Actor | None = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        description: str | None = None,
        strict: bool = False,
    ) -> AuditEvent | None:
        actor = actor or Actor.system()
        try:
            with transaction.atomic():
                return AuditEvent.objects.create(
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id),
                    actor_id=actor.user_id,
                    actor_role=actor.role or "SYSTEM",
                    description=description or default_description(action, entity_type, entity_id),
                    before=before,
                    after=after,
                    details=details or {},
                    ip_address=actor.ip_address,
                    user_agent=actor.user_agent or "",
                )
        except Exception:
            if strict:
                raise
            logger.warning(
                "Audit write failed for %s %s/%s", action, entity_type, entity_id, exc_info=True
            )
            return None


def diff(changes: Dict[str, tuple]) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Split apply_changes() output into (before, after) snapshots."""
    before = {k: v[0] for k, v in changes.items()}
    after = {k: v[1] for k, v in changes.items()}
    return before, after
