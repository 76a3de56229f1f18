import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from django.contrib.contenttypes.models import ContentType
from django.db import DatabaseError, transaction

from .models import ActivityLog

logger = logging.getLogger("cos.activity")


@dataclass
class ActionResult:
    """
    Outcome of an expected domain action (join, transition, submit...).

    Unexpected failures are raised instead; this only carries outcomes
    the user can act on. ``level`` mirrors flash message types.
    """
    ok: bool
    message: str
    level: str = "success"
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, message: str, **data) -> "ActionResult":
        return cls(True, message, "success", data)

    @classmethod
    def warning(cls, message: str, **data) -> "ActionResult":
        return cls(False, message, "warning", data)

    @classmethod
    def error(cls, message: str, **data) -> "ActionResult":
        return cls(False, message, "error", data)


class ActivityService:
    @staticmethod
    def log_activity(actor, verb: str, target=None, message: str = "", metadata: Optional[dict] = None):
        """
        Record an activity ledger row. Best-effort: a failure is logged and
        never breaks the surrounding action (runs in its own savepoint).
        """
        if metadata is None:
            metadata = {}

        actor = actor if getattr(actor, "pk", None) else None

        try:
            with transaction.atomic():
                return ActivityLog.objects.create(
                    actor=actor,
                    verb=verb,
                    message=message[:255],
                    content_type=ContentType.objects.get_for_model(target) if target is not None else None,
                    object_id=target.pk if target is not None else None,
                    metadata=metadata,
                )
        except DatabaseError:
            logger.warning(
                "Activity log write failed: verb=%s actor=%s", verb, getattr(actor, "pk", None), exc_info=True
            )
            return None
