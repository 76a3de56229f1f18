# core/workflow.py
"""
Status workflows for program entities.

Each app declares its allowed transitions and its named actions
(``activate``, ``start_session``...) and gets a StatusWorkflow that:

- resolves an action name to its target status
- rejects transitions not in the table
- saves the single status column and logs the change

Any transition not in ``transitions`` is rejected.
"""
import logging
from typing import Dict, Iterable, Optional, Tuple


class StatusWorkflow:
    def __init__(
        self,
        name: str,
        statuses: Iterable[str],
        transitions: Dict[str, Iterable[str]],
        actions: Optional[Dict[str, str]] = None,
        logger_name: str = "cos",
        status_field: str = "status",
    ):
        self.name = name
        self.statuses = frozenset(statuses)
        self.transitions = {src: tuple(dst) for src, dst in transitions.items()}
        self.actions = dict(actions or {})
        self.status_field = status_field
        self.logger = logging.getLogger(logger_name)

    def target_for_action(self, action: str) -> Optional[str]:
        return self.actions.get(action)

    def allowed_transitions(self, obj) -> Tuple[str, ...]:
        return self.transitions.get(getattr(obj, self.status_field), ())

    def is_terminal(self, status: str) -> bool:
        return not self.transitions.get(status)

    def can_transition(self, obj, new_status: str) -> Tuple[bool, str]:
        """
        Check if ``obj`` can move to ``new_status``.

        Returns (can_transition: bool, reason: str)
        """
        current_status = getattr(obj, self.status_field)

        if new_status not in self.statuses:
            return False, f"Invalid {self.name} status."

        if new_status == current_status:
            return True, "Same status"

        if new_status not in self.transitions.get(current_status, ()):
            return False, (
                f"Cannot change {self.name} status from "
                f"'{current_status}' to '{new_status}'."
            )

        return True, ""

    def transition(self, obj, new_status: str, actor=None, save: bool = True) -> Tuple[bool, str]:
        """
        Attempt to move ``obj`` to ``new_status``.

        Returns (success: bool, message: str)
        """
        can, reason = self.can_transition(obj, new_status)

        if not can:
            self.logger.warning(
                f"Invalid state transition attempted: {self.name}={obj.pk}, "
                f"from={getattr(obj, self.status_field)}, to={new_status}, "
                f"actor={getattr(actor, 'id', 'unknown')}. Reason: {reason}"
            )
            return False, reason

        old_status = getattr(obj, self.status_field)
        setattr(obj, self.status_field, new_status)

        if save:
            update_fields = [self.status_field]
            if hasattr(obj, "updated_at"):
                update_fields.append("updated_at")
            obj.save(update_fields=update_fields)

        self.logger.info(
            f"{self.name.capitalize()} state transition: {self.name}={obj.pk}, "
            f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
        )

        return True, f"Transitioned from '{old_status}' to '{new_status}'"
