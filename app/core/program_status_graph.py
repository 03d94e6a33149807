# app/core/program_status_graph.py
from typing import Dict, Optional, Set

from app.models.enums import ProgramStatus

# from-status -> statuses it may move to (self-transitions are no-ops, handled by the caller)
ALLOWED_STATUS_TRANSITIONS: Dict[ProgramStatus, Set[ProgramStatus]] = {
    ProgramStatus.DRAFT: {
        ProgramStatus.ACTIVE,
        ProgramStatus.COMPLETED,
    },

    ProgramStatus.ACTIVE: {
        ProgramStatus.COMPLETED,
    },

    ProgramStatus.COMPLETED: set(),
}

REJECTION_REASONS: Dict[ProgramStatus, str] = {
    ProgramStatus.ACTIVE: "An active program cannot go back to Draft.",
    ProgramStatus.COMPLETED: "A completed program cannot change status.",
}


def rejection_reason(current: ProgramStatus, target: ProgramStatus) -> Optional[str]:
    """None when current -> target is allowed or a no-op."""
    if current == target or target in ALLOWED_STATUS_TRANSITIONS[current]:
        return None
    return REJECTION_REASONS.get(current, f"Transition {current.value} -> {target.value} is not allowed.")
