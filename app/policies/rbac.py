#app/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Set

from app.core.errors import ForbiddenError
from app.models.enums import ActorRole


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: ActorRole
    display_name: str


# --- Workflow action constants ---
ACTION_MANAGE_PROGRAMS = "MANAGE_PROGRAMS"
ACTION_MANAGE_CANDIDATURES = "MANAGE_CANDIDATURES"
ACTION_ADVANCE = "ADVANCE"
ACTION_DECLARE_WINNER = "DECLARE_WINNER"
ACTION_MANAGE_CRITERIA = "MANAGE_CRITERIA"
ACTION_SUBMIT_TEAM_RESPONSES = "SUBMIT_TEAM_RESPONSES"
ACTION_SUBMIT_MENTOR_RESPONSES = "SUBMIT_MENTOR_RESPONSES"
ACTION_VALIDATE_RESPONSES = "VALIDATE_RESPONSES"
ACTION_SUBMIT_FINAL_SCORE = "SUBMIT_FINAL_SCORE"

_ADMIN_ACTIONS = {
    ACTION_MANAGE_PROGRAMS,
    ACTION_MANAGE_CANDIDATURES,
    ACTION_ADVANCE,
    ACTION_DECLARE_WINNER,
    ACTION_MANAGE_CRITERIA,
    ACTION_SUBMIT_TEAM_RESPONSES,
}


def allowed_actions(role: ActorRole) -> Set[str]:
    """
    Pure RBAC: which actions a role may attempt.
    Ownership (is this mentor / member the right one) is checked by the route.
    """

    if role == ActorRole.ADMIN:
        return set(_ADMIN_ACTIONS)

    if role == ActorRole.MENTOR:
        return {
            ACTION_SUBMIT_MENTOR_RESPONSES,
            ACTION_VALIDATE_RESPONSES,
            ACTION_SUBMIT_FINAL_SCORE,
        }

    if role in (ActorRole.STARTUP, ActorRole.PARTICULIER):
        return {ACTION_SUBMIT_TEAM_RESPONSES}

    return set()


def require_action(principal: Principal, action: str) -> None:
    if action not in allowed_actions(principal.role):
        raise ForbiddenError(
            f"Role {principal.role.value} not permitted for action {action}."
        )
