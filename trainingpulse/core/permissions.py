"""Role-based capability checks.

Operates on plain user/course/team dicts so the same rules back both the
API dependencies and the client's UI gating.
"""

from typing import Any, Optional

MANAGER_ROLES = ("admin", "manager")
ANALYTICS_ROLES = ("admin", "manager", "reviewer")


def _role(user: Optional[dict[str, Any]]) -> Optional[str]:
    if not user:
        return None
    role = user.get("role")
    return getattr(role, "value", role)


def has_role(user: Optional[dict[str, Any]], required: str | list[str] | tuple[str, ...]) -> bool:
    role = _role(user)
    if role is None or not required:
        return False
    if isinstance(required, str):
        return role == required
    return role in required


def is_admin(user: Optional[dict[str, Any]]) -> bool:
    return _role(user) == "admin"


def can_manage(user: Optional[dict[str, Any]]) -> bool:
    return _role(user) in MANAGER_ROLES


def can_create_course(user: Optional[dict[str, Any]]) -> bool:
    return can_manage(user)


def can_edit_course(user: Optional[dict[str, Any]], course: Optional[dict[str, Any]]) -> bool:
    """Managers edit everything; others only courses they are assigned to."""
    if not user:
        return False
    if can_manage(user):
        return True
    assignments = (course or {}).get("assignments") or []
    user_id = str(user.get("id"))
    return any(str(a.get("user_id", a.get("userId"))) == user_id for a in assignments)


def can_delete_course(user: Optional[dict[str, Any]]) -> bool:
    return can_manage(user)


def can_manage_team(user: Optional[dict[str, Any]], team: Optional[dict[str, Any]]) -> bool:
    if not user:
        return False
    if is_admin(user):
        return True
    if _role(user) != "manager" or not team:
        return False
    return str(user.get("team_id")) == str(team.get("id"))


def can_view_analytics(user: Optional[dict[str, Any]]) -> bool:
    return _role(user) in ANALYTICS_ROLES


def can_bulk_update(user: Optional[dict[str, Any]]) -> bool:
    return can_manage(user)


def can_manage_workflow(user: Optional[dict[str, Any]]) -> bool:
    return can_manage(user)


def can_approve_workflow(user: Optional[dict[str, Any]], stage: Optional[dict[str, Any]]) -> bool:
    """Reviewers may approve only stages that explicitly require a reviewer."""
    if not user:
        return False
    if can_manage(user):
        return True
    required = ((stage or {}).get("state_config") or {}).get("required_role") or (stage or {}).get(
        "required_role"
    )
    return _role(user) == "reviewer" and required == "reviewer"
