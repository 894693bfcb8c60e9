"""
Workflow template validation and instance transitions.

Templates are stored as a list of states and a list of directed transitions
between state names. Instances track a course's current state within one
template.
"""

from typing import Any, Iterable, Optional


class WorkflowError(ValueError):
    """Base error for workflow problems."""


class InvalidTemplate(WorkflowError):
    pass


class InvalidTransition(WorkflowError):
    pass


def validate_template(
    states: list[dict[str, Any]],
    transitions: Iterable[dict[str, Any]],
) -> None:
    """
    Check a template's shape.

    Raises:
        InvalidTemplate: no states, duplicate state names, not exactly one
            initial state, or a transition naming an unknown state
    """
    if not states:
        raise InvalidTemplate("Workflow must have at least one stage")

    names = [s["state_name"] for s in states]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidTemplate(f"Duplicate stage names: {', '.join(duplicates)}")

    initial = [s for s in states if s.get("is_initial")]
    if len(initial) != 1:
        raise InvalidTemplate("Workflow must have exactly one initial stage")

    known = set(names)
    for t in transitions:
        for end in (t["from_state"], t["to_state"]):
            if end not in known:
                raise InvalidTemplate(f"Transition references unknown stage '{end}'")


def transition_payload(transitions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Stored transition rows reduced to the fields a template write accepts."""
    return [
        {
            "from_state": t["from_state"],
            "to_state": t["to_state"],
            "condition": t.get("condition") or "auto",
            "order": t.get("order") if t.get("order") is not None else i,
        }
        for i, t in enumerate(transitions)
    ]


def initial_state(template: dict[str, Any]) -> Optional[str]:
    for state in template.get("states") or []:
        if state.get("is_initial"):
            return state["state_name"]
    states = template.get("states") or []
    return states[0]["state_name"] if states else None


def final_states(template: dict[str, Any]) -> set[str]:
    return {s["state_name"] for s in template.get("states") or [] if s.get("is_final")}


def allowed_targets(template: dict[str, Any], current_state: str) -> list[str]:
    """Target states reachable in one step, in transition order."""
    transitions = sorted(
        template.get("transitions") or [],
        key=lambda t: (t.get("order") is None, t.get("order") or 0),
    )
    return [t["to_state"] for t in transitions if t["from_state"] == current_state]


def next_state(template: dict[str, Any], current_state: str) -> Optional[str]:
    targets = allowed_targets(template, current_state)
    return targets[0] if targets else None


def apply_transition(
    template: dict[str, Any],
    instance: dict[str, Any],
    target: str,
) -> dict[str, Any]:
    """
    Move an instance to ``target``.

    Returns:
        Field updates for the instance row

    Raises:
        InvalidTransition: instance complete or no transition current -> target
    """
    if instance.get("is_complete"):
        raise InvalidTransition("Workflow instance is already complete")

    current = instance.get("current_state")
    if target not in allowed_targets(template, current):
        raise InvalidTransition(f"No transition from '{current}' to '{target}'")

    return {
        "current_state": target,
        "is_complete": target in final_states(template),
    }
