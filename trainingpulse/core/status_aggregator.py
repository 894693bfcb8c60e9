"""
Course status aggregation.

Derives a course's completion percentage and effective status from its
subtasks, the completion weight of each phase status, the due date and the
current workflow state.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from dateutil import parser as date_parser

COMPLETE_SUBTASK_STATUSES = frozenset({"completed", "final_signoff_received"})


@dataclass
class CompletionData:
    percentage: int
    total_subtasks: int
    completed_subtasks: int
    has_blocking_incomplete: bool
    calculation_method: str
    total_weight: float = 0.0
    weighted_points: float = 0.0


@dataclass
class StatusResult:
    status: str
    reason: str
    recommendations: list[str] = field(default_factory=list)


def _completion_map(phase_statuses: list[dict[str, Any]]) -> dict[str, int]:
    return {
        ps["value"]: int(ps.get("completion_percentage") or 0)
        for ps in phase_statuses
        if ps.get("value") is not None
    }


def completion_percentage(
    subtasks: list[dict[str, Any]],
    phase_statuses: list[dict[str, Any]],
) -> CompletionData:
    """
    Weighted completion from subtask weights and phase-status completion values.

    Each subtask contributes ``weight * completion% / 100`` points out of
    ``weight``. Statuses without a configured completion count as 0, except
    the terminal statuses which always count as 100.
    """
    if not subtasks:
        return CompletionData(
            percentage=0,
            total_subtasks=0,
            completed_subtasks=0,
            has_blocking_incomplete=False,
            calculation_method="no_subtasks",
        )

    completion_by_status = _completion_map(phase_statuses)
    total_weight = 0.0
    points = 0.0
    completed = 0
    blocking_incomplete = False

    for subtask in subtasks:
        status = subtask.get("status") or ""
        weight = float(subtask.get("weight") if subtask.get("weight") is not None else 1)
        if status in COMPLETE_SUBTASK_STATUSES:
            pct = 100
            completed += 1
        else:
            pct = completion_by_status.get(status, 0)
            if subtask.get("is_blocking"):
                blocking_incomplete = True
        total_weight += weight
        points += weight * pct / 100.0

    percentage = round(points / total_weight * 100) if total_weight > 0 else 0

    return CompletionData(
        percentage=min(int(percentage), 100),
        total_subtasks=len(subtasks),
        completed_subtasks=completed,
        has_blocking_incomplete=blocking_incomplete,
        calculation_method="weighted_percentage_based",
        total_weight=total_weight,
        weighted_points=points,
    )


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value)).date()


def determine_status(
    course: dict[str, Any],
    completion: CompletionData,
    is_overdue: bool,
) -> StatusResult:
    """Pick the effective status; overdue beats blocked beats workflow state."""
    pct = completion.percentage

    if is_overdue and pct < 100:
        return StatusResult(
            status="overdue",
            reason="Course has passed its due date",
            recommendations=["Immediate attention required - course is overdue"],
        )

    if completion.has_blocking_incomplete and pct > 0:
        return StatusResult(
            status="blocked",
            reason="Blocking tasks are preventing progress",
            recommendations=["Complete blocking tasks to proceed"],
        )

    if completion.total_subtasks and pct >= 100:
        return StatusResult(status="completed", reason="All phases are complete")

    workflow_state = course.get("workflow_state")
    if workflow_state:
        return StatusResult(status=workflow_state, reason="Following workflow state")

    manual = course.get("status") or ("in_progress" if pct > 0 else "planning")
    recommendations = []
    if completion.total_subtasks == 0:
        recommendations.append("Add phases to track progress")
    return StatusResult(status=manual, reason="Based on current status", recommendations=recommendations)


def calculate_course_status(
    course: dict[str, Any],
    subtasks: list[dict[str, Any]],
    phase_statuses: list[dict[str, Any]],
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Full status report for a course."""
    today = today or date.today()
    completion = completion_percentage(subtasks, phase_statuses)
    due = _as_date(course.get("due_date"))
    is_overdue = bool(due and due < today)
    result = determine_status(course, completion, is_overdue)

    return {
        "course_id": course["id"],
        "manual_status": course.get("status"),
        "workflow_state": course.get("workflow_state"),
        "calculated_status": result.status,
        "completion_percentage": completion.percentage,
        "is_overdue": is_overdue,
        "has_blocking_incomplete": completion.has_blocking_incomplete,
        "status_reason": result.reason,
        "recommendations": result.recommendations,
        "details": {
            "total_subtasks": completion.total_subtasks,
            "completed_subtasks": completion.completed_subtasks,
            "calculation_method": completion.calculation_method,
        },
    }
