"""Course API endpoints: courses, assignments, subtasks, dependencies, phase history and workflow transitions."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, forbidden, not_found, page
from trainingpulse.core import permissions
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.core.dependencies import DependencyError
from trainingpulse.core.logging import get_logger
from trainingpulse.core.phase_dates import as_utc
from trainingpulse.core.schemas_courses import (
    AssignmentCreate,
    CourseCreate,
    CourseStatusUpdate,
    CourseTransitionRequest,
    CourseUpdate,
    DependencyCreate,
    PhaseHistoryUpdate,
    SubtaskCreate,
    SubtaskUpdate,
)
from trainingpulse.core.status_aggregator import calculate_course_status
from trainingpulse.core.workflow_engine import InvalidTransition, apply_transition, initial_state
from trainingpulse.db import activity as activity_db
from trainingpulse.db import courses as courses_db
from trainingpulse.db import dependencies as dependencies_db
from trainingpulse.db import modalities as modalities_db
from trainingpulse.db import phase_statuses as phase_statuses_db
from trainingpulse.db import subtasks as subtasks_db
from trainingpulse.db import workflows as workflows_db

logger = get_logger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


def _load_course(course_id: UUID) -> dict:
    course = courses_db.get_course(course_id)
    if not course:
        raise not_found("Course")
    return course


def _require_edit(auth: AuthContext, course_id: UUID) -> dict:
    course = _load_course(course_id)
    if not auth.can_manage:
        course["assignments"] = courses_db.list_assignments(course_id)
        if not permissions.can_edit_course(auth.user, course):
            raise forbidden("You do not have permission to edit this course")
    return course


def _seed_modality_phases(course_id: str, modality: str, created_by: UUID) -> list[dict]:
    """Create the modality's template phases on a new course. Phases after the first block."""
    default = phase_statuses_db.get_default_phase_status()
    status = default["value"] if default else ""
    created = []
    for task in modalities_db.list_tasks(modality):
        created.append(
            subtasks_db.create_subtask(
                course_id,
                {
                    "title": task["task_type"],
                    "task_type": task["task_type"],
                    "status": status,
                    "is_blocking": task["order_index"] > 1,
                    "weight": 1,
                    "order_index": task["order_index"],
                },
                created_by=created_by,
            )
        )
    if created:
        logger.info(f"Seeded {len(created)} {modality!r} phase(s) on course {course_id}")
    return created


# ============================================================================
# Course CRUD
# ============================================================================


@router.get("")
async def list_courses(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    program_id: Optional[UUID] = None,
    team_id: Optional[UUID] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    """List courses with filters and pagination."""
    result = courses_db.list_courses(
        status=status,
        priority=priority,
        program_id=program_id,
        team_id=team_id,
        search=search,
        limit=limit,
        offset=offset,
    )
    return envelope(result["courses"], pagination=page(result["total"], limit, offset))


@router.get("/{course_id}")
async def get_course(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    """Get a course with its subtasks and assignments."""
    course = courses_db.get_course_details(course_id)
    if not course:
        raise not_found("Course")
    return envelope(course)


@router.post("", status_code=201)
async def create_course(data: CourseCreate, auth: AuthContext = Depends(require_auth)):
    """Create a course. A workflow template starts an instance; a modality seeds its phases."""
    if not permissions.can_create_course(auth.user):
        raise forbidden("You do not have permission to create courses")

    try:
        course = courses_db.create_course(data.model_dump(), created_by=auth.user_id)
    except Exception as e:
        logger.exception("Failed to create course")
        raise HTTPException(status_code=500, detail="Failed to create course") from e

    if data.workflow_template_id:
        template = workflows_db.get_template(data.workflow_template_id)
        if not template:
            raise not_found("Workflow template")
        state = initial_state(template)
        workflows_db.create_instance(course["id"], data.workflow_template_id, state)
        course = courses_db.update_course(course["id"], {"workflow_state": state})

    if data.modality:
        course["subtasks"] = _seed_modality_phases(course["id"], data.modality, auth.user_id)

    activity_db.record_activity("course", course["id"], "created", auth.user_id, {"title": course.get("title")})
    return envelope(course)


@router.put("/{course_id}")
async def update_course(course_id: UUID, data: CourseUpdate, auth: AuthContext = Depends(require_auth)):
    """Update course fields."""
    _require_edit(auth, course_id)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        course = courses_db.update_course(course_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    activity_db.record_activity("course", course_id, "updated", auth.user_id, {"fields": sorted(updates)})
    return envelope(course)


@router.delete("/{course_id}")
async def delete_course(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    """Delete a course."""
    if not permissions.can_delete_course(auth.user):
        raise forbidden("You do not have permission to delete courses")
    _load_course(course_id)
    courses_db.delete_course(course_id)
    activity_db.record_activity("course", course_id, "deleted", auth.user_id)
    return envelope({"id": str(course_id), "deleted": True})


@router.patch("/{course_id}/status")
async def update_course_status(
    course_id: UUID,
    data: CourseStatusUpdate,
    auth: AuthContext = Depends(require_auth),
):
    """Set the manual course status."""
    course = _require_edit(auth, course_id)
    updated = courses_db.set_course_status(course_id, data.status)
    activity_db.record_activity(
        "course",
        course_id,
        "status_changed",
        auth.user_id,
        {"from": course.get("status"), "to": data.status, "notes": data.notes},
    )
    return envelope(updated)


# ============================================================================
# Assignments
# ============================================================================


@router.get("/{course_id}/assignments")
async def list_assignments(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    _load_course(course_id)
    return envelope(courses_db.list_assignments(course_id))


@router.post("/{course_id}/assignments", status_code=201)
async def add_assignment(
    course_id: UUID,
    data: AssignmentCreate,
    auth: AuthContext = Depends(require_auth),
):
    """Assign a user to a course in a role."""
    if not auth.can_manage:
        raise forbidden("Only managers can assign users")
    _load_course(course_id)
    assignment = courses_db.add_assignment(
        course_id, data.user_id, data.role, due_date=data.due_date, assigned_by=auth.user_id
    )
    return envelope(assignment)


# ============================================================================
# Subtasks
# ============================================================================


@router.post("/{course_id}/subtasks", status_code=201)
async def create_subtask(
    course_id: UUID,
    data: SubtaskCreate,
    auth: AuthContext = Depends(require_auth),
):
    _require_edit(auth, course_id)
    try:
        subtask = subtasks_db.create_subtask(course_id, data.model_dump(), created_by=auth.user_id)
    except Exception as e:
        logger.exception(f"Failed to create subtask for course {course_id}")
        raise HTTPException(status_code=500, detail="Failed to create subtask") from e
    return envelope(subtask)


@router.put("/{course_id}/subtasks/{subtask_id}")
async def update_subtask(
    course_id: UUID,
    subtask_id: UUID,
    data: SubtaskUpdate,
    auth: AuthContext = Depends(require_auth),
):
    """Update a subtask. Status changes stamp or clear phase dates and record history."""
    _require_edit(auth, course_id)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        subtask, changes = subtasks_db.update_subtask(course_id, subtask_id, updates, changed_by=auth.user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    if changes:
        activity_db.record_activity("subtask", subtask_id, "updated", auth.user_id, {"changes": changes})
    return envelope(subtask, changes=changes)


@router.delete("/{course_id}/subtasks/{subtask_id}")
async def delete_subtask(course_id: UUID, subtask_id: UUID, auth: AuthContext = Depends(require_auth)):
    _require_edit(auth, course_id)
    if not subtasks_db.delete_subtask(course_id, subtask_id):
        raise not_found("Subtask")
    return envelope({"id": str(subtask_id), "deleted": True})


# ============================================================================
# Dependencies
# ============================================================================


@router.get("/{course_id}/dependencies")
async def get_dependencies(
    course_id: UUID,
    max_depth: int = Query(10, ge=1, le=25),
    auth: AuthContext = Depends(require_auth),
):
    """Direct dependencies plus the upstream and downstream graph."""
    _load_course(course_id)
    graph = dependencies_db.get_dependency_graph(course_id, max_depth=max_depth)
    graph["dependencies"] = dependencies_db.list_dependencies(course_id)
    return envelope(graph)


@router.post("/{course_id}/dependencies", status_code=201)
async def add_dependency(
    course_id: UUID,
    data: DependencyCreate,
    auth: AuthContext = Depends(require_auth),
):
    """Make the course wait on another course."""
    _require_edit(auth, course_id)
    if not courses_db.get_course(data.depends_on_course_id):
        raise not_found("Dependency course")
    try:
        dependency = dependencies_db.create_dependency(course_id, data.depends_on_course_id, data.dependency_type)
    except DependencyError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    activity_db.record_activity(
        "course",
        course_id,
        "dependency_added",
        auth.user_id,
        {"depends_on": str(data.depends_on_course_id), "type": data.dependency_type},
    )
    return envelope(dependency)


@router.delete("/{course_id}/dependencies/{dependency_id}")
async def remove_dependency(course_id: UUID, dependency_id: UUID, auth: AuthContext = Depends(require_auth)):
    _require_edit(auth, course_id)
    try:
        dependencies_db.delete_dependency(course_id, dependency_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    activity_db.record_activity("course", course_id, "dependency_removed", auth.user_id, {"id": str(dependency_id)})
    return envelope({"id": str(dependency_id), "deleted": True})


# ============================================================================
# Phase history
# ============================================================================


@router.get("/{course_id}/phase-history")
async def get_phase_history(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    _load_course(course_id)
    return envelope(subtasks_db.list_phase_history(course_id))


@router.put("/{course_id}/subtasks/{subtask_id}/phase-history/{history_id}")
async def update_phase_history(
    course_id: UUID,
    subtask_id: UUID,
    history_id: UUID,
    data: PhaseHistoryUpdate,
    auth: AuthContext = Depends(require_auth),
):
    """Correct the start or finish date of a phase history entry."""
    _require_edit(auth, course_id)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    started_at = updates.get("started_at")
    finished_at = updates.get("finished_at")
    if "started_at" not in updates or "finished_at" not in updates:
        entry = subtasks_db.get_phase_history_entry(subtask_id, history_id)
        if not entry:
            raise not_found("History entry")
        if "started_at" not in updates:
            started_at = as_utc(entry.get("started_at"))
        if "finished_at" not in updates:
            finished_at = as_utc(entry.get("finished_at"))
    if started_at and finished_at and finished_at < started_at:
        raise HTTPException(status_code=400, detail="Finish date cannot be before start date")

    try:
        entry = subtasks_db.update_phase_history(subtask_id, history_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope(entry)


# ============================================================================
# Status calculation and workflow
# ============================================================================


@router.post("/{course_id}/recalculate-status")
async def recalculate_status(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    """Recompute completion and derived status from subtasks."""
    course = _load_course(course_id)
    subtasks = subtasks_db.list_subtasks(course_id)
    report = calculate_course_status(course, subtasks, phase_statuses_db.list_phase_statuses(include_inactive=True))
    courses_db.update_course(course_id, {"completion_percentage": report["completion_percentage"]})
    logger.info(
        f"Recalculated course {course_id}: {report['calculated_status']} "
        f"({report['completion_percentage']}%)"
    )
    return envelope(report)


@router.post("/{course_id}/transition")
async def transition_course(
    course_id: UUID,
    data: CourseTransitionRequest,
    auth: AuthContext = Depends(require_auth),
):
    """Move the course's workflow instance to a new state."""
    _require_edit(auth, course_id)
    instance = workflows_db.get_instance_for_course(course_id)
    if not instance:
        raise HTTPException(status_code=400, detail="Course has no active workflow")
    template = workflows_db.get_template(instance["workflow_template_id"])
    if not template:
        raise not_found("Workflow template")

    try:
        updates = apply_transition(template, instance, data.new_state)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    updated = workflows_db.update_instance(instance["id"], updates)
    workflows_db.log_transition(instance, instance.get("current_state"), data.new_state, auth.user_id, data.notes)
    course = courses_db.update_course(course_id, {"workflow_state": data.new_state})
    return envelope({"course": course, "instance": updated})
