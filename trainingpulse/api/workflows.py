"""Workflow API endpoints: templates, stages, transitions and course instances."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, forbidden, not_found
from trainingpulse.core import permissions
from trainingpulse.core.auth_middleware import AuthContext, require_auth, require_manager
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_workflows import (
    InstanceCreate,
    InstanceTransitionRequest,
    InstanceUpdate,
    StageUpdate,
    WorkflowStateIn,
    WorkflowTemplateCreate,
    WorkflowTemplateUpdate,
    WorkflowTransitionIn,
)
from trainingpulse.core.workflow_engine import (
    InvalidTemplate,
    InvalidTransition,
    allowed_targets,
    apply_transition,
    initial_state,
    transition_payload,
    validate_template,
)
from trainingpulse.db import courses as courses_db
from trainingpulse.db import workflows as workflows_db

logger = get_logger(__name__)

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _load_template(template_id: UUID) -> dict:
    template = workflows_db.get_template(template_id)
    if not template:
        raise not_found("Workflow template")
    return template


# ============================================================================
# Templates
# ============================================================================


@router.get("/templates")
async def list_templates(is_active: Optional[bool] = None, auth: AuthContext = Depends(require_auth)):
    return envelope(workflows_db.list_templates(is_active=is_active))


@router.get("/templates/{template_id}")
async def get_template(template_id: UUID, auth: AuthContext = Depends(require_auth)):
    return envelope(_load_template(template_id))


@router.post("/templates", status_code=201)
async def create_template(data: WorkflowTemplateCreate, auth: AuthContext = Depends(require_manager)):
    """Create a template from the designer payload (states plus linear transitions)."""
    payload = data.model_dump(mode="json")
    try:
        validate_template(payload["states"], payload["transitions"])
    except InvalidTemplate as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        template = workflows_db.create_template(payload, created_by=auth.user_id)
    except Exception as e:
        logger.exception(f"Failed to create workflow template {data.name!r}")
        raise HTTPException(status_code=500, detail="Failed to create workflow template") from e
    return envelope(template)


@router.put("/templates/{template_id}")
async def update_template(
    template_id: UUID,
    data: WorkflowTemplateUpdate,
    auth: AuthContext = Depends(require_manager),
):
    existing = _load_template(template_id)
    payload = data.model_dump(mode="json", exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="No fields to update")

    if payload.get("states") is not None or payload.get("transitions") is not None:
        states = payload.get("states") if payload.get("states") is not None else existing["states"]
        carried = payload.get("transitions") is None
        if carried:
            # Replacing the states rewrites the whole graph, so the stored transitions go with them
            payload["transitions"] = transition_payload(existing["transitions"])
        try:
            validate_template(states, payload["transitions"])
        except InvalidTemplate as e:
            detail = str(e)
            if carried:
                detail += "; send transitions together with renamed or removed stages"
            raise HTTPException(status_code=400, detail=detail) from e

    try:
        return envelope(workflows_db.update_template(template_id, payload))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/templates/{template_id}")
async def delete_template(template_id: UUID, auth: AuthContext = Depends(require_manager)):
    """Delete a template that no open workflow instance uses."""
    _load_template(template_id)
    active = workflows_db.count_active_instances(template_id)
    if active:
        raise HTTPException(
            status_code=409,
            detail=f"Template is used by {active} active workflow instance(s)",
        )
    workflows_db.delete_template(template_id)
    return envelope({"id": str(template_id), "deleted": True})


@router.get("/templates/{template_id}/activity")
async def get_template_activity(
    template_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    _load_template(template_id)
    return envelope(workflows_db.list_template_activity(template_id, limit=limit, offset=offset))


# ============================================================================
# Stages and transitions
# ============================================================================


@router.post("/templates/{template_id}/stages", status_code=201)
async def add_stage(template_id: UUID, stage: WorkflowStateIn, auth: AuthContext = Depends(require_manager)):
    template = _load_template(template_id)
    if any(s["state_name"] == stage.state_name for s in template["states"]):
        raise HTTPException(status_code=400, detail=f"Stage '{stage.state_name}' already exists")
    return envelope(workflows_db.add_stage(template_id, stage.model_dump(mode="json")))


@router.put("/templates/{template_id}/stages/{stage_id}")
async def update_stage(
    template_id: UUID,
    stage_id: UUID,
    data: StageUpdate,
    auth: AuthContext = Depends(require_manager),
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return envelope(workflows_db.update_stage(template_id, stage_id, updates))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/templates/{template_id}/stages/{stage_id}")
async def delete_stage(template_id: UUID, stage_id: UUID, auth: AuthContext = Depends(require_manager)):
    try:
        workflows_db.delete_stage(template_id, stage_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope({"id": str(stage_id), "deleted": True})


@router.post("/templates/{template_id}/transitions", status_code=201)
async def add_transition(
    template_id: UUID,
    transition: WorkflowTransitionIn,
    auth: AuthContext = Depends(require_manager),
):
    template = _load_template(template_id)
    names = {s["state_name"] for s in template["states"]}
    for end in (transition.from_state, transition.to_state):
        if end not in names:
            raise HTTPException(status_code=400, detail=f"Transition references unknown stage '{end}'")
    return envelope(workflows_db.add_transition(template_id, transition.model_dump()))


@router.delete("/templates/{template_id}/transitions/{transition_id}")
async def delete_transition(template_id: UUID, transition_id: UUID, auth: AuthContext = Depends(require_manager)):
    workflows_db.delete_transition(template_id, transition_id)
    return envelope({"id": str(transition_id), "deleted": True})


# ============================================================================
# Instances
# ============================================================================


@router.get("/instances")
async def list_instances(
    is_complete: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=200),
    auth: AuthContext = Depends(require_auth),
):
    return envelope(workflows_db.list_instances(is_complete=is_complete, limit=limit))


@router.get("/instances/{course_id}")
async def get_course_instance(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    """The course's open workflow instance with its template and allowed next states."""
    instance = workflows_db.get_instance_for_course(course_id)
    if not instance:
        raise not_found("Workflow instance")
    template = workflows_db.get_template(instance["workflow_template_id"])
    instance["template"] = template
    instance["allowed_transitions"] = allowed_targets(template, instance["current_state"]) if template else []
    return envelope(instance)


@router.post("/instances/{course_id}", status_code=201)
async def create_instance(course_id: UUID, data: InstanceCreate, auth: AuthContext = Depends(require_manager)):
    """Start a workflow for a course at the template's initial state."""
    if not courses_db.get_course(course_id):
        raise not_found("Course")
    if workflows_db.get_instance_for_course(course_id):
        raise HTTPException(status_code=409, detail="Course already has an active workflow")
    template = _load_template(data.template_id)
    state = initial_state(template)
    if not state:
        raise HTTPException(status_code=400, detail="Workflow template has no stages")

    instance = workflows_db.create_instance(course_id, data.template_id, state)
    workflows_db.log_transition(instance, None, state, auth.user_id, "Workflow started")
    courses_db.update_course(course_id, {"workflow_state": state})
    return envelope(instance)


@router.put("/instances/{instance_id}")
async def update_instance(instance_id: UUID, data: InstanceUpdate, auth: AuthContext = Depends(require_manager)):
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        return envelope(workflows_db.update_instance(instance_id, updates))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/instances/{instance_id}/transition")
async def transition_instance(
    instance_id: UUID,
    data: InstanceTransitionRequest,
    auth: AuthContext = Depends(require_auth),
):
    """Move an instance to the state named by ``action``."""
    instance = workflows_db.get_instance(instance_id)
    if not instance:
        raise not_found("Workflow instance")
    template = _load_template(instance["workflow_template_id"])

    current = next(
        (s for s in template["states"] if s["state_name"] == instance.get("current_state")),
        None,
    )
    needs_approval = bool(current and (current.get("state_config") or {}).get("requires_approval"))
    if needs_approval and not permissions.can_approve_workflow(auth.user, current):
        raise forbidden("You cannot approve this stage")

    try:
        updates = apply_transition(template, instance, data.action)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    updated = workflows_db.update_instance(instance_id, updates)
    workflows_db.log_transition(instance, instance.get("current_state"), data.action, auth.user_id, data.notes)
    courses_db.update_course(instance["course_id"], {"workflow_state": data.action})
    if data.assign_to_user:
        courses_db.add_assignment(
            instance["course_id"], data.assign_to_user, "reviewer", assigned_by=auth.user_id
        )
    logger.info(
        f"Workflow {instance_id} moved {instance.get('current_state')!r} -> {data.action!r} by {auth.user_id}"
    )
    return envelope(updated)
