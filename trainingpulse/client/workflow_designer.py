"""Workflow template designer: an ordered list of positioned stages saved as a linear chain."""

import copy
import time
from typing import Any, Optional
from uuid import uuid4

import httpx

from trainingpulse.client.errors import ApiError, AuthenticationExpired, ValidationFailed
from trainingpulse.client.notifier import LoggingNotifier, Notifier
from trainingpulse.client.query_cache import Mutation, QueryClient
from trainingpulse.client.resources import TrainingPulseClient, unwrap
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_workflows import StageType

logger = get_logger(__name__)

STAGE_SPACING = 300
START_X = 50
START_Y = 150

STAGE_LABELS = {
    StageType.PLANNING.value: "Planning",
    StageType.CONTENT_DEVELOPMENT.value: "Content Development",
    StageType.REVIEW.value: "Review",
    StageType.APPROVAL.value: "Approval",
    StageType.LEGAL_REVIEW.value: "Legal Review",
    StageType.PUBLISHED.value: "Published",
    StageType.ARCHIVED.value: "Archived",
}

# First matching keyword wins
_TYPE_KEYWORDS = (
    (("planning",), StageType.PLANNING),
    (("content", "development"), StageType.CONTENT_DEVELOPMENT),
    (("review",), StageType.REVIEW),
    (("approval",), StageType.APPROVAL),
    (("legal",), StageType.LEGAL_REVIEW),
    (("published",), StageType.PUBLISHED),
    (("archived",), StageType.ARCHIVED),
)


def infer_stage_type(state_name: Optional[str]) -> str:
    """Guess a stage type from its state name, defaulting to planning."""
    name = (state_name or "").lower()
    for keywords, stage_type in _TYPE_KEYWORDS:
        if any(k in name for k in keywords):
            return stage_type.value
    return StageType.PLANNING.value


def _temp_id() -> str:
    return f"temp_{uuid4().hex}"


def _prepare_stages(states: list[dict[str, Any]]) -> list[dict[str, Any]]:
    stages = []
    for index, state in enumerate(states):
        stage = dict(state)
        if stage.get("position_x") is None:
            stage["position_x"] = START_X + index * STAGE_SPACING
            stage["position_y"] = START_Y
        if not stage.get("stage_type"):
            stage["stage_type"] = infer_stage_type(stage.get("state_name"))
        stage.setdefault("id", _temp_id())
        stages.append(stage)
    return stages


class WorkflowDesigner:
    """
    Editing state for one workflow template.

    Stage order is the list order. Positions only matter for the canvas and
    are saved as they are; transitions are always regenerated as
    ``stage[i] -> stage[i + 1]``.
    """

    def __init__(
        self,
        name: str = "",
        description: str = "",
        states: Optional[list[dict[str, Any]]] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.notifier = notifier or LoggingNotifier()
        self._initial = {"name": name, "description": description, "states": copy.deepcopy(states or [])}
        self._reset()

    def _reset(self) -> None:
        self.name = self._initial["name"] or ""
        self.description = self._initial["description"] or ""
        self.stages = _prepare_stages(copy.deepcopy(self._initial["states"]))
        self.has_unsaved_changes = False
        self._dragging: Optional[str] = None
        self._drag_offset = (0.0, 0.0)

    @classmethod
    def from_template(cls, template: dict[str, Any], notifier: Optional[Notifier] = None) -> "WorkflowDesigner":
        return cls(template.get("name") or "", template.get("description") or "", template.get("states"), notifier)

    @classmethod
    def for_duplicate(
        cls,
        template: dict[str, Any],
        notifier: Optional[Notifier] = None,
        suffix: Optional[int] = None,
    ) -> "WorkflowDesigner":
        """A new designer seeded from ``template`` with fresh ids and unique state names."""
        suffix = suffix if suffix is not None else int(time.time() * 1000)
        states = [
            {**state, "id": _temp_id(), "state_name": f"{state['state_name']}_copy_{suffix}"}
            for state in template.get("states") or []
        ]
        designer = cls(f"Copy of {template.get('name', '')}", template.get("description") or "", states, notifier)
        designer.has_unsaved_changes = True
        return designer

    def _stage_index(self, stage_id: str) -> int:
        for index, stage in enumerate(self.stages):
            if stage["id"] == stage_id:
                return index
        raise KeyError(f"Unknown stage: {stage_id}")

    # ========================================================================
    # Editing
    # ========================================================================

    def set_name(self, name: str) -> None:
        self.name = name
        self.has_unsaved_changes = True

    def set_description(self, description: str) -> None:
        self.description = description
        self.has_unsaved_changes = True

    def add_stage(self, stage_type: str, display_name: Optional[str] = None) -> dict[str, Any]:
        """Append a stage of ``stage_type`` to the right of the last one."""
        stage_type = StageType(stage_type).value
        stage = {
            "id": _temp_id(),
            "state_name": f"{stage_type}_{int(time.time() * 1000)}_{len(self.stages)}",
            "display_name": display_name or STAGE_LABELS[stage_type],
            "stage_type": stage_type,
            "position_x": START_X + len(self.stages) * STAGE_SPACING,
            "position_y": START_Y,
            "is_initial": not self.stages,
            "is_final": False,
        }
        self.stages.append(stage)
        self.has_unsaved_changes = True
        return stage

    def delete_stage(self, stage_id: str) -> None:
        index = self._stage_index(stage_id)
        del self.stages[index]
        if self._dragging == stage_id:
            self.end_drag()
        self.has_unsaved_changes = True

    def move_stage_up(self, index: int) -> bool:
        if index <= 0 or index >= len(self.stages):
            return False
        self.stages[index - 1], self.stages[index] = self.stages[index], self.stages[index - 1]
        self.has_unsaved_changes = True
        return True

    def move_stage_down(self, index: int) -> bool:
        if index < 0 or index >= len(self.stages) - 1:
            return False
        self.stages[index], self.stages[index + 1] = self.stages[index + 1], self.stages[index]
        self.has_unsaved_changes = True
        return True

    def begin_drag(self, stage_id: str, offset: tuple[float, float] = (0.0, 0.0)) -> None:
        """Start dragging. ``offset`` is the pointer position inside the stage box."""
        self._stage_index(stage_id)
        self._dragging = stage_id
        self._drag_offset = offset

    def drag_to(self, x: float, y: float) -> Optional[dict[str, Any]]:
        """Move the dragged stage to canvas point (x, y), clamped to the canvas origin."""
        if self._dragging is None:
            return None
        stage = self.stages[self._stage_index(self._dragging)]
        stage["position_x"] = max(0, x - self._drag_offset[0])
        stage["position_y"] = max(0, y - self._drag_offset[1])
        return stage

    def end_drag(self) -> None:
        self._dragging = None
        self._drag_offset = (0.0, 0.0)

    @property
    def dragging(self) -> Optional[str]:
        return self._dragging

    def cancel(self) -> bool:
        """Discard edits, asking first when there are unsaved changes. Returns True when reset."""
        if self.has_unsaved_changes and not self.notifier.confirm(
            "You have unsaved changes. Are you sure you want to cancel?"
        ):
            return False
        self._reset()
        return True

    # ========================================================================
    # Payload
    # ========================================================================

    def connections(self) -> list[tuple[dict[str, Any], dict[str, Any]]]:
        return [(self.stages[i], self.stages[i + 1]) for i in range(len(self.stages) - 1)]

    def build_payload(self) -> dict[str, Any]:
        last = len(self.stages) - 1
        states = [
            {**stage, "order": index, "is_initial": index == 0, "is_final": index == last}
            for index, stage in enumerate(self.stages)
        ]
        transitions = [
            {
                "from_state": source["state_name"],
                "to_state": target["state_name"],
                "condition": "auto",
                "order": index,
            }
            for index, (source, target) in enumerate(self.connections())
        ]
        return {
            "name": self.name,
            "description": self.description,
            "is_active": True,
            "states": states,
            "transitions": transitions,
        }

    def validate(self) -> None:
        if not self.name.strip():
            raise ValidationFailed("Please enter a workflow name")
        if not self.stages:
            raise ValidationFailed("Please add at least one stage to the workflow")

    async def save(
        self,
        client: TrainingPulseClient,
        query_client: QueryClient,
        template_id: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Create or update the template.

        Validation failures are reported through the notifier and re-raised.
        Server failures are reported and return None; there is no retry.
        """
        try:
            self.validate()
        except ValidationFailed as e:
            self.notifier.error(str(e))
            raise

        async def write(payload: dict[str, Any]):
            if template_id:
                return await client.workflows.update_template(template_id, payload)
            return await client.workflows.create_template(payload)

        async def refresh(result, variables, context) -> None:
            await query_client.invalidate(("workflow-templates",))
            if template_id:
                await query_client.invalidate(("workflow-template", template_id))

        mutation = Mutation(query_client, write, on_success=refresh)
        try:
            saved = unwrap(await mutation.mutate(self.build_payload()), {})
        except AuthenticationExpired:
            raise
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"Failed to save workflow {self.name!r}: {e}")
            self.notifier.error("Failed to save workflow. Please try again.")
            return None

        self.has_unsaved_changes = False
        self._initial = {"name": self.name, "description": self.description, "states": copy.deepcopy(self.stages)}
        self.notifier.success("Workflow saved successfully!")
        logger.info(f"Saved workflow template {saved.get('id', template_id)}")
        return saved
