"""Resource call groups mirroring the REST surface.

Every call returns the decoded response body, normally ``{"data": ...}``.
"""

from typing import Any, Optional

import httpx

from trainingpulse.client.errors import ApiError
from trainingpulse.client.http import ApiClient
from trainingpulse.client.state import ClientState
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)


def unwrap(body: Any, default: Any = None) -> Any:
    """The ``data`` member of a response envelope."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return default if body is None else body


class Resource:
    def __init__(self, http: ApiClient):
        self.http = http


class AuthResource(Resource):
    async def login(self, email: str, password: str):
        return await self.http.post("/auth/login", {"email": email, "password": password})

    async def register(self, user_data: dict[str, Any]):
        return await self.http.post("/auth/register", user_data)

    async def refresh(self, refresh_token: str):
        return await self.http.post("/auth/refresh", {"refreshToken": refresh_token})

    async def logout(self):
        return await self.http.post("/auth/logout")

    async def me(self):
        return await self.http.get("/users/current")


class CoursesResource(Resource):
    async def get_all(self, **params):
        return await self.http.get("/courses", params=params)

    async def get_by_id(self, course_id: str):
        return await self.http.get(f"/courses/{course_id}")

    async def get_by_user(self, user_id: str, **params):
        return await self.http.get(f"/users/{user_id}/courses", params=params)

    async def create(self, course_data: dict[str, Any]):
        return await self.http.post("/courses", course_data)

    async def update(self, course_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/courses/{course_id}", updates)

    async def delete(self, course_id: str):
        return await self.http.delete(f"/courses/{course_id}")

    async def get_assignments(self, course_id: str):
        return await self.http.get(f"/courses/{course_id}/assignments")

    async def add_assignment(self, course_id: str, assignment: dict[str, Any]):
        return await self.http.post(f"/courses/{course_id}/assignments", assignment)

    async def update_status(self, course_id: str, status: str, notes: Optional[str] = None):
        return await self.http.patch(f"/courses/{course_id}/status", {"status": status, "notes": notes})

    async def create_subtask(self, course_id: str, subtask: dict[str, Any]):
        return await self.http.post(f"/courses/{course_id}/subtasks", subtask)

    async def update_subtask(self, course_id: str, subtask_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/courses/{course_id}/subtasks/{subtask_id}", updates)

    async def delete_subtask(self, course_id: str, subtask_id: str):
        return await self.http.delete(f"/courses/{course_id}/subtasks/{subtask_id}")

    async def update_phase_history(self, course_id: str, subtask_id: str, history_id: str, dates: dict[str, Any]):
        return await self.http.put(
            f"/courses/{course_id}/subtasks/{subtask_id}/phase-history/{history_id}", dates
        )

    async def get_phase_history(self, course_id: str):
        return await self.http.get(f"/courses/{course_id}/phase-history")

    async def recalculate_status(self, course_id: str):
        return await self.http.post(f"/courses/{course_id}/recalculate-status")

    async def transition(self, course_id: str, new_state: str, notes: str = ""):
        return await self.http.post(f"/courses/{course_id}/transition", {"newState": new_state, "notes": notes})

    async def get_dependencies(self, course_id: str, **params):
        return await self.http.get(f"/courses/{course_id}/dependencies", params=params)

    async def add_dependency(self, course_id: str, depends_on_course_id: str, dependency_type: str = "blocks"):
        return await self.http.post(
            f"/courses/{course_id}/dependencies",
            {"dependsOnCourseId": depends_on_course_id, "dependencyType": dependency_type},
        )

    async def remove_dependency(self, course_id: str, dependency_id: str):
        return await self.http.delete(f"/courses/{course_id}/dependencies/{dependency_id}")


class TeamsResource(Resource):
    async def get_all(self, **params):
        return await self.http.get("/teams", params=params)

    async def get_by_id(self, team_id: str):
        return await self.http.get(f"/teams/{team_id}")

    async def create(self, team: dict[str, Any]):
        return await self.http.post("/teams", team)

    async def update(self, team_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/teams/{team_id}", updates)

    async def delete(self, team_id: str):
        return await self.http.delete(f"/teams/{team_id}")

    async def add_member(self, team_id: str, user_id: str, role: str = "member"):
        return await self.http.post(f"/teams/{team_id}/members", {"userId": user_id, "role": role})

    async def remove_member(self, team_id: str, user_id: str):
        return await self.http.delete(f"/teams/{team_id}/members/{user_id}")


class ProgramsResource(Resource):
    async def get_all(self, **params):
        return await self.http.get("/programs", params=params)

    async def get_by_id(self, program_id: str):
        return await self.http.get(f"/programs/{program_id}")

    async def create(self, program: dict[str, Any]):
        return await self.http.post("/programs", program)

    async def update(self, program_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/programs/{program_id}", updates)

    async def delete(self, program_id: str):
        return await self.http.delete(f"/programs/{program_id}")

    async def add_member(self, program_id: str, user_id: str, role: str = "member"):
        return await self.http.post(f"/programs/{program_id}/members", {"userId": user_id, "role": role})

    async def remove_member(self, program_id: str, user_id: str):
        return await self.http.delete(f"/programs/{program_id}/members/{user_id}")


class UsersResource(Resource):
    async def get_all(self, **params):
        return await self.http.get("/users", params=params)

    async def get_by_id(self, user_id: str):
        return await self.http.get(f"/users/{user_id}")

    async def create(self, user: dict[str, Any]):
        return await self.http.post("/users", user)

    async def update(self, user_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/users/{user_id}", updates)

    async def update_current(self, updates: dict[str, Any]):
        return await self.http.put("/users/current", updates)

    async def update_capacity(self, user_id: str, capacity: dict[str, Any]):
        return await self.http.put(f"/users/{user_id}/capacity", capacity)

    async def get_subtask_assignments(self, user_id: str):
        return await self.http.get(f"/users/{user_id}/subtask-assignments")

    async def get_workload(self, user_id: str):
        return await self.http.get(f"/users/{user_id}/workload")

    async def deactivate(self, user_id: str):
        return await self.http.delete(f"/users/{user_id}")


class AnalyticsResource(Resource):
    async def get_bottlenecks(self, **params):
        return await self.http.get("/analytics/bottlenecks", params=params)

    async def get_workload(self, **params):
        return await self.http.get("/analytics/workload", params=params)

    async def get_course_bottlenecks(self, course_id: str):
        return await self.http.get(f"/analytics/course/{course_id}/bottlenecks")


class WorkflowsResource(Resource):
    async def get_templates(self, **params):
        return await self.http.get("/workflows/templates", params=params)

    async def get_by_id(self, template_id: str):
        return await self.http.get(f"/workflows/templates/{template_id}")

    async def get_activity(self, template_id: str, **params):
        return await self.http.get(f"/workflows/templates/{template_id}/activity", params=params)

    async def create_template(self, template: dict[str, Any]):
        return await self.http.post("/workflows/templates", template)

    async def update_template(self, template_id: str, template: dict[str, Any]):
        return await self.http.put(f"/workflows/templates/{template_id}", template)

    async def delete_template(self, template_id: str):
        return await self.http.delete(f"/workflows/templates/{template_id}")

    async def add_stage(self, template_id: str, stage: dict[str, Any]):
        return await self.http.post(f"/workflows/templates/{template_id}/stages", stage)

    async def update_stage(self, template_id: str, stage_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/workflows/templates/{template_id}/stages/{stage_id}", updates)

    async def delete_stage(self, template_id: str, stage_id: str):
        return await self.http.delete(f"/workflows/templates/{template_id}/stages/{stage_id}")

    async def add_transition(self, template_id: str, transition: dict[str, Any]):
        return await self.http.post(f"/workflows/templates/{template_id}/transitions", transition)

    async def delete_transition(self, template_id: str, transition_id: str):
        return await self.http.delete(f"/workflows/templates/{template_id}/transitions/{transition_id}")

    async def get_instances(self, **params):
        return await self.http.get("/workflows/instances", params=params)

    async def get_instance(self, course_id: str):
        return await self.http.get(f"/workflows/instances/{course_id}")

    async def create_instance(self, course_id: str, template_id: str):
        return await self.http.post(f"/workflows/instances/{course_id}", {"templateId": template_id})

    async def update_instance(self, instance_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/workflows/instances/{instance_id}", updates)

    async def transition(self, instance_id: str, action: str, notes: str = "", assign_to_user: Optional[str] = None):
        return await self.http.post(
            f"/workflows/instances/{instance_id}/transition",
            {"action": action, "notes": notes, "assignToUser": assign_to_user},
        )


class BulkResource(Resource):
    async def preview(self, filter: dict[str, Any], updates: dict[str, Any], options: Optional[dict[str, Any]] = None):
        return await self.http.post("/bulk/preview", {"filter": filter, "updates": updates, "options": options or {}})

    async def execute(self, preview_id: str, confirm_impact: bool = False):
        return await self.http.post("/bulk/execute", {"previewId": preview_id, "confirmImpact": confirm_impact})

    async def get_history(self, **params):
        return await self.http.get("/bulk/history", params=params)


class NotificationsResource(Resource):
    async def get_digest(self, **params):
        return await self.http.get("/notifications/digest", params=params)

    async def get_all(self, **params):
        return await self.http.get("/notifications", params=params)

    async def get_stats(self):
        return await self.http.get("/notifications/stats")

    async def mark_as_read(self, notification_id: str):
        return await self.http.put(f"/notifications/{notification_id}/read")

    async def mark_all_as_read(self):
        return await self.http.put("/notifications/read-all")

    async def delete(self, notification_id: str):
        return await self.http.delete(f"/notifications/{notification_id}")

    async def get_preferences(self):
        return await self.http.get("/notifications/preferences")

    async def update_preferences(self, preferences: dict[str, Any]):
        return await self.http.put("/notifications/preferences", preferences)

    async def send_test(self, test_data: Optional[dict[str, Any]] = None):
        return await self.http.post("/notifications/test", test_data or {})

    async def cleanup(self, days_to_keep: int = 30):
        return await self.http.post("/notifications/cleanup", {"daysToKeep": days_to_keep})


class ActivityResource(Resource):
    async def get_recent(self, **params):
        return await self.http.get("/activities", params=params)

    async def get_by_program(self, program_id: str, **params):
        return await self.http.get(f"/activities/program/{program_id}", params=params)

    async def get_by_entity(self, entity_type: str, entity_id: str, **params):
        return await self.http.get(f"/activities/{entity_type}/{entity_id}", params=params)


class CommentsResource(Resource):
    async def get_by_entity(self, entity_type: str, entity_id: str, **params):
        return await self.http.get(f"/comments/{entity_type}/{entity_id}", params=params)

    async def create(self, entity_type: str, entity_id: str, content: str, **fields):
        return await self.http.post(
            "/comments", {"entityType": entity_type, "entityId": entity_id, "content": content, **fields}
        )

    async def reply(self, parent_id: str, content: str, **fields):
        return await self.http.post(f"/comments/{parent_id}/reply", {"content": content, **fields})

    async def update(self, comment_id: str, content: str, **fields):
        return await self.http.put(f"/comments/{comment_id}", {"content": content, **fields})

    async def delete(self, comment_id: str):
        return await self.http.delete(f"/comments/{comment_id}")


class SettingsResource(Resource):
    async def get_all(self):
        return await self.http.get("/settings")

    async def update(self, settings: dict[str, Any]):
        return await self.http.put("/settings", settings)

    async def get(self, key: str):
        return await self.http.get(f"/settings/{key}")

    async def set(self, key: str, value: Any):
        return await self.http.put(f"/settings/{key}", {"value": value})


class CrudResource(Resource):
    """Plain list/get/create/update/delete over one collection path."""

    path = ""

    async def get_all(self, **params):
        return await self.http.get(self.path, params=params)

    async def get_by_id(self, item_id: str):
        return await self.http.get(f"{self.path}/{item_id}")

    async def create(self, data: dict[str, Any]):
        return await self.http.post(self.path, data)

    async def update(self, item_id: str, data: dict[str, Any]):
        return await self.http.put(f"{self.path}/{item_id}", data)

    async def delete(self, item_id: str):
        return await self.http.delete(f"{self.path}/{item_id}")


class StatusesResource(CrudResource):
    path = "/statuses"


class PrioritiesResource(CrudResource):
    path = "/priorities"


class ModalitiesResource(CrudResource):
    path = "/modalities"

    async def get_tasks(self, modality: Optional[str] = None):
        return await self.http.get(f"/modalities/tasks/{modality}" if modality else "/modalities/tasks")

    async def create_task(self, task: dict[str, Any]):
        return await self.http.post("/modalities/tasks", task)

    async def update_task(self, task_id: str, updates: dict[str, Any]):
        return await self.http.put(f"/modalities/tasks/{task_id}", updates)

    async def delete_task(self, task_id: str):
        return await self.http.delete(f"/modalities/tasks/{task_id}")

    async def reorder_tasks(self, modality: str, task_ids: list[str]):
        return await self.http.post("/modalities/tasks/reorder", {"modality": modality, "taskIds": task_ids})


class RolesResource(CrudResource):
    path = "/roles"


class PermissionsResource(CrudResource):
    path = "/permissions"

    async def get_grouped(self):
        return await self.http.get("/permissions/grouped")

    async def get_categories(self):
        return await self.http.get("/permissions/categories")


class UserPermissionsResource(Resource):
    async def get_current(self):
        return await self.http.get("/user-permissions")

    async def get_current_role(self):
        return await self.http.get("/user-permissions/role")


class PhaseStatusesResource(CrudResource):
    path = "/phase-statuses"

    async def reorder(self, status_ids: list[str]):
        return await self.http.post("/phase-statuses/reorder", {"statusIds": status_ids})


class CustomFieldsResource(CrudResource):
    path = "/custom-fields"

    async def get_values(self, entity_type: str, entity_id: str):
        return await self.http.get(f"/custom-fields/values/{entity_type}/{entity_id}")

    async def set_values(self, entity_type: str, entity_id: str, values: dict[str, Any]):
        return await self.http.put(f"/custom-fields/values/{entity_type}/{entity_id}", {"values": values})


class TrainingPulseClient:
    """All resource groups over one ``ApiClient`` plus session helpers."""

    def __init__(self, http: ApiClient):
        self.http = http
        self.state: ClientState = http.state
        self.auth = AuthResource(http)
        self.courses = CoursesResource(http)
        self.teams = TeamsResource(http)
        self.programs = ProgramsResource(http)
        self.comments = CommentsResource(http)
        self.activity = ActivityResource(http)
        self.users = UsersResource(http)
        self.analytics = AnalyticsResource(http)
        self.workflows = WorkflowsResource(http)
        self.bulk = BulkResource(http)
        self.notifications = NotificationsResource(http)
        self.settings = SettingsResource(http)
        self.statuses = StatusesResource(http)
        self.priorities = PrioritiesResource(http)
        self.modalities = ModalitiesResource(http)
        self.roles = RolesResource(http)
        self.permissions = PermissionsResource(http)
        self.user_permissions = UserPermissionsResource(http)
        self.phase_statuses = PhaseStatusesResource(http)
        self.custom_fields = CustomFieldsResource(http)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate and store tokens and the user profile."""
        data = unwrap(await self.auth.login(email, password), {})
        self.state.set_tokens(data["accessToken"], data.get("refreshToken"))
        self.state.set_user(data["user"])
        logger.info(f"Logged in as {data['user'].get('email')}")
        return data["user"]

    async def logout(self) -> None:
        """Tell the server, then clear local auth whatever the server said."""
        try:
            await self.auth.logout()
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"Server logout failed, clearing local session anyway: {e}")
        finally:
            self.state.clear_auth()

    async def current_user(self) -> dict[str, Any]:
        user = unwrap(await self.auth.me(), {})
        self.state.set_user(user)
        return user

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated
