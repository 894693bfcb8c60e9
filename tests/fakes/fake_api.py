"""Fake in-memory TrainingPulse API served through ``httpx.MockTransport``."""

import asyncio
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import httpx

from trainingpulse.client.http import ApiClient
from trainingpulse.client.resources import TrainingPulseClient
from trainingpulse.client.state import ClientState

BASE_URL = "http://testserver/api/v1"
PREFIX = "/api/v1"

ADMIN = {"id": "user-admin", "email": "admin@example.com", "name": "Admin", "role": "admin", "is_active": True}

Handler = Callable[[httpx.Request, Dict[str, str]], Tuple[int, Any]]


class FakeApi:
    """In-memory API implementation for client tests."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all stores to initial state."""
        self.requests: List[httpx.Request] = []
        self.valid_tokens = {"access-1"}
        self.refresh_tokens = {"refresh-1": "access-2"}
        self.user = dict(ADMIN)
        self.courses: Dict[str, Dict[str, Any]] = {}
        self.templates: Dict[str, Dict[str, Any]] = {}
        self.static: Dict[Tuple[str, str], Any] = {}
        self.failures: List[Tuple[str, re.Pattern, int]] = []
        self.delay = 0.0
        self._routes: List[Tuple[str, re.Pattern, Handler]] = []
        self._register_routes()

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def add_course(self, subtasks: Optional[List[Dict[str, Any]]] = None, **fields) -> Dict[str, Any]:
        course_id = fields.pop("id", str(uuid4()))
        course = {"id": course_id, "title": "Course", "status": "development", "subtasks": [], **fields}
        for index, subtask in enumerate(subtasks or []):
            course["subtasks"].append(
                {"id": str(uuid4()), "course_id": course_id, "order_index": index, "weight": 1, **subtask}
            )
        self.courses[course_id] = course
        return course

    def respond(self, method: str, path: str, data: Any) -> None:
        """Serve ``{"data": data}`` for an exact method and path."""
        self.static[(method, path)] = {"data": data}

    def fail(self, method: str, pattern: str, status: int = 500) -> None:
        """Make matching requests fail with ``status``."""
        self.failures.append((method, re.compile(pattern), status))

    def client(self, tmp_path, authenticated: bool = True) -> TrainingPulseClient:
        state = ClientState(tmp_path / "state.json")
        if authenticated:
            state.set_tokens("access-1", "refresh-1")
            state.set_user(dict(self.user))
        http = ApiClient(BASE_URL, state, transport=httpx.MockTransport(self))
        return TrainingPulseClient(http)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == PREFIX + path]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)

        path = request.url.path[len(PREFIX):]
        public = path in ("/auth/login", "/auth/refresh")
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if not public and token not in self.valid_tokens:
            return httpx.Response(401, json={"detail": "Not authenticated"})

        for method, pattern, status in self.failures:
            if request.method == method and pattern.fullmatch(path):
                return httpx.Response(status, json={"detail": f"Injected failure for {path}"})

        if (request.method, path) in self.static:
            return httpx.Response(200, json=self.static[(request.method, path)])

        for method, pattern, handler in self._routes:
            match = pattern.fullmatch(path)
            if request.method == method and match:
                status, body = handler(request, match.groupdict())
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"detail": f"No route for {request.method} {path}"})

    def _route(self, method: str, pattern: str, handler: Handler) -> None:
        self._routes.append((method, re.compile(pattern), handler))

    @staticmethod
    def _body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def _register_routes(self) -> None:
        self._route("POST", r"/auth/login", self._login)
        self._route("POST", r"/auth/refresh", self._refresh)
        self._route("POST", r"/auth/logout", lambda r, p: (200, {"data": {"loggedOut": True}}))
        self._route("GET", r"/users/current", lambda r, p: (200, {"data": self.user}))
        self._route("GET", r"/courses", self._list_courses)
        self._route("GET", r"/courses/(?P<course_id>[^/]+)", self._get_course)
        self._route("POST", r"/courses/(?P<course_id>[^/]+)/subtasks", self._create_subtask)
        self._route("PUT", r"/courses/(?P<course_id>[^/]+)/subtasks/(?P<subtask_id>[^/]+)", self._update_subtask)
        self._route("DELETE", r"/courses/(?P<course_id>[^/]+)/subtasks/(?P<subtask_id>[^/]+)", self._delete_subtask)
        self._route("GET", r"/workflows/templates", lambda r, p: (200, {"data": list(self.templates.values())}))
        self._route("POST", r"/workflows/templates", self._create_template)
        self._route("PUT", r"/workflows/templates/(?P<template_id>[^/]+)", self._update_template)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _login(self, request, params):
        body = self._body(request)
        if body.get("password") != "secret":
            return 401, {"detail": "Invalid email or password"}
        return 200, {"data": {"accessToken": "access-1", "refreshToken": "refresh-1", "user": self.user}}

    def _refresh(self, request, params):
        refresh_token = (self._body(request) or {}).get("refreshToken")
        access = self.refresh_tokens.get(refresh_token)
        if not access:
            return 401, {"detail": "Invalid refresh token"}
        self.valid_tokens.add(access)
        return 200, {"data": {"accessToken": access, "refreshToken": f"{refresh_token}-next"}}

    def _list_courses(self, request, params):
        courses = list(self.courses.values())
        return 200, {"data": courses, "pagination": {"total": len(courses)}}

    def _get_course(self, request, params):
        course = self.courses.get(params["course_id"])
        if not course:
            return 404, {"detail": "Course not found"}
        return 200, {"data": json.loads(json.dumps(course))}

    def _find_subtask(self, params):
        course = self.courses.get(params["course_id"]) or {"subtasks": []}
        return next((s for s in course["subtasks"] if s["id"] == params["subtask_id"]), None)

    def _create_subtask(self, request, params):
        course = self.courses.get(params["course_id"])
        if not course:
            return 404, {"detail": "Course not found"}
        subtask = {"id": str(uuid4()), "course_id": course["id"], **self._body(request)}
        course["subtasks"].append(subtask)
        return 201, {"data": subtask}

    def _update_subtask(self, request, params):
        subtask = self._find_subtask(params)
        if not subtask:
            return 404, {"detail": "Subtask not found"}
        updates = self._body(request)
        changes = {k: {"from": subtask.get(k), "to": v} for k, v in updates.items() if subtask.get(k) != v}
        subtask.update(updates)
        return 200, {"data": dict(subtask), "changes": changes}

    def _delete_subtask(self, request, params):
        subtask = self._find_subtask(params)
        if not subtask:
            return 404, {"detail": "Subtask not found"}
        self.courses[params["course_id"]]["subtasks"].remove(subtask)
        return 200, {"data": {"id": subtask["id"], "deleted": True}}

    def _create_template(self, request, params):
        template = {"id": str(uuid4()), **self._body(request)}
        self.templates[template["id"]] = template
        return 201, {"data": template}

    def _update_template(self, request, params):
        template = self.templates.get(params["template_id"])
        if not template:
            return 404, {"detail": "Workflow template not found"}
        template.update(self._body(request))
        return 200, {"data": template}
