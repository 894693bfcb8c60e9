"""Routing shell: URL patterns to page loaders behind an auth gate."""

import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from trainingpulse.client import views
from trainingpulse.client.errors import AuthenticationExpired
from trainingpulse.client.query_cache import QueryClient
from trainingpulse.client.resources import TrainingPulseClient, unwrap
from trainingpulse.client.state import ClientState
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/dashboard"
NOT_FOUND = "not_found"

Loader = Callable[[dict[str, str]], Awaitable[Any]]

_PARAM = re.compile(r"\{(\w+)\}")


def _compile(pattern: str) -> re.Pattern:
    parts = _PARAM.split(pattern.strip("/"))
    # split() alternates literal text and parameter names
    regex = "".join(
        f"(?P<{part}>[^/]+)" if i % 2 else re.escape(part)
        for i, part in enumerate(parts)
    )
    return re.compile(f"^/{regex}/?$" if regex else "^/$")


@dataclass
class Route:
    pattern: str
    name: str
    loader: Optional[Loader] = None
    protected: bool = True
    public_only: bool = False
    regex: re.Pattern = field(init=False, repr=False)

    def __post_init__(self):
        self.regex = _compile(self.pattern)

    def match(self, path: str) -> Optional[dict[str, str]]:
        found = self.regex.match(path)
        return found.groupdict() if found else None


@dataclass
class Resolution:
    route: Optional[Route]
    params: dict[str, str] = field(default_factory=dict)
    redirect: Optional[str] = None

    @property
    def name(self) -> str:
        return self.route.name if self.route else NOT_FOUND


@dataclass
class Page:
    name: str
    path: str
    params: dict[str, str]
    data: Any = None


class Router:
    """
    Resolves paths in registration order.

    Protected routes send unauthenticated users to ``/login``; public-only
    routes (the login page) send authenticated users home.
    """

    def __init__(self, state: ClientState):
        self.state = state
        self.routes: list[Route] = []
        self.redirects: dict[str, str] = {}

    def add(self, pattern: str, name: str, loader: Optional[Loader] = None, **options) -> Route:
        route = Route(pattern, name, loader, **options)
        self.routes.append(route)
        return route

    def redirect(self, path: str, target: str) -> None:
        self.redirects[path] = target

    def resolve(self, path: str) -> Resolution:
        path = "/" + path.split("?", 1)[0].strip("/")
        if path in self.redirects:
            return Resolution(None, redirect=self.redirects[path])

        for route in self.routes:
            params = route.match(path)
            if params is None:
                continue
            if route.protected and not self.state.is_authenticated:
                return Resolution(route, params, redirect=LOGIN_PATH)
            if route.public_only and self.state.is_authenticated:
                return Resolution(route, params, redirect=HOME_PATH)
            return Resolution(route, params)
        return Resolution(None)

    async def navigate(self, path: str, max_redirects: int = 5) -> Page:
        """Resolve ``path``, following redirects, and run the page loader."""
        for _ in range(max_redirects + 1):
            resolution = self.resolve(path)
            if resolution.redirect:
                logger.debug(f"Redirecting {path} -> {resolution.redirect}")
                path = resolution.redirect
                continue
            if resolution.route is None:
                logger.info(f"No route for {path}")
                return Page(NOT_FOUND, path, {})

            route = resolution.route
            if route.loader is None:
                return Page(route.name, path, resolution.params)
            try:
                data = await route.loader(resolution.params)
            except AuthenticationExpired:
                logger.info(f"Session expired while loading {path}")
                path = LOGIN_PATH
                continue
            return Page(route.name, path, resolution.params, data)
        raise RuntimeError(f"Too many redirects while navigating to {path}")


def build_router(client: TrainingPulseClient, query_client: QueryClient) -> Router:
    """The application's routes wired to their page loaders."""
    router = Router(client.state)

    async def current_user() -> dict[str, Any]:
        return client.state.user or await client.current_user()

    async def dashboard(params):
        return await views.load_dashboard(client, await current_user())

    async def courses(params):
        return unwrap(await client.courses.get_all(), [])

    async def course_detail(params):
        return await views.load_course_detail(client, query_client, params["id"])

    async def programs(params):
        return unwrap(await client.programs.get_all(), [])

    async def program_detail(params):
        return unwrap(await client.programs.get_by_id(params["id"]))

    async def teams(params):
        return await views.load_teams(client)

    async def team_edit(params):
        return await views.load_teams(client, selected_team_id=params["id"])

    async def workflows(params):
        return unwrap(await client.workflows.get_templates(), [])

    async def workflow_edit(params):
        return unwrap(await client.workflows.get_by_id(params["id"]))

    async def notifications(params):
        return await views.load_notifications(client)

    async def admin(params):
        return await views.load_admin(client)

    async def profile(params):
        return await current_user()

    router.redirect("/", HOME_PATH)
    router.add("/login", "login", protected=False, public_only=True)
    router.add("/dashboard", "dashboard", dashboard)
    router.add("/courses", "courses", courses)
    router.add("/courses/create", "course_create")
    router.add("/courses/{id}", "course_detail", course_detail)
    router.add("/courses/{id}/edit", "course_edit", course_detail)
    router.add("/programs", "programs", programs)
    router.add("/programs/{id}", "program_detail", program_detail)
    router.add("/teams", "teams", teams)
    router.add("/teams/create", "team_create")
    router.add("/teams/{id}/edit", "team_edit", team_edit)
    router.add("/workflows", "workflows", workflows)
    router.add("/workflows/create", "workflow_create")
    router.add("/workflows/{id}/edit", "workflow_edit", workflow_edit)
    router.add("/notifications", "notifications", notifications)
    router.add("/admin", "admin", admin)
    router.add("/profile", "profile", profile)
    return router
