"""
Course dependency graph walks.

An edge ``course_id -> depends_on_course_id`` means the course cannot finish
before the course it depends on. Upstream walks follow edges forward (what a
course waits for); downstream walks follow them backward (what waits for it).
"""

from typing import Any, Callable, Iterable

DEFAULT_MAX_DEPTH = 10

# Given a batch of course ids, the edges leaving them as (from_id, to_id, dependency_type)
EdgeFetcher = Callable[[list[str]], Iterable[tuple[str, str, str]]]


class DependencyError(ValueError):
    pass


def walk(start_id: str, fetch_edges: EdgeFetcher, max_depth: int = DEFAULT_MAX_DEPTH) -> list[dict[str, Any]]:
    """
    Breadth-first walk from ``start_id``, one fetch per level.

    Returns:
        One entry per reachable course, nearest first:
        ``{"course_id", "depth", "dependency_type", "via"}``. Each course is
        listed once, at the depth it was first reached.
    """
    seen = {start_id}
    frontier = [start_id]
    reached: list[dict[str, Any]] = []
    depth = 0
    while frontier and depth < max_depth:
        depth += 1
        next_frontier: list[str] = []
        for source, target, dependency_type in fetch_edges(frontier):
            if target in seen:
                continue
            seen.add(target)
            next_frontier.append(target)
            reached.append({"course_id": target, "depth": depth, "dependency_type": dependency_type, "via": source})
        frontier = next_frontier
    return reached


def check_new_dependency(
    course_id: str,
    depends_on_id: str,
    fetch_upstream: EdgeFetcher,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """
    Reject self-dependencies and edges that would close a cycle.

    Raises:
        DependencyError: course depends on itself, or ``depends_on_id``
            already waits on ``course_id`` directly or transitively
    """
    if course_id == depends_on_id:
        raise DependencyError("A course cannot depend on itself")
    upstream = walk(depends_on_id, fetch_upstream, max_depth=max_depth)
    if any(entry["course_id"] == course_id for entry in upstream):
        raise DependencyError("Dependency would create a circular reference")
