"""Bottleneck and workload analysis over workflow transition history.

Durations are measured between consecutive transitions of the same workflow
instance and attributed to the state being left (``from_state``).
"""

from collections import defaultdict
from statistics import mean, median
from typing import Any, Optional

from dateutil.parser import isoparse

MIN_SAMPLES = 3
MAX_DURATION_HOURS = 720  # 30 days; longer gaps are treated as outliers
DEFAULT_THRESHOLD = 1.5
DEFAULT_WEEKLY_HOURS = 40.0


def _percentile(values: list[float], pct: float) -> float:
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    position = (len(ordered) - 1) * pct
    lower = int(position)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (position - lower)


def transition_durations(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach ``duration_hours`` to every transition that has a predecessor in its instance."""
    by_instance: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        by_instance[row.get("workflow_instance_id") or row.get("course_id") or ""].append(row)

    durations = []
    for entries in by_instance.values():
        entries.sort(key=lambda r: isoparse(r["created_at"]))
        for previous, current in zip(entries, entries[1:]):
            if not current.get("from_state"):
                continue
            hours = (isoparse(current["created_at"]) - isoparse(previous["created_at"])).total_seconds() / 3600
            durations.append({**current, "duration_hours": hours})
    return durations


def _severity(avg_hours: float, overall: float, threshold: float) -> str:
    if avg_hours > overall * threshold:
        return "critical"
    if avg_hours > overall * threshold * 0.8:
        return "high"
    if avg_hours > overall * threshold * 0.6:
        return "medium"
    return "low"


def recommendation_for(bottleneck: dict[str, Any]) -> str:
    entity = bottleneck["entity"]
    if bottleneck["severity"] == "critical":
        if "review" in entity:
            return "Consider adding additional reviewers or implementing parallel review processes"
        if "approval" in entity:
            return "Streamline approval process or delegate approval authority"
        if "development" in entity:
            return "Review content development resources and provide additional support"
    if bottleneck["bottleneck_percentage"] > 50:
        return "High frequency bottleneck - requires immediate process review"
    if bottleneck["avg_hours"] > 72:
        return "Extended delays - investigate specific causes and implement escalation procedures"
    return "Monitor closely and consider process optimization opportunities"


def compute_bottlenecks(rows: list[dict[str, Any]], threshold: float = DEFAULT_THRESHOLD) -> dict[str, Any]:
    """
    Rank workflow states by how long courses sit in them.

    Args:
        rows: Transition log rows (workflow_instance_id, from_state, to_state, created_at)
        threshold: Multiple of the average that marks a slow transition

    Returns:
        {"bottlenecks": [...], "summary": {...}, "recommendations": [...]}
    """
    grouped: dict[str, list[float]] = defaultdict(list)
    for entry in transition_durations(rows):
        hours = entry["duration_hours"]
        if 0 < hours < MAX_DURATION_HOURS:
            grouped[entry["from_state"]].append(hours)

    stats = []
    for entity, hours in grouped.items():
        if len(hours) < MIN_SAMPLES:
            continue
        avg = mean(hours)
        slow = sum(1 for h in hours if h > avg * threshold)
        stats.append(
            {
                "entity": entity,
                "total_transitions": len(hours),
                "avg_hours": round(avg, 2),
                "median_hours": round(median(hours), 2),
                "p95_hours": round(_percentile(hours, 0.95), 2),
                "min_hours": round(min(hours), 2),
                "max_hours": round(max(hours), 2),
                "bottleneck_count": slow,
                "bottleneck_percentage": round(slow / len(hours) * 100, 1),
            }
        )

    overall = mean(s["avg_hours"] for s in stats) if stats else 0.0
    for s in stats:
        s["severity"] = _severity(s["avg_hours"], overall, threshold)
        s["recommendation"] = recommendation_for(s)
    stats.sort(key=lambda s: (s["avg_hours"], s["bottleneck_percentage"]), reverse=True)

    return {
        "bottlenecks": stats,
        "summary": summarize(stats),
        "recommendations": [
            {"entity": s["entity"], "severity": s["severity"], "recommendation": s["recommendation"]}
            for s in stats
            if s["severity"] in ("critical", "high")
        ],
    }


def summarize(bottlenecks: list[dict[str, Any]]) -> dict[str, Any]:
    if not bottlenecks:
        return {
            "totalBottlenecks": 0,
            "criticalBottlenecks": 0,
            "averageDelay": 0,
            "affectedCourses": 0,
            "worstPerformer": None,
            "improvementPotential": 0,
        }
    worst = bottlenecks[0]
    return {
        "totalBottlenecks": len(bottlenecks),
        "criticalBottlenecks": sum(1 for b in bottlenecks if b["severity"] == "critical"),
        "averageDelay": round(mean(b["avg_hours"] for b in bottlenecks), 2),
        "affectedCourses": sum(b["total_transitions"] for b in bottlenecks),
        "worstPerformer": {
            "entity": worst["entity"],
            "avgHours": worst["avg_hours"],
            "severity": worst["severity"],
        },
        "improvementPotential": round(
            sum(
                b["avg_hours"] * b["total_transitions"]
                for b in bottlenecks
                if b["severity"] in ("critical", "high")
            ),
            2,
        ),
    }


def compute_course_bottlenecks(course_id: str, rows: list[dict[str, Any]]) -> dict[str, Any]:
    """Transition timeline for one course with its longest delays."""
    ordered = sorted(rows, key=lambda r: isoparse(r["created_at"]))
    transitions = []
    previous_at = None
    for row in ordered:
        at = isoparse(row["created_at"])
        hours = (at - previous_at).total_seconds() / 3600 if previous_at else 0.0
        previous_at = at
        if not row.get("from_state"):
            continue
        actor = row.get("users") or {}
        transitions.append(
            {
                "fromState": row["from_state"],
                "toState": row["to_state"],
                "durationHours": round(hours, 2),
                "triggeredBy": actor.get("name"),
                "occurredAt": row["created_at"],
            }
        )
    delays = sorted(
        (t for t in transitions if t["durationHours"] > 0),
        key=lambda t: t["durationHours"],
        reverse=True,
    )
    total = sum(d["durationHours"] for d in delays)
    return {
        "courseId": course_id,
        "transitions": transitions,
        "longestDelays": delays[:5],
        "totalDuration": round(total, 2),
        "averageStageTime": round(total / len(delays), 2) if delays else 0,
    }


def _utilization_level(utilization: float) -> str:
    if utilization > 100:
        return "overloaded"
    if utilization >= 80:
        return "high"
    if utilization >= 50:
        return "optimal"
    return "low"


def compute_workload(
    users: list[dict[str, Any]],
    capacity: list[dict[str, Any]],
    assignments: list[dict[str, Any]],
    active_statuses: Optional[set[str]] = None,
) -> dict[str, Any]:
    """Per-user load against weekly capacity plus team-level totals."""
    capacity_by_user = {c["user_id"]: c for c in capacity}
    assigned: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in assignments:
        course = row.get("courses") or {}
        if active_statuses is not None and course.get("status") not in active_statuses:
            continue
        if course.get("status") == "completed":
            continue
        assigned[row["user_id"]].append(course)

    heatmap = []
    for user in users:
        cap = capacity_by_user.get(user["id"], {})
        weekly_hours = float(cap.get("hours_per_week") or DEFAULT_WEEKLY_HOURS)
        max_courses = cap.get("max_concurrent_courses")
        courses = assigned.get(user["id"], [])
        # Spread each course's estimate over a four week window
        planned = sum(float(c.get("estimated_hours") or 0) for c in courses) / 4
        utilization = round(planned / weekly_hours * 100, 1) if weekly_hours else 0.0
        heatmap.append(
            {
                "user_id": user["id"],
                "name": user.get("name"),
                "role": user.get("role"),
                "team_id": user.get("team_id"),
                "active_courses": len(courses),
                "max_concurrent_courses": max_courses,
                "weekly_capacity_hours": weekly_hours,
                "planned_weekly_hours": round(planned, 1),
                "utilization": utilization,
                "level": _utilization_level(utilization),
                "over_course_limit": bool(max_courses) and len(courses) > max_courses,
            }
        )
    heatmap.sort(key=lambda h: h["utilization"], reverse=True)

    total_capacity = sum(h["weekly_capacity_hours"] for h in heatmap)
    total_planned = sum(h["planned_weekly_hours"] for h in heatmap)
    return {
        "heatmap": heatmap,
        "summary": {
            "users": len(heatmap),
            "total_capacity_hours": round(total_capacity, 1),
            "total_planned_hours": round(total_planned, 1),
            "average_utilization": round(total_planned / total_capacity * 100, 1) if total_capacity else 0,
            "overloaded_users": sum(1 for h in heatmap if h["level"] == "overloaded"),
        },
    }
