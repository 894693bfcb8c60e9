"""Tests for bottleneck and workload analysis."""

from datetime import datetime, timedelta, timezone

from trainingpulse.core.analytics import (
    compute_bottlenecks,
    compute_course_bottlenecks,
    compute_workload,
    transition_durations,
)

START = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def _instance(instance_id, planning_hours, review_hours):
    """Transition log rows: start in planning, move to review, then publish."""
    reviewed_at = START + timedelta(hours=planning_hours)
    published_at = reviewed_at + timedelta(hours=review_hours)
    return [
        {"workflow_instance_id": instance_id, "from_state": None, "to_state": "planning", "created_at": START.isoformat()},
        {"workflow_instance_id": instance_id, "from_state": "planning", "to_state": "review", "created_at": reviewed_at.isoformat()},
        {"workflow_instance_id": instance_id, "from_state": "review", "to_state": "published", "created_at": published_at.isoformat()},
    ]


ROWS = _instance("i1", 10, 40) + _instance("i2", 12, 50) + _instance("i3", 14, 60)


def test_transition_durations_measure_time_in_the_state_left():
    durations = transition_durations(_instance("i1", 10, 40))
    assert [(d["from_state"], d["duration_hours"]) for d in durations] == [("planning", 10), ("review", 40)]


class TestComputeBottlenecks:
    def test_ranks_slowest_state_first(self):
        result = compute_bottlenecks(ROWS)
        review, planning = result["bottlenecks"]

        assert review["entity"] == "review"
        assert review["avg_hours"] == 50
        assert review["median_hours"] == 50
        assert review["total_transitions"] == 3
        assert planning["entity"] == "planning"

    def test_severity_is_relative_to_overall_average(self):
        result = compute_bottlenecks(ROWS)
        severities = {b["entity"]: b["severity"] for b in result["bottlenecks"]}
        # overall average is 31h; review (50h) exceeds 1.5x
        assert severities == {"review": "critical", "planning": "low"}

    def test_recommendations_cover_critical_states(self):
        result = compute_bottlenecks(ROWS)
        assert result["recommendations"] == [
            {
                "entity": "review",
                "severity": "critical",
                "recommendation": "Consider adding additional reviewers or implementing parallel review processes",
            }
        ]

    def test_summary(self):
        summary = compute_bottlenecks(ROWS)["summary"]
        assert summary["totalBottlenecks"] == 2
        assert summary["criticalBottlenecks"] == 1
        assert summary["averageDelay"] == 31
        assert summary["worstPerformer"]["entity"] == "review"
        assert summary["improvementPotential"] == 150

    def test_states_with_too_few_samples_are_ignored(self):
        result = compute_bottlenecks(_instance("i1", 10, 40) + _instance("i2", 12, 50))
        assert result["bottlenecks"] == []
        assert result["summary"]["worstPerformer"] is None

    def test_outliers_are_dropped(self):
        rows = ROWS + _instance("i4", 11, 900)
        review = next(b for b in compute_bottlenecks(rows)["bottlenecks"] if b["entity"] == "review")
        assert review["total_transitions"] == 3


def test_course_bottlenecks_list_longest_delays():
    rows = _instance("i1", 10, 40)
    rows[2]["users"] = {"name": "Riley"}

    result = compute_course_bottlenecks("c1", rows)

    assert result["courseId"] == "c1"
    assert [t["fromState"] for t in result["transitions"]] == ["planning", "review"]
    assert result["longestDelays"][0]["durationHours"] == 40
    assert result["longestDelays"][0]["triggeredBy"] == "Riley"
    assert result["totalDuration"] == 50
    assert result["averageStageTime"] == 25


class TestComputeWorkload:
    USERS = [
        {"id": "u1", "name": "Ana", "role": "designer"},
        {"id": "u2", "name": "Ben", "role": "designer"},
    ]

    def test_utilization_against_capacity(self):
        assignments = [
            {"user_id": "u1", "courses": {"status": "development", "estimated_hours": 160}},
            {"user_id": "u1", "courses": {"status": "completed", "estimated_hours": 400}},
            {"user_id": "u2", "courses": {"status": "outlines", "estimated_hours": 40}},
        ]
        capacity = [{"user_id": "u1", "hours_per_week": 40, "max_concurrent_courses": 1}]

        result = compute_workload(self.USERS, capacity, assignments)
        ana, ben = result["heatmap"]

        assert ana["user_id"] == "u1"
        assert ana["active_courses"] == 1
        assert ana["planned_weekly_hours"] == 40
        assert ana["utilization"] == 100
        assert ana["level"] == "high"
        assert ana["over_course_limit"] is False
        assert ben["weekly_capacity_hours"] == 40
        assert ben["utilization"] == 25
        assert ben["level"] == "low"
        assert result["summary"]["total_planned_hours"] == 50

    def test_overloaded_user(self):
        assignments = [{"user_id": "u1", "courses": {"status": "development", "estimated_hours": 200}}]
        result = compute_workload(self.USERS[:1], [], assignments)
        assert result["heatmap"][0]["level"] == "overloaded"
        assert result["summary"]["overloaded_users"] == 1
