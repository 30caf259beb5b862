from datetime import datetime

from storage.analytics import (
    compute_environmental_impact,
    rank_leaderboard,
    recent_months,
)

NOW = datetime(2026, 2, 15, 12, 0)


def report(status="completed", category="plastic", segregated=False, completed_at=NOW, **extra):
    return {
        "status": status,
        "waste_category": category,
        "is_segregated": segregated,
        "completed_at": completed_at,
        "created_at": datetime(2025, 1, 1),
        **extra,
    }


def test_recent_months_cross_the_year_boundary():
    assert recent_months(NOW, 4) == [(2025, 11), (2025, 12), (2026, 1), (2026, 2)]


def test_environmental_impact_numbers():
    reports = [
        report(category="paper", segregated=True),
        report(category="paper", completed_at=datetime(2026, 1, 3)),
        report(category="glass", segregated=True),
        report(category="plastic", completed_at=datetime(2025, 12, 30)),
        report(status="pending", category="metal"),
    ]
    donations = [
        {"status": "completed", "category": "books"},
        {"status": "available", "category": "clothing"},
    ]
    events = [{"id": 1}, {"id": 2}]

    impact = compute_environmental_impact(reports, donations, events, NOW)

    assert impact["carbon_offset"] == 50.0
    assert impact["trees_equivalent"] == 2
    assert impact["water_saved"] == 70

    by_category = {row["name"]: row["value"] for row in impact["waste_by_category"]}
    assert by_category["Paper"] == 2
    assert by_category["Metal"] == 0
    assert by_category["E-Waste"] == 0

    trend = impact["waste_collection_trend"]
    assert [row["name"] for row in trend] == ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb"]
    assert [row["value"] for row in trend] == [0, 0, 0, 1, 1, 2]
    assert impact["monthly_waste_data"][-1] == {"month": "Feb", "segregated": 2, "mixed": 0}

    donated = {row["name"]: row["value"] for row in impact["donations_by_category"]}
    assert donated == {"Clothing": 0, "Furniture": 0, "Electronics": 0, "Books": 1, "Other": 0}

    social = {row["name"]: row["value"] for row in impact["social_impact_metrics"]}
    assert social == {
        "Lives Impacted": 3,
        "Communities Reached": 1,
        "Volunteer Hours": 40,
        "Social Initiatives": 2,
    }


def test_impact_on_empty_data_is_zero():
    impact = compute_environmental_impact([], [], [], NOW)

    assert impact["carbon_offset"] == 0
    assert impact["trees_equivalent"] == 0
    assert all(row["value"] == 0 for row in impact["waste_collection_trend"])


def test_trend_ignores_same_month_of_previous_year():
    reports = [report(completed_at=datetime(2025, 2, 10))]

    impact = compute_environmental_impact(reports, [], [], NOW)

    assert impact["waste_collection_trend"][-1]["value"] == 0


def test_leaderboard_orders_by_points_then_id():
    users = [
        {"id": 1, "role": "admin", "social_points": 99},
        {"id": 2, "role": "customer", "social_points": 10},
        {"id": 3, "role": "dealer", "social_points": 30},
        {"id": 4, "role": "organization", "social_points": 10},
    ]

    assert [u["id"] for u in rank_leaderboard(users)] == [3, 2, 4]
    assert [u["id"] for u in rank_leaderboard(users, limit=1)] == [3]
