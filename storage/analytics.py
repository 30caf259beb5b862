"""Read-only aggregate views computed from entity records.

All functions take plain record lists so both stores share one
implementation of the numbers shown on the dashboards.
"""
import math
from collections import Counter

WASTE_CATEGORIES = ("plastic", "paper", "glass", "metal", "e_waste", "organic", "other")
DONATION_CATEGORIES = ("clothing", "furniture", "electronics", "books", "other")

CATEGORY_LABELS = {
    "plastic": "Plastic",
    "paper": "Paper",
    "glass": "Glass",
    "metal": "Metal",
    "e_waste": "E-Waste",
    "organic": "Organic",
    "other": "Other",
    "clothing": "Clothing",
    "furniture": "Furniture",
    "electronics": "Electronics",
    "books": "Books",
}

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Rough conversion factors used for the impact estimates
AVG_WASTE_PER_PICKUP_KG = 5
CO2_SAVED_PER_KG = 2.5
CO2_ABSORBED_PER_TREE_KG = 22
WATER_SAVED_PER_PAPER_TON_L = 7000
PEOPLE_PER_DONATION = 3
PICKUPS_PER_COMMUNITY = 5
VOLUNTEER_HOURS_PER_EVENT = 20

TREND_MONTHS = 6


def compute_stats(reports, donations, events, users):
    return {
        "pickups_completed": sum(1 for r in reports if r["status"] == "completed"),
        "items_donated": sum(1 for d in donations if d["status"] == "completed"),
        "community_events": len(events),
        "active_members": len(users),
    }


def recent_months(now, count=TREND_MONTHS):
    """Return ``(year, month)`` pairs for the last ``count`` months, oldest first."""
    months = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def _completed_month(report):
    stamp = report.get("completed_at") or report.get("created_at")
    if stamp is None:
        return None
    return stamp.year, stamp.month


def _breakdown(records, field, categories):
    counts = Counter(r.get(field) for r in records)
    return [{"name": CATEGORY_LABELS[c], "value": counts.get(c, 0)} for c in categories]


def compute_environmental_impact(reports, donations, events, now):
    completed = [r for r in reports if r["status"] == "completed"]
    completed_donations = [d for d in donations if d["status"] == "completed"]

    by_month = {}
    for report in completed:
        by_month.setdefault(_completed_month(report), []).append(report)

    trend = []
    monthly = []
    for year, month in recent_months(now):
        bucket = by_month.get((year, month), [])
        segregated = sum(1 for r in bucket if r.get("is_segregated"))
        trend.append({"name": MONTH_NAMES[month - 1], "value": len(bucket)})
        monthly.append({
            "month": MONTH_NAMES[month - 1],
            "segregated": segregated,
            "mixed": len(bucket) - segregated,
        })

    total_kg = len(completed) * AVG_WASTE_PER_PICKUP_KG
    carbon_offset = total_kg * CO2_SAVED_PER_KG
    paper_tons = sum(
        AVG_WASTE_PER_PICKUP_KG for r in completed if r.get("waste_category") == "paper"
    ) / 1000

    return {
        "waste_by_category": _breakdown(completed, "waste_category", WASTE_CATEGORIES),
        "waste_collection_trend": trend,
        "carbon_offset": carbon_offset,
        "trees_equivalent": round(carbon_offset / CO2_ABSORBED_PER_TREE_KG),
        "water_saved": round(paper_tons * WATER_SAVED_PER_PAPER_TON_L),
        "monthly_waste_data": monthly,
        "donations_by_category": _breakdown(completed_donations, "category", DONATION_CATEGORIES),
        "social_impact_metrics": [
            {"name": "Lives Impacted", "value": len(completed_donations) * PEOPLE_PER_DONATION},
            {"name": "Communities Reached",
             "value": math.ceil(len(completed) / PICKUPS_PER_COMMUNITY)},
            {"name": "Volunteer Hours", "value": len(events) * VOLUNTEER_HOURS_PER_EVENT},
            {"name": "Social Initiatives", "value": len(events)},
        ],
    }


def rank_leaderboard(users, limit=10):
    ranked = sorted(
        (u for u in users if u["role"] != "admin"),
        key=lambda u: (-(u.get("social_points") or 0), u["id"]),
    )
    return ranked[:limit]
