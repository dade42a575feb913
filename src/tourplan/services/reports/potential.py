"""Read-only scan of a plan for optimization potential."""

from __future__ import annotations

import logging
from typing import Optional

from ...config import settings
from ...models.domain import PlanningSnapshot, Visit
from ..geospatial import GeoDistance
from ..optimization.models import PotentialIssue, PotentialRecommendation, PotentialReport
from ..zones.model import ZoneModel

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def day_name(day_index: int) -> str:
    if 0 <= day_index < len(DAY_NAMES):
        return DAY_NAMES[day_index]
    return "Day"


def _gap_issues(
    snapshot: PlanningSnapshot,
    geo: GeoDistance,
    day_index: int,
    tour_id: str,
    visits: list[Visit],
    *,
    min_gap: int,
    excess_threshold: int,
) -> list[PotentialIssue]:
    issues: list[PotentialIssue] = []
    ordered = sorted(visits, key=lambda visit: visit.start_minutes)
    for current, following in zip(ordered, ordered[1:]):
        gap = following.start_minutes - current.end_minutes
        if gap <= min_gap:
            continue
        current_location = snapshot.location_for(current)
        next_location = snapshot.location_for(following)
        if current_location is None or next_location is None:
            continue
        excess = gap - geo.travel_minutes(current_location, next_location)
        if excess > excess_threshold:
            issues.append(
                PotentialIssue(
                    type="large_gap",
                    day_index=day_index,
                    tour_id=tour_id,
                    gap_minutes=excess,
                    message=f"Large gap ({round(excess)} min) on {day_name(day_index)}",
                )
            )
    return issues


def analyze_potential(
    snapshot: PlanningSnapshot,
    geo: Optional[GeoDistance] = None,
    *,
    day_index: Optional[int] = None,
    min_gap: int = settings.potential_min_gap_minutes,
    excess_threshold: int = settings.potential_excess_gap_minutes,
) -> PotentialReport:
    """List unassigned visits, oversized gaps and idle tours without changing anything."""

    geo = geo or GeoDistance.for_wage_settings(ZoneModel.default(), snapshot.wage_settings)
    real_visits = snapshot.real_visits()
    if not real_visits:
        return PotentialReport(
            has_potential=False,
            issues=[],
            recommendations=[],
            total_potential_savings=0,
            summary="No optimization opportunities found",
        )

    issues: list[PotentialIssue] = []
    days = range(7) if day_index is None else (day_index,)
    for day in days:
        day_visits = [visit for visit in real_visits if visit.day_index == day]
        if not day_visits:
            continue

        unassigned = [visit for visit in day_visits if not visit.tour_id]
        if unassigned:
            issues.append(
                PotentialIssue(
                    type="unassigned",
                    day_index=day,
                    count=len(unassigned),
                    message=f"{len(unassigned)} unassigned visit(s) on {day_name(day)}",
                )
            )

        by_tour: dict[str, list[Visit]] = {}
        for visit in day_visits:
            if visit.tour_id:
                by_tour.setdefault(visit.tour_id, []).append(visit)
        for tour_id, tour_visits in by_tour.items():
            issues.extend(
                _gap_issues(
                    snapshot,
                    geo,
                    day,
                    tour_id,
                    tour_visits,
                    min_gap=min_gap,
                    excess_threshold=excess_threshold,
                )
            )

    used_tours = {visit.tour_id for visit in real_visits if visit.tour_id}
    empty_tours = [tour for tour in snapshot.tours if tour.tour_id not in used_tours]
    recommendations: list[PotentialRecommendation] = []
    if empty_tours:
        recommendations.append(
            PotentialRecommendation(
                type="empty_tours",
                count=len(empty_tours),
                message=f"{len(empty_tours)} unused tour(s) available",
            )
        )

    savings = sum(issue.gap_minutes or 0 for issue in issues if issue.type == "large_gap")
    logging.info(f"Potential analysis found {len(issues)} issue(s) and {len(recommendations)} recommendation(s)")
    return PotentialReport(
        has_potential=bool(issues or recommendations),
        issues=issues,
        recommendations=recommendations,
        total_potential_savings=round(savings),
        summary=f"{len(issues)} optimization opportunity(ies) found" if issues else "No optimization opportunities found",
    )
