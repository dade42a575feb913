"""Serializers for optimization outputs."""

from __future__ import annotations

from dataclasses import asdict

from ..optimization.models import OptimizationResult, PotentialReport


def optimization_result_to_json(result: OptimizationResult) -> dict:
    return {
        "success": True,
        "metadata": result.metadata,
        "optimizedAssignments": {
            "assignments": [
                {"visitId": item.visit_id, "tourId": item.tour_id, "score": item.score}
                for item in result.assignments
            ],
            "unassignedVisitIds": list(result.unassigned_visit_ids),
            "optimizedVisits": [
                {"visitId": visit.visit_id, "dayIndex": visit.day_index, "start": visit.start, "end": visit.end}
                for visit in result.optimized_visits
            ],
            "tourWorkloads": [
                {
                    "tourId": workload.tour_id,
                    "tourName": workload.tour_name,
                    "visitIds": list(workload.visit_ids),
                    "totalMinutes": workload.total_minutes,
                    "totalHours": workload.total_hours,
                    "employeeName": workload.employee_name,
                    "committedMinutes": workload.committed_minutes,
                    "estimatedCost": workload.estimated_cost,
                }
                for workload in result.workloads
            ],
        },
        "statistics": {
            "totalVisits": result.statistics.total_visits,
            "assignedVisits": result.statistics.assigned_visits,
            "unassignedVisits": result.statistics.unassigned_visits,
            "toursUsed": result.statistics.tours_used,
            "totalTours": result.statistics.total_tours,
        },
    }


def potential_report_to_json(report: PotentialReport) -> dict:
    return {"success": True, "potential": asdict(report)}
