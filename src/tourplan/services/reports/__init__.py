"""Optimization report helpers."""

from .potential import analyze_potential
from .workload import build_tour_workloads, compute_statistics

__all__ = ["analyze_potential", "build_tour_workloads", "compute_statistics"]
