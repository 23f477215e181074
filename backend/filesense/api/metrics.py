"""
Metrics endpoint for performance monitoring.
"""
from fastapi import APIRouter
from filesense.core.performance import PerformanceMonitor

router = APIRouter()


@router.get("/metrics")
async def get_metrics():
    """
    Timing statistics for every tracked operation (profiling, model calls,
    parsing, PDF rendering and whole requests).
    """
    return {'performance': PerformanceMonitor.get_all_metrics()}
