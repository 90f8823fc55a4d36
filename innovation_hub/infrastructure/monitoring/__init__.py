"""Monitoring: Prometheus metrics collectors."""

from innovation_hub.infrastructure.monitoring.hub_metrics import (
    HubMetricsCollector,
    get_hub_metrics,
    reset_hub_metrics,
)

__all__ = [
    "HubMetricsCollector",
    "get_hub_metrics",
    "reset_hub_metrics",
]
