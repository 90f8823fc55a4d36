"""Prometheus metrics for the Innovation Hub core.

Metrics Exposed:
- hub_votes_cast_total: Counter of committed votes
- hub_votes_rejected_total: Counter of rejected votes by reason
- hub_votes_retracted_total: Counter of committed retractions
- hub_datastore_retries_total: Counter of retries by operation and code
- hub_permission_denied_total: Counter of permission failures by operation
- hub_notifications_total: Counter of delivery attempts by outcome
- hub_counter_drift_total: Counter of drifted counters by field
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest


class HubMetricsCollector:
    """Prometheus implementation of HubMetricsProtocol.

    Each instance owns its registry so tests can create isolated
    collectors without duplicate-registration errors.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize hub metrics.

        Args:
            registry: Optional custom registry for testing isolation.
                     If None, a fresh registry is created.
        """
        self._registry = registry or CollectorRegistry()

        self.votes_cast_total = Counter(
            name="hub_votes_cast_total",
            documentation="Total votes committed to the ledger",
            registry=self._registry,
        )
        self.votes_rejected_total = Counter(
            name="hub_votes_rejected_total",
            documentation="Total vote attempts rejected by reason",
            labelnames=["reason"],
            registry=self._registry,
        )
        self.votes_retracted_total = Counter(
            name="hub_votes_retracted_total",
            documentation="Total votes retracted by their owner",
            registry=self._registry,
        )
        self.datastore_retries_total = Counter(
            name="hub_datastore_retries_total",
            documentation="Total retries of datastore operations",
            labelnames=["operation", "code"],
            registry=self._registry,
        )
        self.permission_denied_total = Counter(
            name="hub_permission_denied_total",
            documentation="Total permission-denied datastore failures",
            labelnames=["operation"],
            registry=self._registry,
        )
        self.notifications_total = Counter(
            name="hub_notifications_total",
            documentation="Total status-change notification attempts by outcome",
            labelnames=["outcome"],
            registry=self._registry,
        )
        self.counter_drift_total = Counter(
            name="hub_counter_drift_total",
            documentation="Denormalised counters found out of step by field",
            labelnames=["field"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_vote_cast(self) -> None:
        self.votes_cast_total.inc()

    def record_vote_rejected(self, reason: str) -> None:
        self.votes_rejected_total.labels(reason=reason).inc()

    def record_vote_retracted(self) -> None:
        self.votes_retracted_total.inc()

    def record_retry(self, operation: str, code: str) -> None:
        self.datastore_retries_total.labels(operation=operation, code=code).inc()

    def record_permission_denied(self, operation: str) -> None:
        self.permission_denied_total.labels(operation=operation).inc()

    def record_notification(self, outcome: str) -> None:
        self.notifications_total.labels(outcome=outcome).inc()

    def record_counter_drift(self, field_name: str) -> None:
        self.counter_drift_total.labels(field=field_name).inc()

    def get_metrics_text(self) -> str:
        """Get metrics in Prometheus text exposition format."""
        return generate_latest(self._registry).decode("utf-8")


# Singleton instance for application-wide use
_metrics_instance: HubMetricsCollector | None = None


def get_hub_metrics() -> HubMetricsCollector:
    """Get the process-wide HubMetricsCollector."""
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = HubMetricsCollector()
    return _metrics_instance


def reset_hub_metrics() -> None:
    """Drop the singleton (for tests)."""
    global _metrics_instance
    _metrics_instance = None
