"""Unit tests for HubMetricsCollector."""

from __future__ import annotations

from innovation_hub.infrastructure.monitoring.hub_metrics import (
    HubMetricsCollector,
    get_hub_metrics,
    reset_hub_metrics,
)


class TestHubMetricsCollector:
    def test_counters_start_unset(self, metrics) -> None:
        assert metrics.registry.get_sample_value("hub_votes_cast_total") == 0.0

    def test_record_vote_outcomes(self, metrics) -> None:
        metrics.record_vote_cast()
        metrics.record_vote_cast()
        metrics.record_vote_rejected("already_voted")
        metrics.record_vote_retracted()

        registry = metrics.registry
        assert registry.get_sample_value("hub_votes_cast_total") == 2.0
        assert (
            registry.get_sample_value(
                "hub_votes_rejected_total", {"reason": "already_voted"}
            )
            == 1.0
        )
        assert registry.get_sample_value("hub_votes_retracted_total") == 1.0

    def test_record_notifications(self, metrics) -> None:
        metrics.record_notification("delivered")
        metrics.record_notification("failed")
        metrics.record_notification("delivered")

        assert (
            metrics.registry.get_sample_value(
                "hub_notifications_total", {"outcome": "delivered"}
            )
            == 2.0
        )

    def test_metrics_text_exposition(self, metrics) -> None:
        metrics.record_retry("cast_vote", "unavailable")

        text = metrics.get_metrics_text()

        assert "hub_datastore_retries_total" in text
        assert 'operation="cast_vote"' in text

    def test_collectors_are_isolated(self) -> None:
        first = HubMetricsCollector()
        second = HubMetricsCollector()
        first.record_vote_cast()

        assert second.registry.get_sample_value("hub_votes_cast_total") == 0.0


def test_singleton_reset() -> None:
    reset_hub_metrics()
    first = get_hub_metrics()

    assert get_hub_metrics() is first
    reset_hub_metrics()
    assert get_hub_metrics() is not first
    reset_hub_metrics()
