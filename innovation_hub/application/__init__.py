"""
Application layer - use cases and ports for the Innovation Hub.

This layer contains:
- Ports (Protocol interfaces the infrastructure implements)
- Services (vote ledger, counters, notifier, retry layer)
- DTOs (pydantic input validation)

Imports allowed: domain, config, and infrastructure.stubs /
infrastructure.observability for wiring and logging.
"""
