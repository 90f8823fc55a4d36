"""
Infrastructure layer - concrete implementations of application ports.

This layer contains:
- Adapters (SQL document store, in-process event bus, log delivery)
- Stubs (in-memory implementations for tests and development)
- Observability (structlog configuration, correlation IDs)
- Monitoring (Prometheus counters)

IMPORT RULES:
- CAN import from: domain, application, config
- Implements ports defined in application layer
"""
