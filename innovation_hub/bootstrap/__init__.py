"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so the application
layer can depend on ports without importing infrastructure directly.
"""

from innovation_hub.bootstrap.hub import (
    InnovationHub,
    build_hub,
    build_hub_with_database,
)

__all__ = ["InnovationHub", "build_hub", "build_hub_with_database"]
