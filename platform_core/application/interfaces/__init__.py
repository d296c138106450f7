"""Application interfaces (ports): service protocols.

Define contracts for infrastructure implementations (DIP).
"""

from platform_core.application.interfaces.services import (
    RelationProvider,
    RoleCapabilityLookup,
)

__all__ = ["RelationProvider", "RoleCapabilityLookup"]
