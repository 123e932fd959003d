"""
Base Integration Adapter: abstract interface for supplier integrations.

To add a new supplier:
1. Create a file in octo_adapter/integrations/
2. Subclass IntegrationAdapter and implement execute()
3. Decorate it with @register_integration("<type>")
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IntegrationAdapter(ABC):
    """Base class for integration adapters."""

    integration_type: str = ""

    def __init__(self, config):
        self.config = config

    @abstractmethod
    async def execute(self, action: str, params: dict) -> dict:
        """
        Execute an integration action.

        Args:
            action: Action name (e.g., "search_availability", "create_booking")
            params: Action-specific parameters

        Returns:
            Result dict keyed by the action's output (e.g. {"availability": [...]})
        """


# --- Integration Registry ---

# Map of integration_type -> adapter class.
# Populated by register_integration() when integration modules are imported.
INTEGRATION_REGISTRY: dict[str, type[IntegrationAdapter]] = {}


def register_integration(integration_type: str):
    """Decorator to register an integration adapter class."""

    def decorator(cls: type[IntegrationAdapter]):
        cls.integration_type = integration_type
        INTEGRATION_REGISTRY[integration_type] = cls
        return cls

    return decorator


def get_integration_adapter(integration_type: str, config, **kwargs) -> IntegrationAdapter:
    """
    Factory: create an integration adapter by type.

    Raises:
        ValueError: If integration_type is not registered.
    """
    cls = INTEGRATION_REGISTRY.get(integration_type)
    if cls is None:
        available = ", ".join(INTEGRATION_REGISTRY.keys()) or "(none)"
        raise ValueError(f"Unknown integration type: '{integration_type}'. Available: {available}")
    return cls(config, **kwargs)
