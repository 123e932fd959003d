from octo_adapter.integrations.base import INTEGRATION_REGISTRY, get_integration_adapter, register_integration

__all__ = ["INTEGRATION_REGISTRY", "get_integration_adapter", "register_integration"]
