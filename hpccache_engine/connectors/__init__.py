"""
Connectors Package for the HPC Cache Engine.

This package provides the control-plane capability handed to the engine:
the Azure Storage Cache API and an in-memory mock.
"""

from .base_connector import BaseConnector, ConnectorResult, MockConnector


def get_connector(config=None, mock: bool = False) -> BaseConnector:
    """Build the connector for the given configuration."""
    if mock:
        return MockConnector(config)

    from .azure_connector import AzureConnector

    return AzureConnector(config)


__all__ = [
    "BaseConnector",
    "MockConnector",
    "ConnectorResult",
    "get_connector",
]
