"""
app/connectors package marker.
"""

from app.connectors.backend_client import BackendClient
from app.connectors.base import BaseConnector, ConnectorRequestError, unwrap_envelope

__all__ = [
    "BackendClient",
    "BaseConnector",
    "ConnectorRequestError",
    "unwrap_envelope",
]
