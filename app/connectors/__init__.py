"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.open_meteo_connector import OpenMeteoConnector

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "OpenMeteoConnector",
]
