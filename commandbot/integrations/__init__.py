"""
Integrations package for commandbot.

This package contains integrations with external services.
Each integration has its own subfolder.
"""
from .graph import GraphClient, GraphError, MessagingGateway

__all__ = [
    # Microsoft Graph
    "GraphClient",
    "GraphError",
    "MessagingGateway",
]
