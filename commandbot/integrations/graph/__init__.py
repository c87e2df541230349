"""
Microsoft Graph integration for commandbot.

Provides the Graph REST client and the gateway that turns intents into
draft emails and Teams chat messages.
"""
from .client import GraphClient, GraphError
from .gateway import MessagingGateway, derive_address, names_group, topic_matches

__all__ = [
    # Graph client
    "GraphClient",
    "GraphError",

    # Gateway
    "MessagingGateway",
    "derive_address",
    "names_group",
    "topic_matches",
]
