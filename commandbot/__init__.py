"""
commandbot - natural-language commands for email and Teams.

This package contains:
- Command parser (free text -> typed intent)
- LLM formalization of informal content
- Microsoft Graph gateway (draft emails, find-or-create chats, chat messages)
- Orchestrator and FastAPI API
"""

__all__ = [
    "models",
    "config",
    "parser",
    "llm",
    "integrations",
    "orchestrator",
    "api",
]
