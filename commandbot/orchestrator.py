from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .config import Settings
from .integrations.graph import GraphClient, MessagingGateway
from .llm import ContentFormalizer, build_chat_model
from .models import (
    CommandKind,
    CommandResult,
    Failure,
    FormalizedEmail,
    FormalizedMessage,
    ParsedIntent,
)
from .parser import parse_command

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Result Messages
# --------------------------------------------------------------------------- #

INVALID_FORMAT_MESSAGE = "Invalid command format"
UNSUPPORTED_TYPE_MESSAGE = "Unsupported command type"
ERROR_PREFIX = "Error processing command: "

SUCCESS_MESSAGES = {
    CommandKind.EMAIL: "Draft email created successfully",
    CommandKind.MESSAGE: "Teams message sent successfully",
}


def _error(detail: Any) -> CommandResult:
    return CommandResult(success=False, message=f"{ERROR_PREFIX}{detail}")


class CommandOrchestrator:
    """
    Parses a command, formalizes its content and dispatches it.

    This is the single error boundary: every path ends in exactly one
    CommandResult, and nothing raised by the formalizer or gateway escapes.

    Usage:
        orchestrator = CommandOrchestrator(llm=chat_model, directory=graph, settings=settings)
        result = await orchestrator.process_command("email bob about the budget")
    """

    def __init__(self, llm: Any, directory: Any, settings: Settings):
        self.formalizer = ContentFormalizer(llm)
        self.gateway = MessagingGateway(directory, settings)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        directory: GraphClient,
        http_async_client: Optional[httpx.AsyncClient] = None,
    ) -> "CommandOrchestrator":
        """
        Wire the production OpenAI client from settings.

        The caller owns `directory` and `http_async_client` and closes them.
        """
        llm = build_chat_model(settings, http_async_client=http_async_client)
        return cls(llm=llm, directory=directory, settings=settings)

    async def process_command(self, command: Optional[str]) -> CommandResult:
        """
        Process a raw command end to end.

        Args:
            command: The free-text command

        Returns:
            CommandResult with success flag and a human-readable message
        """
        intent = parse_command(command)
        if isinstance(intent, Failure):
            logger.info(f"Rejected command {command!r}: {intent}")
            return CommandResult(success=False, message=INVALID_FORMAT_MESSAGE)

        try:
            return await self._dispatch(intent)
        except Exception as e:
            logger.error(f"Error processing command {command!r}: {e}", exc_info=True)
            return _error(e)

    async def _dispatch(self, intent: ParsedIntent) -> CommandResult:
        if intent.kind not in SUCCESS_MESSAGES:
            return CommandResult(success=False, message=UNSUPPORTED_TYPE_MESSAGE)

        content = await self.formalizer.formalize(intent)
        if isinstance(content, Failure):
            return _error(content)

        if intent.kind == CommandKind.EMAIL and isinstance(content, FormalizedEmail):
            outcome = await self.gateway.create_draft_email(intent, content.subject, content.body)
        elif intent.kind == CommandKind.MESSAGE and isinstance(content, FormalizedMessage):
            outcome = await self.gateway.send_message(intent.recipient, content.text)
        else:
            return CommandResult(success=False, message=UNSUPPORTED_TYPE_MESSAGE)

        if isinstance(outcome, Failure):
            return _error(outcome)

        return CommandResult(success=True, message=SUCCESS_MESSAGES[intent.kind])
