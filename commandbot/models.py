from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator


# --------------------------------------------------------------------------- #
# Command Types
# --------------------------------------------------------------------------- #

class CommandKind(str, Enum):
    """Kind of command recognized by the parser."""
    EMAIL = "email"
    MESSAGE = "message"


class ErrorKind(str, Enum):
    """Why a stage of the pipeline could not produce its output."""
    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_TYPE = "unsupported_type"
    BACKEND_ERROR = "backend_error"
    MALFORMED_RESPONSE = "malformed_response"
    GATEWAY_FAILURE = "gateway_failure"


# --------------------------------------------------------------------------- #
# Parsed Intent
# --------------------------------------------------------------------------- #

class ParsedIntent(BaseModel):
    """
    Structured interpretation of a raw command.

    cc_recipient is a string for email intents ("" when no cc was given)
    and None for message intents.
    """
    model_config = ConfigDict(frozen=True)

    kind: CommandKind
    recipient: str
    cc_recipient: Optional[str] = None
    content_hint: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_cc(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("kind") == CommandKind.EMAIL:
            if data.get("cc_recipient") is None:
                data = {**data, "cc_recipient": ""}
        return data

    @model_validator(mode="after")
    def _check_slots(self) -> "ParsedIntent":
        if not self.recipient:
            raise ValueError("recipient must not be empty")
        if self.kind == CommandKind.EMAIL and not self.content_hint:
            raise ValueError("email intents need content")
        if self.kind == CommandKind.MESSAGE and self.cc_recipient is not None:
            raise ValueError("cc is only allowed on email intents")
        return self

    @property
    def has_cc(self) -> bool:
        return bool(self.cc_recipient)


# --------------------------------------------------------------------------- #
# Formalized Content
# --------------------------------------------------------------------------- #

class FormalizedEmail(BaseModel):
    """Formal email produced by the language model."""
    model_config = ConfigDict(frozen=True)

    subject: str
    body: str


class FormalizedMessage(BaseModel):
    """Formal chat message produced by the language model."""
    model_config = ConfigDict(frozen=True)

    text: str


# --------------------------------------------------------------------------- #
# Stage Results
# --------------------------------------------------------------------------- #

class Failure(BaseModel):
    """Failure returned by the parser, formalizer or gateway."""
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    detail: str = ""

    def __str__(self) -> str:
        return self.detail or self.kind.value


class Delivery(BaseModel):
    """What the gateway did in the backend."""
    resource_id: Optional[str] = None  # draft id or chat id
    chat_created: bool = False


class CommandResult(BaseModel):
    """The only thing handed back to callers of the orchestrator."""
    success: bool
    message: str


# --------------------------------------------------------------------------- #
# API Models
# --------------------------------------------------------------------------- #

class CommandRequest(BaseModel):
    command: Optional[str] = None
