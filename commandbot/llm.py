"""
LLM integration for commandbot.

Rewrites the informal content of a parsed command into a formal email or
chat message with a single chat-completion call.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Union

import httpx
import openai
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from .config import Settings
from .models import (
    CommandKind,
    ErrorKind,
    Failure,
    FormalizedEmail,
    FormalizedMessage,
    ParsedIntent,
)

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Prompts
# --------------------------------------------------------------------------- #

_EMAIL_PROMPT = """\
Convert this informal email request into a formal email:
To: {recipient}
CC: {cc}
Content: {content}
Provide the response in JSON format with 'subject' and 'body' fields."""

_MESSAGE_PROMPT = """\
Convert this informal message into a formal Teams message:
To: {recipient}
Content: {content}
Provide the response as a plain text string."""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(?P<inner>.*?)\s*```$", re.DOTALL)


def build_prompt(intent: ParsedIntent) -> str:
    """Build the user prompt for an intent."""
    if intent.kind == CommandKind.EMAIL:
        return _EMAIL_PROMPT.format(
            recipient=intent.recipient,
            cc=intent.cc_recipient or "",
            content=intent.content_hint,
        )
    return _MESSAGE_PROMPT.format(
        recipient=intent.recipient,
        content=intent.content_hint,
    )


# --------------------------------------------------------------------------- #
# Client Construction
# --------------------------------------------------------------------------- #

def build_chat_model(
    settings: Settings,
    http_async_client: Optional[httpx.AsyncClient] = None,
) -> ChatOpenAI:
    """
    Build the chat-completion client used by the formalizer.

    Retries are disabled; a failed call fails the request.
    """
    return ChatOpenAI(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        max_retries=0,
        http_async_client=http_async_client,
    )


# --------------------------------------------------------------------------- #
# Response Parsing
# --------------------------------------------------------------------------- #

def _message_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Content blocks: keep the text parts only
        content = "".join(
            block if isinstance(block, str) else block.get("text", "")
            for block in content
        )
    return str(content).strip()


def parse_email_content(raw: str) -> Union[FormalizedEmail, Failure]:
    """Extract subject and body from the JSON the model returned for an email."""
    fenced = _CODE_FENCE.match(raw.strip())
    if fenced:
        raw = fenced["inner"]

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return Failure(
            kind=ErrorKind.MALFORMED_RESPONSE,
            detail=f"Language model returned invalid JSON: {e}",
        )

    if not isinstance(data, dict):
        return Failure(
            kind=ErrorKind.MALFORMED_RESPONSE,
            detail="Language model returned JSON that is not an object",
        )

    subject = data.get("subject")
    body = data.get("body")
    if not isinstance(subject, str) or not isinstance(body, str):
        return Failure(
            kind=ErrorKind.MALFORMED_RESPONSE,
            detail="Language model response is missing 'subject' or 'body'",
        )

    return FormalizedEmail(subject=subject, body=body)


# --------------------------------------------------------------------------- #
# Formalizer
# --------------------------------------------------------------------------- #

class ContentFormalizer:
    """
    Rewrites intent content through a chat model.

    The model only needs an async `ainvoke(messages)` returning a message
    with a `content` attribute, so tests can pass a fake.
    """

    def __init__(self, llm: Any):
        self._llm = llm

    async def formalize(
        self, intent: ParsedIntent
    ) -> Union[FormalizedEmail, FormalizedMessage, Failure]:
        """
        Formalize the content of an intent.

        Returns:
            FormalizedEmail for email intents, FormalizedMessage for message
            intents, or a Failure (BACKEND_ERROR / MALFORMED_RESPONSE)
        """
        prompt = build_prompt(intent)

        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except openai.APIStatusError as e:
            logger.error(f"Text generation failed with status {e.status_code}: {e.message}")
            return Failure(
                kind=ErrorKind.BACKEND_ERROR,
                detail=f"Text generation backend returned {e.status_code}: {e.message}",
            )
        except openai.APIError as e:
            logger.error(f"Text generation request failed: {e}")
            return Failure(
                kind=ErrorKind.BACKEND_ERROR,
                detail=f"Text generation request failed: {e.message}",
            )

        text = _message_text(response)

        if intent.kind == CommandKind.EMAIL:
            result = parse_email_content(text)
            if isinstance(result, Failure):
                logger.error(f"{result.detail}: {text[:200]!r}")
            return result

        return FormalizedMessage(text=text)
