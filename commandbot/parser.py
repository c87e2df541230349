"""
Command parser for commandbot.

Turns a raw command such as "email bob cc carol about the budget" into a
ParsedIntent. The grammar is a small fixed set of shapes:

    email <recipient> cc <cc> about <content>
    email <recipient> about <content>
    email <recipient> <content...>          (no " about ": first token is the recipient)
    message <recipient> about <content>

Parsing never raises. Problems come back as a Failure.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Union

from .models import CommandKind, ErrorKind, Failure, ParsedIntent

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Grammar
# --------------------------------------------------------------------------- #

EMAIL_KEYWORD = "email"
MESSAGE_KEYWORD = "message"

# Non-greedy slots so the first " cc " / " about " wins.
_EMAIL_WITH_CC = re.compile(
    r"^email (?P<recipient>.+?) cc (?P<cc>.+?) about (?P<content>.+)$"
)
_EMAIL_WITH_ABOUT = re.compile(
    r"^email (?P<recipient>.+?) about (?P<content>.+)$"
)
_EMAIL_BARE = re.compile(
    r"^email (?P<recipient>\S+) (?P<content>.+)$"
)
_MESSAGE = re.compile(
    r"^message (?P<recipient>.+?) about (?P<content>.+)$"
)

# Normalization drops the space after a trailing delimiter. A lone delimiter
# is never content.
_DELIMITERS = frozenset({"about", "cc"})


def normalize(text: str) -> str:
    """Lower-case, trim and collapse runs of whitespace."""
    return " ".join(text.lower().split())


def _invalid(detail: str) -> Failure:
    return Failure(kind=ErrorKind.INVALID_FORMAT, detail=detail)


# --------------------------------------------------------------------------- #
# Branches
# --------------------------------------------------------------------------- #

def _parse_email(text: str) -> Union[ParsedIntent, Failure]:
    if " cc " in text:
        match = _EMAIL_WITH_CC.match(text)
        if not match:
            return _invalid("email with cc must look like 'email <to> cc <cc> about <content>'")
        return ParsedIntent(
            kind=CommandKind.EMAIL,
            recipient=match["recipient"].strip(),
            cc_recipient=match["cc"].strip(),
            content_hint=match["content"].strip(),
        )

    match = _EMAIL_WITH_ABOUT.match(text) or _EMAIL_BARE.match(text)
    if not match or match["content"] in _DELIMITERS:
        return _invalid("email must look like 'email <to> about <content>'")
    return ParsedIntent(
        kind=CommandKind.EMAIL,
        recipient=match["recipient"].strip(),
        cc_recipient="",
        content_hint=match["content"].strip(),
    )


def _parse_message(text: str) -> Union[ParsedIntent, Failure]:
    match = _MESSAGE.match(text)
    if not match:
        return _invalid("message must look like 'message <to> about <content>'")
    return ParsedIntent(
        kind=CommandKind.MESSAGE,
        recipient=match["recipient"].strip(),
        content_hint=match["content"].strip(),
    )


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def parse_command(text: Optional[str]) -> Union[ParsedIntent, Failure]:
    """
    Parse a raw command into a ParsedIntent.

    Args:
        text: The free-text command

    Returns:
        ParsedIntent on success, otherwise a Failure with kind
        INVALID_FORMAT or UNSUPPORTED_TYPE
    """
    if not text or not text.strip():
        return _invalid("command is empty")

    text = normalize(text)
    try:
        if text.startswith(EMAIL_KEYWORD):
            return _parse_email(text)
        if text.startswith(MESSAGE_KEYWORD):
            return _parse_message(text)
    except ValueError as e:
        logger.warning(f"Error parsing command {text!r}: {e}")
        return _invalid(str(e))

    keyword = text.split(" ", 1)[0]
    return Failure(kind=ErrorKind.UNSUPPORTED_TYPE, detail=f"unsupported command type: {keyword}")
