"""
Directory/messaging gateway for commandbot.

Translates intents into Microsoft Graph operations: draft emails, and chat
messages posted to a one-on-one or group chat that is looked up first and
created when missing. The backend is the source of truth; nothing is cached
between requests.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ...config import Settings
from ...models import Delivery, ErrorKind, Failure, ParsedIntent
from .client import GraphError

logger = logging.getLogger(__name__)


ONE_ON_ONE = "oneOnOne"
GROUP = "group"
OWNER_ROLE = "owner"


# --------------------------------------------------------------------------- #
# Addressing
# --------------------------------------------------------------------------- #

def derive_address(name: str, domain: str, separator: str = ".") -> str:
    """
    Derive an email address from a display name.

    "jane doe" + "example.com" -> "jane.doe@example.com"
    """
    local_part = separator.join(name.lower().split())
    return f"{local_part}@{domain.lstrip('@')}"


def _recipient(address: str) -> Dict[str, Any]:
    return {"emailAddress": {"address": address}}


# --------------------------------------------------------------------------- #
# Comparison Policies
# --------------------------------------------------------------------------- #

def names_group(recipient: str, keyword: str = "group", case_sensitive: bool = False) -> bool:
    """Whether a recipient string should be routed to a group chat."""
    if case_sensitive:
        return keyword in recipient
    return keyword.lower() in recipient.lower()


def topic_matches(topic: Optional[str], recipient: str, case_sensitive: bool = True) -> bool:
    """Whether an existing group chat's topic names this recipient."""
    if topic is None:
        return False
    if case_sensitive:
        return topic == recipient
    return topic.casefold() == recipient.casefold()


# --------------------------------------------------------------------------- #
# Gateway
# --------------------------------------------------------------------------- #

class MessagingGateway:
    """
    Boundary between intents and the directory/messaging backend.

    `directory` is any object with the GraphClient coroutine methods
    (get_user, get_me, list_my_chats, list_chat_members, create_chat,
    post_chat_message, create_message). Every operation is a single
    attempt; backend errors come back as a GATEWAY_FAILURE.
    """

    def __init__(self, directory: Any, settings: Settings):
        self._directory = directory
        self._settings = settings

    def address_for(self, name: str) -> str:
        return derive_address(
            name,
            self._settings.email_domain,
            self._settings.address_separator,
        )

    # ----------------------------------------------------------------------- #
    # Email
    # ----------------------------------------------------------------------- #

    def build_draft(self, intent: ParsedIntent, subject: str, body: str) -> Dict[str, Any]:
        """Build the Graph message resource for a draft email."""
        message: Dict[str, Any] = {
            "subject": subject,
            "body": {"contentType": "text", "content": body},
            "toRecipients": [_recipient(self.address_for(intent.recipient))],
            "isDraft": True,
        }
        if intent.has_cc:
            message["ccRecipients"] = [_recipient(self.address_for(intent.cc_recipient))]
        return message

    async def create_draft_email(
        self, intent: ParsedIntent, subject: str, body: str
    ) -> Union[Delivery, Failure]:
        """
        Create a draft email for the intent.

        Drafts are not deduplicated: calling this twice creates two drafts.
        """
        message = self.build_draft(intent, subject, body)
        try:
            created = await self._directory.create_message(message)
        except GraphError as e:
            logger.error(f"Failed to create draft for {intent.recipient}: {e}")
            return Failure(kind=ErrorKind.GATEWAY_FAILURE, detail=e.message)

        logger.info(f"Draft email {created.get('id')} created for {intent.recipient}")
        return Delivery(resource_id=created.get("id"))

    # ----------------------------------------------------------------------- #
    # Chat
    # ----------------------------------------------------------------------- #

    def is_group_recipient(self, recipient: str) -> bool:
        return names_group(
            recipient,
            self._settings.group_keyword,
            self._settings.group_routing_case_sensitive,
        )

    async def send_message(self, recipient: str, text: str) -> Union[Delivery, Failure]:
        """Post a plain-text message to the recipient's chat, creating it if needed."""
        try:
            if self.is_group_recipient(recipient):
                chat, created = await self.get_or_create_group_chat(recipient)
            else:
                chat, created = await self.get_or_create_one_on_one_chat(recipient)

            await self._directory.post_chat_message(chat["id"], text)
        except GraphError as e:
            logger.error(f"Failed to message {recipient}: {e}")
            return Failure(kind=ErrorKind.GATEWAY_FAILURE, detail=e.message)

        logger.info(f"Message posted to chat {chat['id']} ({recipient})")
        return Delivery(resource_id=chat["id"], chat_created=created)

    async def _members_of(self, chat: Dict[str, Any]) -> List[Dict[str, Any]]:
        members = chat.get("members")
        if members is None:
            members = await self._directory.list_chat_members(chat["id"])
        return members

    async def get_or_create_one_on_one_chat(self, recipient: str) -> Tuple[Dict[str, Any], bool]:
        """
        Find the first one-on-one chat with the recipient, or create one.

        Returns:
            (chat, created)
        """
        user = await self._directory.get_user(self.address_for(recipient))
        user_id = user["id"]

        for chat in await self._directory.list_my_chats():
            if chat.get("chatType") != ONE_ON_ONE:
                continue
            members = await self._members_of(chat)
            if any(member.get("userId") == user_id for member in members):
                return chat, False

        chat = await self._directory.create_chat(
            ONE_ON_ONE,
            members=[{"user_id": user_id, "roles": [OWNER_ROLE]}],
        )
        return chat, True

    async def get_or_create_group_chat(self, topic: str) -> Tuple[Dict[str, Any], bool]:
        """
        Find the first group chat whose topic matches, or create one with the
        caller as its only owner.

        Returns:
            (chat, created)
        """
        for chat in await self._directory.list_my_chats():
            if chat.get("chatType") != GROUP:
                continue
            if topic_matches(chat.get("topic"), topic, self._settings.group_topic_case_sensitive):
                return chat, False

        me = await self._directory.get_me()
        chat = await self._directory.create_chat(
            GROUP,
            members=[{"user_id": me["id"], "roles": [OWNER_ROLE]}],
            topic=topic,
        )
        return chat, True
