"""
Pytest configuration and fixtures for all tests.
"""

from typing import Any, Dict, List, Optional

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

from commandbot.config import Settings
from commandbot.integrations.graph import GraphError


OPENAI_URL = "https://api.openai.com/v1/chat/completions"


@pytest.fixture
def settings() -> Settings:
    """Settings that never read the environment's .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        email_domain="example.com",
        graph_access_token="graph-token",
    )


class FakeChatModel:
    """Stands in for ChatOpenAI: records prompts, returns a canned reply or raises."""

    def __init__(self, content: str = "", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[List[Any]] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)

    @property
    def last_prompt(self) -> str:
        return self.calls[-1][0].content


class FakeDirectory:
    """
    In-memory directory/messaging backend with the GraphClient interface.

    Every call is recorded in `calls` as (method, args). Set `errors[method]`
    to make that method raise.
    """

    def __init__(
        self,
        users: Optional[Dict[str, Dict[str, Any]]] = None,
        chats: Optional[List[Dict[str, Any]]] = None,
        me: Optional[Dict[str, Any]] = None,
    ):
        self.users = users or {}
        self.chats = chats or []
        self.me = me or {"id": "me-id"}
        self.members: Dict[str, List[Dict[str, Any]]] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self._next_id = 1

    def _record(self, method: str, *args):
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def _new_id(self, prefix: str) -> str:
        value = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return value

    async def get_user(self, address):
        self._record("get_user", address)
        if address not in self.users:
            raise GraphError(
                f"Graph request failed (404): Resource '{address}' does not exist",
                status_code=404,
                code="Request_ResourceNotFound",
            )
        return self.users[address]

    async def get_me(self):
        self._record("get_me")
        return self.me

    async def list_my_chats(self):
        self._record("list_my_chats")
        return list(self.chats)

    async def list_chat_members(self, chat_id):
        self._record("list_chat_members", chat_id)
        return self.members.get(chat_id, [])

    async def create_chat(self, chat_type, members, topic=None):
        self._record("create_chat", chat_type, members, topic)
        chat = {"id": self._new_id("chat"), "chatType": chat_type, "topic": topic}
        self.chats.append(chat)
        return chat

    async def post_chat_message(self, chat_id, text):
        self._record("post_chat_message", chat_id, text)
        return {"id": self._new_id("msg")}

    async def create_message(self, message):
        self._record("create_message", message)
        return {"id": self._new_id("draft"), **message}


def member(user_id: str) -> Dict[str, Any]:
    return {
        "@odata.type": "#microsoft.graph.aadUserConversationMember",
        "userId": user_id,
        "roles": ["owner"],
    }


def openai_status_error(status_code: int, message: str = "Service unavailable") -> openai.APIStatusError:
    response = httpx.Response(
        status_code,
        request=httpx.Request("POST", OPENAI_URL),
        json={"error": {"message": message}},
    )
    return openai.APIStatusError(message, response=response, body=None)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        users={
            "bob@example.com": {"id": "bob-id", "mail": "bob@example.com"},
            "jane.doe@example.com": {"id": "jane-id", "mail": "jane.doe@example.com"},
        },
    )
