"""
Microsoft Graph client for commandbot.

Thin async wrapper around the Graph REST API covering the directory and
messaging operations the gateway needs: user lookup, chat listing and
creation, chat messages and draft emails.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


MEMBER_ODATA_TYPE = "#microsoft.graph.aadUserConversationMember"


def _segment(value: str) -> str:
    """Escape a value for use as a single URL path segment."""
    return quote(value, safe=":@")


class GraphError(Exception):
    """Error returned by Microsoft Graph (or the transport in front of it)."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "GraphError":
        """Build an error from a Graph error envelope: {"error": {"code", "message"}}."""
        code = None
        message = response.text or response.reason_phrase
        try:
            error = response.json().get("error", {})
            code = error.get("code")
            message = error.get("message") or message
        except (ValueError, AttributeError):
            pass
        return cls(
            f"Graph request failed ({response.status_code}): {message}",
            status_code=response.status_code,
            code=code,
        )


class GraphClient:
    """
    Microsoft Graph client for directory and chat operations.

    Acts as the signed-in user (/me) unless a user_id is given, in which
    case /users/{user_id} is used, for app-only tokens.

    Usage:
        async with GraphClient(access_token="...") as graph:
            user = await graph.get_user("jane.doe@example.com")
            chats = await graph.list_my_chats()
            await graph.post_chat_message(chats[0]["id"], "Hello!")
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://graph.microsoft.com/v1.0",
        user_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not access_token:
            raise ValueError("access_token is required")

        self._base_url = base_url.rstrip("/")
        self._me_path = f"/users/{_segment(user_id)}" if user_id else "/me"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ----------------------------------------------------------------------- #
    # Internal: Requests
    # ----------------------------------------------------------------------- #

    def _url(self, path: str) -> str:
        if path.startswith("https://") or path.startswith("http://"):
            return path
        return f"{self._base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                self._url(path),
                json=json,
                params=params,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise GraphError(f"Graph request failed: {e}") from e

        if response.is_error:
            raise GraphError.from_response(response)

        if not response.content:
            return {}
        return response.json()

    async def _get_collection(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """GET a collection, following @odata.nextLink pages."""
        items: List[Dict[str, Any]] = []
        data = await self._request("GET", path, params=params)
        items.extend(data.get("value", []))

        next_link = data.get("@odata.nextLink")
        while next_link:
            data = await self._request("GET", next_link)
            items.extend(data.get("value", []))
            next_link = data.get("@odata.nextLink")

        return items

    # ----------------------------------------------------------------------- #
    # Directory
    # ----------------------------------------------------------------------- #

    async def get_user(self, address: str) -> Dict[str, Any]:
        """Look up a user by email address / user principal name."""
        return await self._request("GET", f"/users/{_segment(address)}")

    async def get_me(self) -> Dict[str, Any]:
        """Get the user this client acts as."""
        return await self._request("GET", self._me_path)

    # ----------------------------------------------------------------------- #
    # Chats
    # ----------------------------------------------------------------------- #

    async def list_my_chats(self) -> List[Dict[str, Any]]:
        """List the caller's chats, with members expanded."""
        return await self._get_collection(
            f"{self._me_path}/chats",
            params={"$expand": "members"},
        )

    async def list_chat_members(self, chat_id: str) -> List[Dict[str, Any]]:
        return await self._get_collection(f"/chats/{_segment(chat_id)}/members")

    async def create_chat(
        self,
        chat_type: str,
        members: List[Dict[str, Any]],
        topic: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a chat.

        Args:
            chat_type: "oneOnOne" or "group"
            members: [{"user_id": "...", "roles": ["owner"]}, ...]
            topic: Topic for group chats
        """
        body: Dict[str, Any] = {
            "chatType": chat_type,
            "members": [
                {
                    "@odata.type": MEMBER_ODATA_TYPE,
                    "roles": list(member.get("roles", [])),
                    "user@odata.bind": f"{self._base_url}/users('{member['user_id']}')",
                }
                for member in members
            ],
        }
        if topic is not None:
            body["topic"] = topic

        chat = await self._request("POST", "/chats", json=body)
        logger.info(f"Created {chat_type} chat {chat.get('id')}")
        return chat

    async def post_chat_message(self, chat_id: str, text: str) -> Dict[str, Any]:
        """Post a plain-text message to a chat."""
        return await self._request(
            "POST",
            f"/chats/{_segment(chat_id)}/messages",
            json={"body": {"contentType": "text", "content": text}},
        )

    # ----------------------------------------------------------------------- #
    # Mail
    # ----------------------------------------------------------------------- #

    async def create_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Create a message in the caller's mailbox (a draft unless sent later)."""
        return await self._request("POST", f"{self._me_path}/messages", json=message)
