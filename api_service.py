# api_service.py
import logging
from typing import Any, Dict, List, Optional

import requests

from config import API_BASE_URL, REQUEST_TIMEOUT
from errors import AmbiguousResponse, RemoteError
from protocol import (Conversation, Friend, FriendRequestList, MessageReceipt,
                      ResponseAction, TokenData, UserInfo)

logger = logging.getLogger(__name__)


class ApiService:
    """Talks to the chat backend over HTTPS.

    Every call is synchronous and bounded by a single fixed timeout.
    Transport failures and non-success statuses raise RemoteError.
    """

    def __init__(self, token: Optional[str] = None, base_url: str = API_BASE_URL,
                 timeout: float = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, ok=(200,), **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise RemoteError(f"Request to {path} timed out after {self.timeout:g}s") from None
        except requests.exceptions.RequestException as e:
            raise RemoteError(f"Failed to send request: {e}") from e

        logger.debug("%s %s -> %s", method, url, resp.status_code)
        if resp.status_code not in ok:
            raise RemoteError(
                f"API error (status {resp.status_code}): {resp.text.strip()}",
                status=resp.status_code, body=resp.text)
        return resp

    def _json(self, method: str, path: str, ok=(200,), **kwargs) -> Dict[str, Any]:
        resp = self._request(method, path, ok=ok, **kwargs)
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise AmbiguousResponse(
                f"Server answered {resp.status_code} but the reply could not be read; "
                "the outcome is unknown.",
                status=resp.status_code, body=resp.text)
        return data

    # --- Account ---

    def login(self, username: str, password: str) -> TokenData:
        data = self._json("POST", "/login",
                          json={"username": username, "password": password})
        token = TokenData.from_dict(data)
        if not token.token:
            raise AmbiguousResponse("Login response did not contain a token.",
                                    status=200, body=str(data))
        return token

    def register(self, username: str, password: str) -> str:
        try:
            resp = self._request("POST", "/register", ok=(200, 201),
                                 headers={"username": username, "password": password})
        except RemoteError as e:
            if e.status == 409:
                raise RemoteError(f"Username '{username}' is already taken.",
                                  status=e.status, body=e.body) from None
            raise
        return resp.text.strip()

    # --- Users & friends ---

    def search_user(self, username: str) -> UserInfo:
        data = self._json("GET", "/auth/search_user", headers={"username": username})
        return UserInfo.from_dict(data)

    def send_friend_request(self, username: str) -> str:
        data = self._json("POST", "/auth/send_friend_request", ok=(200, 201),
                          json={"username": username})
        return str(data.get("message", ""))

    def list_friends(self) -> List[Friend]:
        data = self._json("GET", "/auth/get_friends")
        return [Friend.from_dict(f) for f in data.get("friends") or []]

    # --- Messages ---

    def fetch_conversation(self, peer_id: str) -> Conversation:
        data = self._json("GET", f"/auth/conversation/{peer_id}")
        return Conversation.from_dict(data)

    def send_message(self, peer_id: str, body: str) -> MessageReceipt:
        data = self._json("POST", "/auth/send_message",
                          json={"message": body, "recipient_user_id": peer_id})
        return MessageReceipt.from_dict(data)

    # --- Friend requests ---

    def list_incoming_requests(self) -> FriendRequestList:
        data = self._json("GET", "/auth/get_incoming_friend_requests")
        return FriendRequestList.from_dict(data, "incoming")

    def list_outgoing_requests(self) -> FriendRequestList:
        data = self._json("GET", "/auth/get_outgoing_friend_requests")
        return FriendRequestList.from_dict(data, "outgoing")

    def respond_to_request(self, username: str, action: ResponseAction):
        self._request("POST", "/auth/respond_friend_request",
                      json={"username": username, "action": action.value})
