# protocol.py
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

# --- Wire constants ---
SERVER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DISPLAY_TIME_FORMAT = "%b %-d, %Y at %-I:%M %p"


class RequestStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @staticmethod
    def parse(value: Any) -> 'RequestStatus':
        try:
            return RequestStatus(str(value).strip().lower())
        except ValueError:
            return RequestStatus.UNKNOWN


class ResponseAction(Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def format_timestamp(raw: str) -> str:
    """Renders a server timestamp for humans, falling back to the raw text."""
    try:
        return datetime.strptime(raw, SERVER_TIME_FORMAT).strftime(DISPLAY_TIME_FORMAT)
    except (TypeError, ValueError):
        return raw


def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _int(data: Dict[str, Any], key: str) -> int:
    try:
        return int(data.get(key) or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class TokenData:
    """The login saved between runs."""
    token: str
    user_id: str = ""
    username: str = ""
    expires_in: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'TokenData':
        return TokenData(
            token=_str(data, "token"),
            user_id=_str(data, "user_id"),
            username=_str(data, "username"),
            expires_in=_str(data, "expires_in"),
        )


@dataclass
class UserInfo:
    user_id: str
    username: str
    searched_by: str = ""
    timestamp: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'UserInfo':
        user = data.get("user_data") or {}
        return UserInfo(
            user_id=_str(user, "user_id"),
            username=_str(user, "username"),
            searched_by=_str(data, "searched_by"),
            timestamp=_str(data, "timestamp"),
        )


@dataclass
class Friend:
    """A conversation peer.

    The backend has used both friend_id/friend_username and
    user_id/username for the same record, so either spelling is accepted.
    """
    user_id: str
    username: str
    since: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Friend':
        return Friend(
            user_id=_str(data, "friend_id") or _str(data, "user_id"),
            username=_str(data, "friend_username") or _str(data, "username"),
            since=_str(data, "friendship_date") or _str(data, "added_at"),
        )


@dataclass
class ConversationMessage:
    message_id: int
    sender: str
    recipient: str
    content: str
    timestamp: str = ""
    is_read: bool = False

    @property
    def display_time(self) -> str:
        return format_timestamp(self.timestamp)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'ConversationMessage':
        return ConversationMessage(
            message_id=_int(data, "message_id"),
            sender=_str(data, "sender"),
            recipient=_str(data, "recipient"),
            content=_str(data, "message"),
            timestamp=_str(data, "timestamp"),
            is_read=bool(data.get("is_read", False)),
        )


@dataclass
class Conversation:
    messages: List[ConversationMessage] = field(default_factory=list)
    participants: List[str] = field(default_factory=list)
    total_messages: int = 0

    def between(self, me: str, peer: str) -> List[ConversationMessage]:
        """Messages exchanged by exactly these two users, in server order."""
        return [
            m for m in self.messages
            if (m.sender == me and m.recipient == peer)
            or (m.sender == peer and m.recipient == me)
        ]

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Conversation':
        return Conversation(
            messages=[ConversationMessage.from_dict(m)
                      for m in data.get("conversation") or []],
            participants=[str(p) for p in data.get("participants") or []],
            total_messages=_int(data, "total_messages"),
        )


@dataclass
class MessageReceipt:
    message_id: int = 0
    timestamp: str = ""
    detail: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'MessageReceipt':
        return MessageReceipt(
            message_id=_int(data, "message_id"),
            timestamp=_str(data, "timestamp"),
            detail=_str(data, "message"),
        )


@dataclass
class FriendRequest:
    request_id: int
    sender_id: str
    sender_username: str
    recipient_id: str
    recipient_username: str
    status: RequestStatus = RequestStatus.PENDING
    timestamp: str = ""
    request_data: str = ""

    @property
    def respondable(self) -> bool:
        # Rejected requests stay open and can be resent; accepted ones are final.
        return self.status in (RequestStatus.PENDING, RequestStatus.REJECTED)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'FriendRequest':
        return FriendRequest(
            request_id=_int(data, "request_id"),
            sender_id=_str(data, "sender_user_id"),
            sender_username=_str(data, "sender_username"),
            recipient_id=_str(data, "recipient_user_id"),
            recipient_username=_str(data, "recipient_username"),
            status=RequestStatus.parse(data.get("status")),
            timestamp=_str(data, "timestamp"),
            request_data=_str(data, "request_data"),
        )


@dataclass
class FriendRequestList:
    requests: List[FriendRequest] = field(default_factory=list)
    total: int = 0
    message: str = ""
    user_id: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any], direction: str) -> 'FriendRequestList':
        """Parses a get_<direction>_friend_requests body."""
        return FriendRequestList(
            requests=[FriendRequest.from_dict(r)
                      for r in data.get(f"{direction}_requests") or []],
            total=_int(data, f"total_{direction}"),
            message=_str(data, "message"),
            user_id=_str(data, "user_id"),
        )
