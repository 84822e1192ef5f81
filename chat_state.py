# chat_state.py
from dataclasses import dataclass
from typing import List, Optional

from protocol import Friend, FriendRequest, FriendRequestList, TokenData


@dataclass(frozen=True)
class ChatState:
    """The identity and target of one interactive run.

    Built once before the session starts and never mutated afterwards;
    handlers only read from it.
    """
    token: TokenData
    peer: Optional[Friend] = None
    requests: Optional[FriendRequestList] = None

    @property
    def my_user_id(self) -> str:
        return self.token.user_id

    @property
    def username(self) -> str:
        return self.token.username

    def eligible_requests(self) -> List[FriendRequest]:
        """Requests that may still be answered, in the order fetched."""
        if self.requests is None:
            return []
        return eligible_requests(self.requests.requests)


def eligible_requests(requests: List[FriendRequest]) -> List[FriendRequest]:
    return [r for r in requests if r.respondable]


def system_message(content: str):
    """Prints a status line."""
    print(f"[SYSTEM] {content}")
