from typing import List

import pytest

from errors import InputError, TerminalUnavailable
from protocol import (Conversation, ConversationMessage, Friend, FriendRequest,
                      FriendRequestList, MessageReceipt, RequestStatus, TokenData)
from terminal import TerminalState


class FakeTerminal:
    def __init__(self, fail_on_enter: int = 0):
        self.enters = 0
        self.restores = 0
        self.raw = False
        self.fail_on_enter = fail_on_enter

    def enter_raw(self):
        if self.raw:
            raise AssertionError("raw mode entered twice")
        if self.fail_on_enter and self.enters + 1 == self.fail_on_enter:
            raise TerminalUnavailable("not a tty")
        self.enters += 1
        self.raw = True
        return TerminalState(0, [])

    def restore(self, state):
        if state is None or state.consumed:
            return
        state.consumed = True
        self.restores += 1
        self.raw = False


class FakeReader:
    """Feeds bytes; reading past the end is an input failure."""

    def __init__(self, keys, terminal=None):
        self.keys = list(keys)
        self.terminal = terminal

    def read_byte(self) -> int:
        if self.terminal is not None:
            assert self.terminal.raw, "read while in cooked mode"
        if not self.keys:
            raise InputError("Standard input was closed.")
        return self.keys.pop(0)


class FakeApi:
    def __init__(self):
        self.calls: List[tuple] = []
        self.conversation = Conversation()
        self.fail = {}

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    def fetch_conversation(self, peer_id):
        self._record("fetch_conversation", peer_id)
        return self.conversation

    def send_message(self, peer_id, body):
        self._record("send_message", peer_id, body)
        return MessageReceipt(message_id=7)

    def respond_to_request(self, username, action):
        self._record("respond_to_request", username, action)

    def list_friends(self):
        self._record("list_friends")
        return [Friend("u-2", "bob"), Friend("u-3", "carol")]


def scripted_lines(*lines):
    it = iter(lines)

    def read_line(message, is_password=False):
        return next(it)
    return read_line


@pytest.fixture
def token():
    return TokenData(token="secret", user_id="u-1", username="alice")


@pytest.fixture
def peer():
    return Friend(user_id="u-2", username="bob")


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def request_list():
    return FriendRequestList(requests=[
        FriendRequest(1, "u-5", "eve", "u-1", "alice", RequestStatus.ACCEPTED),
        FriendRequest(2, "u-2", "bob", "u-1", "alice", RequestStatus.PENDING),
        FriendRequest(3, "u-3", "carol", "u-1", "alice", RequestStatus.REJECTED),
    ], total=3, user_id="u-1")


@pytest.fixture
def conversation():
    return Conversation(
        messages=[
            ConversationMessage(1, "u-1", "u-2", "hi bob", "2024-01-02 15:04:05", True),
            ConversationMessage(2, "u-2", "u-1", "hey alice", "2024-01-02 15:05:00", False),
            ConversationMessage(3, "u-9", "u-2", "unrelated", "", False),
        ],
        participants=["alice", "bob"],
        total_messages=3,
    )

