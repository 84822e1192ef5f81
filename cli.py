# cli.py
import logging
from typing import Callable, List, Optional, Sequence

from prompt_toolkit import PromptSession

from api_service import ApiService
from chat_state import ChatState, system_message
from config import KEY_COMPOSE, KEY_REFRESH, save_token
from errors import AmbiguousResponse, InputError, RemoteError, ValidationError
from protocol import (Conversation, Friend, FriendRequest, FriendRequestList,
                      ResponseAction, TokenData)
from session import ActionResult, SessionController, SessionState
from terminal import KeystrokeReader, TerminalModeSwitch

logger = logging.getLogger(__name__)

CONVERSATION_HINT = ("\nPress CTRL+R to refresh conversation, CTRL+S to send message, "
                     "or CTRL+C to exit...")
REQUESTS_HINT = "\nPress CTRL+R to respond to friend requests or CTRL+C to exit..."
RULE = "=" * 50
THIN_RULE = "-" * 40

LineReader = Callable[..., str]


def parse_selection(text: str, count: int) -> int:
    """Turns a 1-based menu choice into a 0-based index."""
    text = text.strip()
    try:
        choice = int(text)
    except ValueError:
        raise ValidationError(f"Invalid choice '{text}': please enter a number.") from None
    if not 1 <= choice <= count:
        raise ValidationError(
            f"Invalid choice: please select a number between 1 and {count}.")
    return choice - 1


def parse_action(text: str) -> ResponseAction:
    choice = text.strip().lower()
    if choice in ("1", "a", "accept"):
        return ResponseAction.ACCEPT
    if choice in ("2", "r", "reject"):
        return ResponseAction.REJECT
    raise ValidationError("Invalid choice: enter 1 to accept or 2 to reject.")


def validate_message(body: str) -> str:
    body = body.strip()
    if not body:
        raise ValidationError("Message cannot be empty. Message sending cancelled.")
    return body


class CLI:
    """Prompts, screens and interactive sessions for the chat client."""

    def __init__(self, api: ApiService, token: Optional[TokenData] = None,
                 read_line: Optional[LineReader] = None,
                 terminal: Optional[TerminalModeSwitch] = None,
                 reader: Optional[KeystrokeReader] = None):
        self.api = api
        self.token = token
        self.terminal = terminal
        self.reader = reader
        self._session: Optional[PromptSession] = None
        self.read_line = read_line or self._prompt

    def print_logo(self):
        green_color = "\033[92m"
        reset_color = "\033[0m"
        print(f"{green_color}== W A S A L   C H A T =={reset_color}")

    def _prompt(self, message: str, is_password: bool = False) -> str:
        """Reads one line of cooked input."""
        if self._session is None:
            self._session = PromptSession()
        try:
            return self._session.prompt(message, is_password=is_password)
        except EOFError:
            raise InputError("Standard input was closed.") from None

    def _require_token(self) -> TokenData:
        if self.token is None:
            raise ValueError("This command needs a saved login.")
        return self.token

    def choose(self, labels: Sequence[str], question: str) -> int:
        """Shows a numbered menu and asks until a valid entry is picked."""
        for i, label in enumerate(labels, start=1):
            print(f"{i}. {label}")
        while True:
            try:
                return parse_selection(self.read_line(question), len(labels))
            except ValidationError as e:
                print(e)

    # --- Account commands ---

    def login(self, username: str = "", password: str = ""):
        username = username or self.read_line("Enter username: ").strip()
        password = password or self.read_line("Enter password: ", is_password=True)
        token = self.api.login(username, password)
        path = save_token(token)
        self.token = token
        system_message(f"Login successful. Welcome, {token.username or username}!")
        system_message(f"Token saved to {path}")

    def signup(self):
        username = self.read_line("Enter username: ").strip()
        if not username:
            raise ValidationError("Username cannot be empty.")
        password = self.read_line("Enter password: ", is_password=True).strip()
        if not password:
            raise ValidationError("Password cannot be empty.")
        confirm = self.read_line("Confirm password: ", is_password=True).strip()
        if password != confirm:
            raise ValidationError("Passwords do not match.")
        detail = self.api.register(username, password)
        system_message(f"Registration successful! {detail}".rstrip())

    # --- Users & friends ---

    def search(self):
        print("Chat App - User Search")
        print("Type a username to search, or 'quit' to exit.")
        print("-" * 52)
        while True:
            query = self.read_line("\nEnter username to search (or 'quit' to exit): ").strip()
            if query.lower() in ("quit", "exit"):
                print("Goodbye!")
                return
            if not query:
                print("Please enter a username")
                continue

            try:
                user = self.api.search_user(query)
            except RemoteError as e:
                print(f"Error searching user: {e}")
                continue

            print(f"\n✓ User found: {user.username} (ID: {user.user_id})")
            print(f"  Search performed by: {user.searched_by}")
            print(f"  Search timestamp: {user.timestamp}")

            answer = self.read_line(
                f"\nDo you want to send a friend request to {user.username}? (y/n): ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Friend request not sent.")
                continue
            try:
                detail = self.api.send_friend_request(user.username)
            except RemoteError as e:
                print(f"❌ Error sending friend request: {e}")
                continue
            print(f"✓ Friend request sent successfully to {user.username}!")
            if detail:
                print(f"  Message: {detail}")

    def list_friends(self) -> List[Friend]:
        friends = self.api.list_friends()
        print("\n--- Your Friends ---")
        if not friends:
            print("No friends found in your friends list.")
        for i, friend in enumerate(friends, start=1):
            since = f", since {friend.since}" if friend.since else ""
            print(f"{i}. {friend.username} (ID: {friend.user_id}{since})")
        return friends

    def select_friend(self) -> Optional[Friend]:
        friends = self.api.list_friends()
        if not friends:
            system_message("No friends found in your friends list.")
            return None
        print("\n--- Your Friends ---")
        index = self.choose([f"{f.username} (ID: {f.user_id})" for f in friends],
                            "\nEnter the number of the friend: ")
        friend = friends[index]
        print(f"Selected: {friend.username}")
        return friend

    def send_once(self, body: str):
        """Sends a single message to a friend picked from the list."""
        body = validate_message(body)
        friend = self.select_friend()
        if friend is None:
            return
        receipt = self.api.send_message(friend.user_id, body)
        print(f"✅ Message sent successfully to {friend.username}!")
        if receipt.message_id:
            print(f"   Message ID: {receipt.message_id}")

    # --- Conversation ---

    def show_conversation(self, state: ChatState, conversation: Conversation):
        peer = state.peer
        print(f"\n=== Conversation with {peer.username} ===")
        print(f"Total messages in conversation: {conversation.total_messages}")
        print(f"Participants: {', '.join(conversation.participants)}")
        print(RULE)

        messages = conversation.between(state.my_user_id, peer.user_id)
        if not messages:
            print(f"No messages found between you and {peer.username}.")
            return

        print(f"\nMessages between you and {peer.username} ({len(messages)} messages):\n")
        for msg in messages:
            if msg.sender == state.my_user_id:
                print(f"📤 [{msg.display_time}] You: {msg.content}")
                print(f"   Status: {'Read' if msg.is_read else 'Delivered'}")
            else:
                print(f"📥 [{msg.display_time}] {peer.username}: {msg.content}")
                print(f"   Status: {'Read' if msg.is_read else 'Unread'}")
            print(f"   Message ID: {msg.message_id}")
            print(THIN_RULE)
        print(f"\nEnd of conversation with {peer.username}")

    def load_conversation(self, state: ChatState) -> bool:
        """Fetches and prints the conversation; reports failures instead of raising."""
        try:
            conversation = self.api.fetch_conversation(state.peer.user_id)
        except RemoteError as e:
            print(f"Error fetching conversation: {e}")
            return False
        self.show_conversation(state, conversation)
        return True

    def refresh_conversation(self, state: ChatState) -> ActionResult:
        print("\n🔄 Refreshing conversation...")
        self.load_conversation(state)
        print(CONVERSATION_HINT)
        return ActionResult.CONTINUE

    def compose_message(self, state: ChatState) -> ActionResult:
        peer = state.peer
        print("\n💬 Send Message Mode")
        print(f"Sending message to: {peer.username}")
        try:
            body = validate_message(self.read_line("Enter your message: "))
            print("📤 Sending message...")
            self.api.send_message(peer.user_id, body)
        except ValidationError as e:
            print(e)
        except AmbiguousResponse as e:
            print(f"⚠ Message status unknown: {e}")
        except RemoteError as e:
            print(f"Error sending message: {e}")
        else:
            print(f"✅ Message sent successfully to {peer.username}!")
            print("🔄 Refreshing conversation to show your message...")
            self.load_conversation(state)
        print(CONVERSATION_HINT)
        return ActionResult.CONTINUE

    def run_conversation(self, peer: Friend) -> SessionState:
        """Interactive view of one conversation until the user quits."""
        state = ChatState(token=self._require_token(), peer=peer)
        controller = SessionController(
            {
                KEY_REFRESH: lambda: self.refresh_conversation(state),
                KEY_COMPOSE: lambda: self.compose_message(state),
            },
            terminal=self.terminal, reader=self.reader)
        return controller.run()

    def chat(self):
        friend = self.select_friend()
        if friend is None:
            return
        state = ChatState(token=self._require_token(), peer=friend)
        self.load_conversation(state)
        print(CONVERSATION_HINT)
        self.run_conversation(friend)

    # --- Friend requests ---

    def show_requests(self, listing: FriendRequestList, title: str):
        print(f"\n=== {title} ===")
        if listing.message:
            print(f"Message: {listing.message}")
        print(f"Total requests: {listing.total}")
        print(f"Your User ID: {listing.user_id}")
        if not listing.requests:
            print("No friend requests found.")
            return

        print("─" * 49)
        for i, request in enumerate(listing.requests, start=1):
            print(f"\n{i}. Request ID: {request.request_id}")
            print(f"   From: {request.sender_username} (ID: {request.sender_id})")
            print(f"   To: {request.recipient_username} (ID: {request.recipient_id})")
            print(f"   Status: {request.status.value}")
            print(f"   Timestamp: {request.timestamp}")
            if request.request_data:
                print(f"   Request Data: {request.request_data}")
        print(f"\n=== End of {title} ===")

    def _pick_request(self, eligible: List[FriendRequest]) -> FriendRequest:
        print("\n=== Respond to Friend Requests ===")
        print("Available requests (pending/rejected only):")
        for i, request in enumerate(eligible, start=1):
            print(f"{i}. From: {request.sender_username} "
                  f"(Status: {request.status.value}, Request ID: {request.request_id})")
        index = parse_selection(
            self.read_line("\nEnter the number of the request to respond to: "),
            len(eligible))
        return eligible[index]

    def respond_to_request(self, state: ChatState) -> ActionResult:
        """Answers one request. A successful answer ends the session."""
        eligible = state.eligible_requests()
        if not eligible:
            print("\nNo pending or rejected friend requests to respond to.")
            print("Only requests with 'pending' or 'rejected' status can be responded to.")
            print(REQUESTS_HINT)
            return ActionResult.CONTINUE

        try:
            request = self._pick_request(eligible)
            print(f"\nSelected request from: {request.sender_username}")
            print("1. Accept")
            print("2. Reject")
            action = parse_action(self.read_line("Enter your choice (1 or 2): "))
            self.api.respond_to_request(request.sender_username, action)
        except ValidationError as e:
            print(e)
        except RemoteError as e:
            print(f"Error responding to friend request: {e}")
        else:
            print(f"Successfully {action.value}ed friend request from "
                  f"{request.sender_username}!")
            print("Program will now exit.")
            return ActionResult.END_SESSION
        print(REQUESTS_HINT)
        return ActionResult.CONTINUE

    def run_request_responder(self, listing: FriendRequestList) -> SessionState:
        state = ChatState(token=self._require_token(), requests=listing)
        controller = SessionController(
            {KEY_REFRESH: lambda: self.respond_to_request(state)},
            terminal=self.terminal, reader=self.reader)
        return controller.run()

    def friend_requests(self, direction: str = "incoming"):
        if direction == "outgoing":
            print("\n📤 Fetching outgoing friend requests...")
            self.show_requests(self.api.list_outgoing_requests(),
                               "Outgoing Friend Requests")
            return

        print("\n📥 Fetching incoming friend requests...")
        listing = self.api.list_incoming_requests()
        self.show_requests(listing, "Incoming Friend Requests")
        print(REQUESTS_HINT)
        self.run_request_responder(listing)
