# main.py
import argparse
import logging
import sys

from api_service import ApiService
from cli import CLI
from config import load_token
from errors import ChatClientError

AUTHENTICATED_COMMANDS = ("search", "friends", "send", "chat", "requests")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wasal-chat", description="Terminal client for the Wasal chat backend.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log HTTP and terminal activity to stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and save the token.")
    login.add_argument("username", nargs="?", default="")
    login.add_argument("password", nargs="?", default="")

    sub.add_parser("signup", help="Register a new account.")
    sub.add_parser("search", help="Search users and send friend requests.")
    sub.add_parser("friends", help="List your friends.")

    send = sub.add_parser("send", help="Send one message to a friend.")
    send.add_argument("message", nargs="+")

    sub.add_parser("chat", help="Open a conversation (CTRL+R refresh, CTRL+S send).")

    requests_cmd = sub.add_parser("requests", help="View and answer friend requests.")
    requests_cmd.add_argument("direction", nargs="?", default="incoming",
                              choices=("incoming", "outgoing"))
    return parser.parse_args(argv)


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # urllib3 is noisy at DEBUG and echoes request headers
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run(args: argparse.Namespace) -> int:
    token = load_token() if args.command in AUTHENTICATED_COMMANDS else None
    api = ApiService(token=token.token if token else None)
    cli_app = CLI(api, token=token)

    if args.command == "login":
        cli_app.login(args.username, args.password)
    elif args.command == "signup":
        cli_app.signup()
    elif args.command == "search":
        cli_app.search()
    elif args.command == "friends":
        cli_app.list_friends()
    elif args.command == "send":
        cli_app.send_once(" ".join(args.message))
    elif args.command == "chat":
        cli_app.print_logo()
        cli_app.chat()
    elif args.command == "requests":
        cli_app.friend_requests(args.direction)
    return 0


def main(argv=None):
    """
    Parses the command line and runs the chosen command.
    """
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        code = run(args)
    except ChatClientError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        print("\nExiting. Goodbye!")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
