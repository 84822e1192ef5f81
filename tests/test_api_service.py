from unittest import mock

import pytest
import requests

from api_service import ApiService
from errors import AmbiguousResponse, RemoteError
from protocol import RequestStatus, ResponseAction


def fake_response(status=200, payload=None, text=None):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status
    if payload is None:
        resp.json.side_effect = ValueError("no json")
        resp.text = text or ""
    else:
        resp.json.return_value = payload
        resp.text = text if text is not None else str(payload)
    return resp


def make_service(*responses, token="secret"):
    session = mock.Mock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return ApiService(token=token, base_url="https://api.test/", timeout=5,
                      session=session), session


def test_bearer_token_and_timeout_are_applied():
    api, session = make_service(fake_response(payload={"conversation": []}))

    api.fetch_conversation("u-2")

    assert session.headers["Authorization"] == "Bearer secret"
    session.request.assert_called_once_with(
        "GET", "https://api.test/auth/conversation/u-2", timeout=5)


def test_send_message_posts_expected_payload():
    api, session = make_service(fake_response(payload={"message_id": 41}))

    receipt = api.send_message("u-2", "hello")

    assert receipt.message_id == 41
    session.request.assert_called_once_with(
        "POST", "https://api.test/auth/send_message", timeout=5,
        json={"message": "hello", "recipient_user_id": "u-2"})


def test_non_success_status_raises_remote_error():
    api, _ = make_service(fake_response(status=401, text="Unauthorized\n"))

    with pytest.raises(RemoteError) as exc:
        api.list_friends()
    assert exc.value.status == 401
    assert "API error (status 401): Unauthorized" in str(exc.value)


def test_undecodable_success_body_is_ambiguous():
    api, _ = make_service(fake_response(status=200, text="<html>oops</html>"))

    with pytest.raises(AmbiguousResponse) as exc:
        api.send_message("u-2", "hello")
    assert exc.value.status == 200


def test_transport_errors_become_remote_errors():
    api, _ = make_service(requests.exceptions.ConnectionError("refused"))
    with pytest.raises(RemoteError, match="Failed to send request"):
        api.fetch_conversation("u-2")

    api, _ = make_service(requests.exceptions.ReadTimeout())
    with pytest.raises(RemoteError, match="timed out after 5s"):
        api.fetch_conversation("u-2")


def test_incoming_requests_are_parsed():
    api, session = make_service(fake_response(payload={
        "incoming_requests": [
            {"request_id": 1, "sender_username": "bob", "status": "Pending"},
            {"request_id": 2, "sender_username": "eve", "status": "accepted"},
        ],
        "total_incoming": 2,
        "user_id": "u-1",
    }))

    listing = api.list_incoming_requests()

    assert listing.total == 2
    assert [r.status for r in listing.requests] == [RequestStatus.PENDING,
                                                    RequestStatus.ACCEPTED]
    session.request.assert_called_once_with(
        "GET", "https://api.test/auth/get_incoming_friend_requests", timeout=5)


def test_respond_to_request_ignores_body():
    api, session = make_service(fake_response(status=200, text=""))

    api.respond_to_request("bob", ResponseAction.REJECT)

    session.request.assert_called_once_with(
        "POST", "https://api.test/auth/respond_friend_request", timeout=5,
        json={"username": "bob", "action": "reject"})


def test_login_returns_token():
    api, session = make_service(fake_response(payload={
        "token": "t0k", "user_id": "u-1", "username": "alice", "expires_in": "24h"}),
        token=None)

    token = api.login("alice", "pw")

    assert token.token == "t0k" and token.user_id == "u-1"
    assert "Authorization" not in session.headers


def test_login_without_token_is_ambiguous():
    api, _ = make_service(fake_response(payload={"message": "ok"}), token=None)

    with pytest.raises(AmbiguousResponse):
        api.login("alice", "pw")


def test_register_conflict_names_the_user():
    api, session = make_service(fake_response(status=409, text="exists"), token=None)

    with pytest.raises(RemoteError, match="'alice' is already taken"):
        api.register("alice", "pw")
    session.request.assert_called_once_with(
        "POST", "https://api.test/register", timeout=5,
        headers={"username": "alice", "password": "pw"})


def test_search_user_sends_username_header():
    api, session = make_service(fake_response(payload={
        "user_data": {"user_id": "u-2", "username": "bob"}, "searched_by": "alice"}))

    user = api.search_user("bob")

    assert (user.user_id, user.username, user.searched_by) == ("u-2", "bob", "alice")
    session.request.assert_called_once_with(
        "GET", "https://api.test/auth/search_user", timeout=5,
        headers={"username": "bob"})
