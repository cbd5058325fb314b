import pytest

from keylic.client.domain import operations
from keylic.client.domain.entities import AppIdentity
from keylic.client.domain.operations import SigningKey

IDENTITY = AppIdentity(name="App", owner_id="O", version="1.0")


def test_init_is_the_only_request_signed_with_app_secret():
    assert operations.init("1.0", "E").signing_key is SigningKey.APP_SECRET
    for request in (
        operations.login("u", "p", "hw"),
        operations.license("k", "hw"),
        operations.var("v"),
        operations.check(),
        operations.fetch_online(),
    ):
        assert request.signing_key is SigningKey.SESSION_KEY


def test_init_fields():
    fields = operations.init("1.0", "E").to_fields(IDENTITY, None)
    assert fields == [
        ("type", "init"),
        ("ver", "1.0"),
        ("enckey", "E"),
        ("name", "App"),
        ("ownerid", "O"),
    ]


def test_init_fields_with_hash():
    fields = dict(operations.init("1.0", "E", "abc").to_fields(IDENTITY, None))
    assert fields["hash"] == "abc"
    assert "sessionid" not in fields


def test_session_fields_appended_in_order():
    fields = operations.login("alice", "pw", "HW").to_fields(IDENTITY, "abc123")
    assert fields == [
        ("type", "login"),
        ("username", "alice"),
        ("pass", "pw"),
        ("hwid", "HW"),
        ("sessionid", "abc123"),
        ("name", "App"),
        ("ownerid", "O"),
    ]


def test_session_fields_require_session_id():
    with pytest.raises(ValueError):
        operations.check().to_fields(IDENTITY, None)


@pytest.mark.parametrize(
    ("request_", "expected_type", "expected_fields"),
    [
        (operations.register("u", "p", "k", "hw"), "register",
         {"username": "u", "pass": "p", "key": "k", "hwid": "hw"}),
        (operations.upgrade("u", "k"), "upgrade", {"username": "u", "key": "k"}),
        (operations.token_login("u", "t", "hw"), "login",
         {"username": "u", "token": "t", "hwid": "hw"}),
        (operations.license("k", "hw"), "license", {"key": "k", "hwid": "hw"}),
        (operations.var("v"), "var", {"varid": "v"}),
        (operations.get_var("v"), "getvar", {"var": "v"}),
        (operations.set_var("v", "d"), "setvar", {"var": "v", "data": "d"}),
        (operations.file("f"), "file", {"fileid": "f"}),
        (operations.webhook("w", "p"), "webhook", {"webid": "w", "params": "p"}),
        (operations.check_blacklist(), "checkblacklist", {}),
        (operations.check(), "check", {}),
        (operations.fetch_online(), "fetchOnline", {}),
        (operations.chat_get("c"), "chatget", {"channel": "c"}),
        (operations.chat_send("c", "m"), "chatsend", {"channel": "c", "message": "m"}),
        (operations.change_username("n"), "changeUsername", {"newUsername": "n"}),
        (operations.ban(), "ban", {}),
        (operations.log("m", "pc"), "log", {"message": "m", "pcuser": "pc"}),
    ],
)
def test_request_builders(request_, expected_type, expected_fields):
    assert request_.type == expected_type
    assert dict(request_.fields) == expected_fields


def test_fire_and_forget_requests():
    assert not operations.ban().expects_response
    assert not operations.log("m", "pc").expects_response
    assert operations.check().expects_response
