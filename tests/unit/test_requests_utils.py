import shlex

from firebaserest.request_utils import getCurlCommandString
from firebaserest.request_utils import redactBody
from firebaserest.request_utils import redactUrl
from firebaserest.user_agent_utils import build_user_agent


def test_redact_url_auth_last():
    url = "https://db.example.com/users.json?orderBy=%22name%22&auth=secret-token"
    assert redactUrl(url) == "https://db.example.com/users.json?orderBy=%22name%22&auth=<redacted>"


def test_redact_url_auth_only():
    assert redactUrl("https://db.example.com/a.json?auth=abc") == "https://db.example.com/a.json?auth=<redacted>"


def test_redact_url_without_auth():
    url = "https://identitytoolkit.googleapis.com/v1/accounts:signUp?key=KEY"
    assert redactUrl(url) == url


def test_curl_command_with_headers_and_body():
    cmd = getCurlCommandString("PUT",
                               "https://db.example.com/a.json?auth=tok",
                               headers={"Content-Type": "application/json"},
                               body='{"a": 1}')
    tokens = shlex.split(cmd)
    assert tokens[:3] == ["curl", "-X", "PUT"]
    assert "-H" in tokens
    assert "Content-Type: application/json" in tokens
    assert '{"a": 1}' in tokens
    assert tokens[-1] == "https://db.example.com/a.json?auth=<redacted>"
    assert "tok" not in cmd


def test_curl_command_bytes_body():
    cmd = getCurlCommandString("POST", "https://x.example.com/", body=b'{"b": 2}')
    assert '{"b": 2}' in shlex.split(cmd)


def test_curl_command_without_body():
    tokens = shlex.split(getCurlCommandString("GET", "https://x.example.com/a.json"))
    assert tokens == ["curl", "-X", "GET", "https://x.example.com/a.json"]


def test_user_agent():
    ua = build_user_agent("firebaserest-py", "1.2.3")
    parts = ua.split(";")
    assert parts[0] == "firebaserest-py/1.2.3"
    assert parts[1].startswith("python-")
    assert len(parts) == 3


def test_curl_command_redacts_credentials():
    body = '{"email": "a@b.c", "password": "hunter\\"2", "refresh_token": "RT", "returnSecureToken": true}'
    cmd = getCurlCommandString("POST", "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword?key=KEY", body=body)
    assert "hunter" not in cmd
    assert "RT" not in cmd
    assert '"email": "a@b.c"' in cmd
    assert '"returnSecureToken": true' in cmd


def test_redact_body_leaves_other_fields():
    assert redactBody('{"grant_type": "refresh_token"}') == '{"grant_type": "refresh_token"}'
    assert redactBody('{"idToken":"abc"}') == '{"idToken":"<redacted>"}'
