import os
import sys
import threading

import pytest

# Get the directory of the current conftest.py file
current_dir = os.path.dirname(os.path.abspath(__file__))

# Calculate the project root (adjust the number of ".." if needed)
project_root = os.path.abspath(os.path.join(current_dir, '../../'))

# Insert the project root at the beginning of sys.path
if project_root not in sys.path:
    sys.path.insert(0, project_root)


class FakeTransport:
    """
    In-process stand-in for HttpTransport.

    Requests are recorded. With a responder they complete synchronously with
    responder(request), otherwise they wait for complete() to be called.
    """

    def __init__(self, responder=None):
        self.responder = responder
        self.requests = []
        self._lock = threading.Lock()
        self.closed = False

    def request(self, verb, url, onComplete, headers=None, body=None, timeout=None):
        req = {
            'verb': verb,
            'url': url,
            'headers': headers,
            'body': body,
            'timeout': timeout,
            'onComplete': onComplete,
        }
        with self._lock:
            self.requests.append(req)
        if self.responder is not None:
            onComplete(self.responder(req))

    def complete(self, index, response):
        self.requests[index]['onComplete'](response)

    def close(self, wait=True):
        self.closed = True


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def debug_messages():
    return []


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Never read or write the user's real settings file."""
    path = str(tmp_path / 'firebaserest.yaml')
    monkeypatch.setattr('firebaserest.utils.CONFIG_FILE_PATH', path)
    monkeypatch.setenv('FIREBASE_CREDS_FILE', path)
    monkeypatch.delenv('FIREBASE_EPHEMERAL_CREDS', raising=False)
    return path
