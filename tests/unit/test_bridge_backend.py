"""
Unit tests for the native bridge backend, with a mocked helper.
"""

from unittest import mock

import pytest

from firebaserest.Auth import Auth
from firebaserest.Backend import BridgeBackend
from firebaserest.Database import Database
from firebaserest.Dispatch import QueuedDispatcher
from firebaserest.RestClient import Query
from firebaserest.utils import FirebaseApiException


@pytest.fixture
def helper():
    return mock.Mock()


@pytest.fixture
def backend(helper, debug_messages):
    return BridgeBackend(helper, printDebug=debug_messages.append)


@pytest.fixture
def dispatcher():
    return QueuedDispatcher()


@pytest.fixture
def auth(backend, dispatcher):
    return Auth(backend, dispatcher)


@pytest.fixture
def db(backend, dispatcher):
    return Database(backend, dispatcher)


def test_helper_required():
    with pytest.raises(FirebaseApiException):
        BridgeBackend(None)


def test_operation_id_passed_to_helper(auth, helper):
    opId = auth.sign_in_with_email("a@b.c", "pw")
    helper.signInWithEmail.assert_called_once_with("a@b.c", "pw", opId)


def test_auth_event_resolves_its_operation(auth, backend, dispatcher):
    results = []
    opId = auth.sign_in_anonymously(results.append)
    assert opId in backend.pending

    assert backend.onAuthResult(opId, True, "UID", "", "", "", "TOKEN")
    dispatcher.pump()

    assert results[0].success
    assert results[0].operationId == opId
    assert results[0].userId == "UID"
    assert results[0].authToken == "TOKEN"
    assert opId not in backend.pending


def test_out_of_order_events(db, backend, helper, dispatcher):
    results = []
    first = db.set_value("a", '{"x":1}', results.append)
    second = db.get_value("b", results.append)
    helper.setDatabaseValue.assert_called_once_with("a", '{"x":1}', first)
    helper.getDatabaseValue.assert_called_once_with("b", second)

    backend.onDatabaseResult(second, True, "b", '"B"', "")
    dispatcher.pump()
    # The first operation is still waiting.
    assert [r.operationId for r in results] == [second]
    assert first in backend.pending

    backend.onDatabaseResult(first, False, "a", "", "Permission denied")
    dispatcher.pump()
    assert [r.operationId for r in results] == [second, first]
    assert results[0].path == "b"
    assert results[0].data == '"B"'
    assert not results[1].success
    assert results[1].errorMessage == "Permission denied"
    assert len(backend.pending) == 0


def test_unknown_event_is_dropped(db, backend, dispatcher, debug_messages):
    results = []
    opId = db.get_value("a", results.append)
    assert not backend.onDatabaseResult("DB_999", True, "a", "{}", "")
    dispatcher.pump()
    assert results == []
    assert opId in backend.pending
    assert any("DB_999" in m for m in debug_messages)


def test_failed_auth_event_without_message(auth, backend, dispatcher):
    results = []
    opId = auth.sign_in_with_google(results.append)
    backend.onAuthResult(opId, False)
    dispatcher.pump()
    assert not results[0].success
    assert results[0].errorMessage == "Network error"


@pytest.mark.parametrize("call, method, args", [
    (lambda a: a.sign_up_with_email("a@b.c", "pw"), "signUpWithEmail", ("a@b.c", "pw")),
    (lambda a: a.sign_in_with_google(), "signInWithGoogle", ()),
    (lambda a: a.send_email_verification(), "sendEmailVerification", ()),
    (lambda a: a.send_password_reset_email("a@b.c"), "sendPasswordResetEmail", ("a@b.c",)),
    (lambda a: a.update_password("pw2"), "updatePassword", ("pw2",)),
    (lambda a: a.update_display_name("Bob"), "updateDisplayName", ("Bob",)),
    (lambda a: a.delete_user_account(), "deleteUserAccount", ()),
])
def test_auth_helper_methods(auth, helper, call, method, args):
    opId = call(auth)
    getattr(helper, method).assert_called_once_with(*(args + (opId,)))


@pytest.mark.parametrize("call", [
    lambda a, cb: a.update_email("n@b.c", cb),
    lambda a, cb: a.get_user_data(cb),
])
def test_auth_not_available_natively(auth, backend, dispatcher, call):
    results = []
    call(auth, results.append)
    dispatcher.pump()
    assert results[0].errorMessage == "Platform not supported"
    assert len(backend.pending) == 0


def test_query_forwarded(db, helper):
    opId = db.query_values("scores", order_by_key="score", limit_to_first=10, start_at="5")
    helper.queryDatabaseValues.assert_called_once_with("scores", "score", 10, "5", "", opId)


def test_unsupported_query_filters(db, backend, dispatcher):
    results = []
    db.query("scores", Query(limitToLast=3), results.append)
    dispatcher.pump()
    assert results[0].errorMessage == "Platform not supported"
    assert results[0].path == "scores"
    assert len(backend.pending) == 0


def test_value_change_events(db, backend, helper, dispatcher):
    changes = []
    db.listen_for_value_changes("rooms/1", lambda path, data: changes.append((path, data)))
    helper.listenForValueChanges.assert_called_once_with("rooms/1")

    backend.onDatabaseValueChanged("rooms/1", '{"n":1}')
    backend.onDatabaseValueChanged("rooms/2", '{"n":2}')
    dispatcher.pump()
    assert changes == [("rooms/1", '{"n":1}')]

    db.stop_listening("rooms/1")
    helper.stopListening.assert_called_once_with("rooms/1")
    backend.onDatabaseValueChanged("rooms/1", '{"n":3}')
    dispatcher.pump()
    assert len(changes) == 1


def test_current_user(auth, helper):
    helper.isUserSignedIn.return_value = True
    helper.getAuthToken.return_value = "TOKEN"
    helper.getCurrentUserId.return_value = "UID"
    helper.getCurrentUserEmail.return_value = "a@b.c"
    helper.getCurrentUserDisplayName.return_value = None

    assert auth.is_user_signed_in()
    assert auth.get_current_user_id() == "UID"
    assert auth.get_current_user_email() == "a@b.c"
    assert auth.get_current_user_display_name() == ""
    assert auth.get_auth_token() == "TOKEN"

    auth.sign_out()
    helper.signOut.assert_called_once_with()


def test_signed_out_user(auth, helper):
    helper.isUserSignedIn.return_value = False
    assert not auth.is_user_signed_in()
    assert auth.get_current_user_id() == ""
