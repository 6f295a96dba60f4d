"""
This module contains basic sanity tests for the CLI commands.
"""

import json
import sys
from unittest import mock

import pytest
import requests
import yaml

import firebaserest
from firebaserest import utils
from firebaserest.__main__ import cli
from firebaserest.__main__ import main

transport_module = sys.modules['firebaserest.Transport']


@pytest.fixture
def configured(isolated_config):
    with open(isolated_config, 'w') as f:
        f.write(yaml.safe_dump({
            'api_key': 'KEY',
            'project_id': 'demo',
            'database_url': 'https://demo.example.com',
            'time_service_url': 'https://time.example.com/now',
        }))
    return isolated_config


@pytest.fixture
def http(monkeypatch):
    """Routes every HTTP request made by the CLI to canned ( status, text ) answers."""
    routes = {}
    session = mock.Mock()
    session.headers = {}

    def _request(verb, url, **kwargs):
        for fragment, answer in routes.items():
            if fragment in url:
                return mock.Mock(status_code=answer[0], text=answer[1])
        raise requests.exceptions.ConnectionError('no route for %s' % (url,))

    session.request.side_effect = _request
    monkeypatch.setattr(transport_module.requests, 'Session', lambda: session)
    return routes, session


def test_version(capsys):
    cli(['firebaserest', 'version'])
    assert firebaserest.__version__ in capsys.readouterr().out


def test_push_id(capsys):
    cli(['firebaserest', 'push-id'])
    assert len(capsys.readouterr().out.strip()) == 20


def test_invalid_action():
    with pytest.raises(Exception):
        cli(['firebaserest', 'not-an-action'])


def test_actions_help(capsys):
    for action in ['configure', 'login', 'logout', 'who', 'get', 'set', 'update', 'push', 'delete', 'query', 'time']:
        with pytest.raises(SystemExit):
            cli(['firebaserest', action, '--help'])
        assert len(capsys.readouterr().out) >= 10


def test_configure_non_interactive(isolated_config):
    cli(['firebaserest', 'configure', '--api-key', 'KEY', '--project-id', 'demo', '--region', 'europe-west1'])
    conf = utils.loadConfig()
    assert conf['api_key'] == 'KEY'
    assert conf['project_id'] == 'demo'
    assert conf['database_url'] == 'https://demo-europe-west1.firebaseio.com'


def test_configure_google_services(isolated_config, tmp_path):
    path = tmp_path / 'google-services.json'
    path.write_text(json.dumps({
        'project_info': {'project_id': 'gs-project', 'firebase_url': 'https://gs.example.com'},
        'client': [{'client_info': {'mobilesdk_app_id': '1:2:android:3'}, 'api_key': [{'current_key': 'GSKEY'}]}],
    }))
    cli(['firebaserest', 'configure', '--google-services', str(path), '--env', 'gs'])
    conf = utils.loadConfig()
    assert conf['env']['gs']['api_key'] == 'GSKEY'
    assert conf['env']['gs']['app_id'] == '1:2:android:3'
    assert conf['env']['gs']['database_url'] == 'https://gs.example.com'


def test_configure_invalid(isolated_config):
    with pytest.raises(Exception):
        cli(['firebaserest', 'configure', '--api-key', 'KEY', '--project-id', ''])


def test_login_stores_tokens(configured, http):
    routes, _ = http
    routes['signInWithPassword'] = (200, '{"idToken": "ID", "refreshToken": "RT", "localId": "UID", "email": "a@b.c", "expiresIn": "3600"}')
    cli(['firebaserest', 'login', '--env', 'default', '--email', 'a@b.c', '--password', 'pw'])

    tokens = utils.loadConfig()['tokens']
    assert tokens['refresh_token'] == 'RT'
    assert tokens['user_id'] == 'UID'

    cli(['firebaserest', 'logout', '--env', 'default'])
    assert 'tokens' not in utils.loadConfig()


def test_login_failure(configured, http):
    routes, _ = http
    routes['signUp'] = (400, '{"error": {"message": "ADMIN_ONLY_OPERATION"}}')
    with pytest.raises(Exception) as exc_info:
        cli(['firebaserest', 'login', '--env', 'default', '--anonymous'])
    assert 'ADMIN_ONLY_OPERATION' in str(exc_info.value)
    assert 'tokens' not in utils.loadConfig()


def test_get(configured, http, capsys):
    routes, session = http
    routes['demo.example.com/players/alice.json'] = (200, '{"score": 3, "name": "alice"}')
    cli(['firebaserest', 'get', 'players/alice', '--env', 'default'])
    assert json.loads(capsys.readouterr().out) == {'score': 3, 'name': 'alice'}
    assert session.request.call_args[0][0] == 'GET'


def test_set_from_argument(configured, http, capsys):
    routes, session = http
    routes['demo.example.com/a.json'] = (200, '{"x": 1}')
    cli(['firebaserest', 'set', 'a', '{"x": 1}', '--env', 'default'])
    args, kwargs = session.request.call_args
    assert args[0] == 'PUT'
    assert kwargs['data'] == b'{"x": 1}'


def test_push_from_stdin(configured, http, monkeypatch):
    routes, session = http
    routes['demo.example.com/list.json'] = (200, '{"name": "-Nabc"}')
    monkeypatch.setattr(sys, 'stdin', mock.Mock(read=lambda: '{"y": 2}'))
    cli(['firebaserest', 'push', 'list', '--env', 'default'])
    assert session.request.call_args[0][0] == 'POST'


def test_set_invalid_json(configured, http):
    with pytest.raises(Exception):
        cli(['firebaserest', 'set', 'a', '{not json', '--env', 'default'])


def test_query(configured, http):
    routes, session = http
    routes['demo.example.com/scores.json'] = (200, '{}')
    cli(['firebaserest', 'query', 'scores', '--order-by', 'score', '--limit-to-last', '3', '--env', 'default'])
    assert session.request.call_args[0][1] == 'https://demo.example.com/scores.json?orderBy=%22score%22&limitToLast=3'


def test_time_fallback(configured, http, capsys):
    cli(['firebaserest', 'time', '--env', 'default'])
    assert 'local clock' in capsys.readouterr().out


def test_who(configured, http, capsys):
    cli(['firebaserest', 'who', '--env', 'default'])
    out = capsys.readouterr().out
    assert 'demo' in out
    assert 'https://demo.example.com' in out


def test_main_reports_errors(monkeypatch, capsys):
    monkeypatch.setattr(sys, 'argv', ['firebaserest', 'not-an-action'])
    assert main() == 1
    assert 'Error:' in capsys.readouterr().err


def test_main_success(monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['firebaserest', 'version'])
    assert main() == 0
