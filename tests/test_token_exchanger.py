import requests
import responses
from responses import matchers

from tests.support import API_BASE, NOW, TOKEN_URL, RecordingStorage
from wechat_enterprise.src.credentials import Credential, Identity
from wechat_enterprise.src.errors import PersistenceFailure, RemoteApplicationError, TransportFailure
from wechat_enterprise.src.services.token_exchanger import TokenExchanger
from wechat_enterprise.src.services.transport import HttpTransport


def _exchanger(storage, clock):
    return TokenExchanger(
        Identity(corp_id="X", secret="s3cret"),
        storage,
        HttpTransport(timeout=5),
        API_BASE,
        clock=clock,
    )


@responses.activate
def test_exchange_sends_corpid_and_secret_and_persists(storage, clock):
    responses.add(
        responses.GET,
        TOKEN_URL,
        json={"errcode": 0, "errmsg": "ok", "access_token": "fresh", "expires_in": 7200},
        match=[matchers.query_param_matcher({"corpid": "X", "corpsecret": "s3cret"})],
    )
    outcome = _exchanger(storage, clock).exchange()

    assert outcome.ok is True
    assert outcome.warnings == ()
    assert outcome.value == Credential(token="fresh", issued_at=NOW, ttl_seconds=7200)
    assert storage.load("X") == outcome.value
    assert storage.load("X").is_valid(clock()) is True


@responses.activate
def test_exchange_application_error_returns_no_credential(storage, clock):
    responses.add(responses.GET, TOKEN_URL, json={"errcode": 40001, "errmsg": "invalid credential"})
    outcome = _exchanger(storage, clock).exchange()

    assert isinstance(outcome, RemoteApplicationError)
    assert outcome.code == 40001
    assert "save" not in storage.events


@responses.activate
def test_exchange_transport_error(storage, clock):
    responses.add(responses.GET, TOKEN_URL, body=requests.ConnectTimeout("timed out"))
    outcome = _exchanger(storage, clock).exchange()

    assert isinstance(outcome, TransportFailure)
    assert isinstance(outcome.cause, requests.ConnectTimeout)


@responses.activate
def test_exchange_without_token_field_is_an_error(storage, clock):
    responses.add(responses.GET, TOKEN_URL, json={"errcode": 0, "errmsg": "ok"})
    outcome = _exchanger(storage, clock).exchange()
    assert isinstance(outcome, RemoteApplicationError)
    assert storage.tokens == {}


@responses.activate
def test_save_failure_still_returns_credential_with_warning(clock):
    storage = RecordingStorage(fail_save=True)
    responses.add(responses.GET, TOKEN_URL, json={"errcode": 0, "access_token": "fresh", "expires_in": 7200})
    outcome = _exchanger(storage, clock).exchange()

    assert outcome.ok is True
    assert outcome.value.token == "fresh"
    assert len(outcome.warnings) == 1
    warning = outcome.warnings[0]
    assert isinstance(warning, PersistenceFailure)
    assert warning.operation == "save"
    assert isinstance(warning.cause, OSError)


@responses.activate
def test_malformed_expires_in_is_classified_and_not_saved(storage, clock):
    responses.add(
        responses.GET,
        TOKEN_URL,
        json={"errcode": 0, "access_token": "fresh", "expires_in": "two hours"},
    )
    outcome = _exchanger(storage, clock).exchange()

    assert isinstance(outcome, TransportFailure)
    assert isinstance(outcome.cause, ValueError)
    assert "save" not in storage.events
