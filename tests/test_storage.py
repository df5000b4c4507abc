import fcntl
import json
import os
import threading

import pytest

from wechat_enterprise.src.config import Config
from wechat_enterprise.src.credentials import Credential
from wechat_enterprise.src.storage import (
    CallbackStorage,
    InMemoryStorage,
    JsonFileStorage,
    create_storage_from_config,
)

CRED = Credential(token="tok", issued_at=1_000, ttl_seconds=7200)


def test_in_memory_absent_is_none():
    assert InMemoryStorage().load("X") is None


def test_in_memory_save_is_idempotent():
    once, twice = InMemoryStorage(), InMemoryStorage()
    once.save("X", CRED)
    twice.save("X", CRED)
    twice.save("X", CRED)
    assert once.load("X") == twice.load("X") == CRED


def test_json_file_storage_roundtrip_and_idempotent(tmp_path):
    path = tmp_path / "tokens.json"
    store = JsonFileStorage(str(path))
    assert store.load("X") is None

    store.save("X", CRED)
    store.save("X", CRED)
    assert store.load("X") == CRED
    assert json.loads(path.read_text()) == {"X": CRED.to_dict()}


def test_json_file_storage_keeps_other_corps(tmp_path):
    store = JsonFileStorage(str(tmp_path / "tokens.json"))
    other = Credential(token="other", issued_at=5, ttl_seconds=60)
    store.save("A", CRED)
    store.save("B", other)
    assert store.load("A") == CRED
    assert store.load("B") == other


def test_json_file_storage_rejects_corrupt_file(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        JsonFileStorage(str(path)).load("X")


def test_callback_storage_accepts_raw_gettoken_dict():
    saved = {}
    store = CallbackStorage(
        load=lambda corp_id: {"access_token": "tok", "create_at": 1_000, "expires_in": 7200},
        save=lambda corp_id, credential: saved.__setitem__(corp_id, credential),
    )
    assert store.load("X") == CRED
    store.save("X", CRED)
    assert saved == {"X": CRED}


def test_create_storage_from_config(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, "WECOM_TOKEN_STORE", "memory")
    assert isinstance(create_storage_from_config(), InMemoryStorage)

    monkeypatch.setattr(Config, "WECOM_TOKEN_STORE", "file")
    monkeypatch.setattr(Config, "WECOM_TOKEN_FILE", str(tmp_path / "t.json"))
    store = create_storage_from_config()
    assert isinstance(store, JsonFileStorage)
    assert store.path == str(tmp_path / "t.json")

    monkeypatch.setattr(Config, "WECOM_TOKEN_STORE", "redis")
    with pytest.raises(ValueError):
        create_storage_from_config()


def test_json_file_storage_save_waits_for_file_lock(tmp_path):
    store = JsonFileStorage(str(tmp_path / "tokens.json"))
    store.save("A", CRED)
    other = Credential(token="other", issued_at=5, ttl_seconds=60)

    # otro proceso tiene el lock
    lock_fd = os.open(store.lock_path, os.O_CREAT | os.O_RDWR)
    fcntl.flock(lock_fd, fcntl.LOCK_EX)
    worker = threading.Thread(target=store.save, args=("B", other))
    try:
        worker.start()
        worker.join(timeout=0.3)
        assert worker.is_alive()
        assert store.load("B") is None
    finally:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
        os.close(lock_fd)
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert store.load("A") == CRED
    assert store.load("B") == other
