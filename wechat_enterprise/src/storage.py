"""Storage adapters para el access token, indexados por corp_id."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from .config import Config
from .credentials import Credential


class StorageAdapter(ABC):
    """Persistence boundary for credentials.

    ``load`` returns ``None`` when nothing was ever saved; failures raise.
    ``save`` must be idempotent.
    """

    # True cuando el estado no se comparte entre procesos.
    process_local: bool = False

    @abstractmethod
    def load(self, corp_id: str) -> Optional[Credential]:
        """Return the stored credential or ``None``."""

    @abstractmethod
    def save(self, corp_id: str, credential: Credential) -> None:
        """Store ``credential`` as the current one for ``corp_id``."""


class InMemoryStorage(StorageAdapter):
    """Default adapter; only valid for the current process."""

    process_local = True

    def __init__(self) -> None:
        self.tokens: Dict[str, Credential] = {}

    def load(self, corp_id: str) -> Optional[Credential]:
        return self.tokens.get(corp_id)

    def save(self, corp_id: str, credential: Credential) -> None:
        self.tokens[corp_id] = credential


class CallbackStorage(StorageAdapter):
    """Adapta un par de funciones ``load(corp_id)`` / ``save(corp_id, credential)`` del host."""

    def __init__(
        self,
        load: Callable[[str], Optional[Credential]],
        save: Callable[[str, Credential], None],
    ) -> None:
        self._load = load
        self._save = save

    def load(self, corp_id: str) -> Optional[Credential]:
        data = self._load(corp_id)
        if data is None or isinstance(data, Credential):
            return data
        # el host puede devolver el dict crudo de gettoken
        return Credential.from_dict(data)

    def save(self, corp_id: str, credential: Credential) -> None:
        self._save(corp_id, credential)


class JsonFileStorage(StorageAdapter):
    """Archivo JSON compartido por los procesos de una misma máquina.

    ``save`` toma un ``flock`` exclusivo sobre ``<path>.lock`` durante el
    read-modify-write, y reemplaza el archivo de forma atómica (``os.replace``).
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.lock_path = f"{path}.lock"

    @contextmanager
    def _locked(self) -> Iterator[None]:
        lock_fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR)
        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(lock_fd)

    def _read_all(self) -> Dict[str, Dict]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Token file {self.path} is not a JSON object")
        return data

    def load(self, corp_id: str) -> Optional[Credential]:
        item = self._read_all().get(corp_id)
        if not item:
            return None
        return Credential.from_dict(item)

    def save(self, corp_id: str, credential: Credential) -> None:
        with self._locked():
            data = self._read_all()
            data[corp_id] = credential.to_dict()
            self._write_all(data)

    def _write_all(self, data: Dict[str, Dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".wecom_tokens.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


def create_storage_from_config() -> StorageAdapter:
    """File storage if ``WECOM_TOKEN_STORE=file``, otherwise in-memory."""
    kind = (Config.WECOM_TOKEN_STORE or "memory").lower()
    if kind == "file":
        return JsonFileStorage(Config.WECOM_TOKEN_FILE)
    if kind == "memory":
        return InMemoryStorage()
    raise ValueError(f"Unsupported WECOM_TOKEN_STORE: {kind}")
