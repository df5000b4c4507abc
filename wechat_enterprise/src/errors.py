"""Resultados tipados de las llamadas remotas.

Cada frontera (exchange, dispatch, storage) devuelve ``Success`` o una de las
fallas de abajo. Las fallas son excepciones, así que ``outcome.unwrap()``
devuelve el valor o levanta la falla tal cual.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Success:
    value: Any
    warnings: Tuple["PersistenceFailure", ...] = field(default_factory=tuple)

    ok = True
    kind = "success"

    def unwrap(self) -> Any:
        return self.value


class WeComError(Exception):
    """Base de todas las fallas del cliente."""

    ok = False
    kind = "error"
    # fallas secundarias (save) ocurridas durante la misma llamada
    warnings: Tuple["PersistenceFailure", ...] = ()

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def unwrap(self) -> Any:
        raise self

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class TransportFailure(WeComError):
    """The HTTP layer failed (network, timeout, DNS, undecodable body)."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class RemoteApplicationError(WeComError):
    """El servidor respondió con un ``errcode`` distinto de cero."""

    kind = "remote"

    def __init__(self, code: int, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.payload = payload or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errcode"] = self.code
        data["errmsg"] = self.message
        return data


# Codigo local: no existe ningun token para el corp_id y no se permite el exchange.
NO_CREDENTIAL_CODE = -1


class MissingCredential(RemoteApplicationError):
    """No credential was ever established for this corp id; authorize out of band."""

    kind = "missing_credential"

    def __init__(self, corp_id: str):
        super().__init__(
            NO_CREDENTIAL_CODE,
            f"No token for {corp_id}, please authorize first.",
            {"corpid": corp_id},
        )
        self.corp_id = corp_id


class PersistenceFailure(WeComError):
    """El storage adapter falló al leer (fatal) o al guardar (no fatal)."""

    kind = "persistence"

    def __init__(self, operation: str, corp_id: str, *, cause: Optional[BaseException] = None):
        super().__init__(f"Token storage {operation} failed for {corp_id}: {cause}", cause=cause)
        self.operation = operation
        self.corp_id = corp_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["operation"] = self.operation
        return data


class ConfigurationError(WeComError):
    kind = "configuration"


class ConfigurationDiagnostic(UserWarning):
    """Warning category for deployment settings that silently lose token state."""
