"""Access token value object and its validity rule."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Identity:
    corp_id: str
    secret: str


@dataclass(frozen=True)
class Credential:
    """Token emitido por ``gettoken``.

    No se aplica margen de reloj: quien necesite tolerancia debe guardar un
    ``ttl_seconds`` más corto.
    """

    token: str
    issued_at: int
    ttl_seconds: int

    @property
    def expires_at(self) -> int:
        return self.issued_at + self.ttl_seconds * 1000

    def is_valid(self, now: Optional[int] = None) -> bool:
        return is_valid(self, now_ms() if now is None else now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.token,
            "create_at": self.issued_at,
            "expires_in": self.ttl_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        return cls(
            token=data.get("access_token") or "",
            issued_at=int(data.get("create_at") or 0),
            ttl_seconds=int(data.get("expires_in") or 0),
        )


def is_valid(credential: Optional[Credential], now: int) -> bool:
    if credential is None or not credential.token or credential.ttl_seconds <= 0:
        return False
    return now < credential.expires_at
