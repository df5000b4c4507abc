"""Intercambio corp_id + corpsecret -> access token (``/cgi-bin/gettoken``)."""

from __future__ import annotations

import logging
from typing import Callable, Union

from ..credentials import Credential, Identity, now_ms
from ..errors import PersistenceFailure, RemoteApplicationError, Success, TransportFailure
from ..storage import StorageAdapter
from .transport import HttpTransport

logger = logging.getLogger(__name__)

TOKEN_PATH = "/cgi-bin/gettoken"


class TokenExchanger:
    def __init__(
        self,
        identity: Identity,
        storage: StorageAdapter,
        transport: HttpTransport,
        api_base: str,
        clock: Callable[[], int] = now_ms,
    ):
        self.identity = identity
        self.storage = storage
        self.transport = transport
        self.token_url = f"{api_base.rstrip('/')}{TOKEN_PATH}"
        self.clock = clock

    def exchange(self) -> Union[Success, TransportFailure, RemoteApplicationError]:
        """Pide un token nuevo y lo guarda antes de devolverlo.

        Si ``save`` falla, el token se devuelve igual y la falla viaja en
        ``Success.warnings`` para que el host pueda avisar.
        """
        corp_id = self.identity.corp_id
        outcome = self.transport.request(
            "GET",
            self.token_url,
            params={"corpid": corp_id, "corpsecret": self.identity.secret},
        )
        if not outcome.ok:
            logger.error("gettoken failed for %s: %s", corp_id, outcome)
            return outcome

        data = outcome.value
        token = data.get("access_token")
        if not token:
            return RemoteApplicationError(
                0,
                "gettoken response did not include access_token",
                data,
            )
        try:
            ttl_seconds = int(data.get("expires_in") or 0)
        except (TypeError, ValueError) as exc:
            return TransportFailure(
                f"WeChatAPIError: malformed expires_in {data.get('expires_in')!r}",
                cause=exc,
            )
        credential = Credential(
            token=token,
            issued_at=self.clock(),
            ttl_seconds=ttl_seconds,
        )
        logger.info(
            "New access token for %s (%s..., expires_in=%ss)",
            corp_id,
            token[:6],
            credential.ttl_seconds,
        )

        try:
            self.storage.save(corp_id, credential)
        except Exception as exc:
            failure = PersistenceFailure("save", corp_id, cause=exc)
            logger.error("%s", failure)
            return Success(credential, warnings=(failure,))
        return Success(credential)
