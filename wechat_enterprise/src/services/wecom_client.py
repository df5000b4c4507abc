"""Cliente OOP para la API de WeChat Work (WeCom).

Uso:
    client = WeComClient("corpid", "corpsecret", storage=mi_storage)
    outcome = client.send_text("Holiday Request For Pony", touser=["UserID1", "UserID2"])
    if outcome.ok:
        print(outcome.value)

El token se lee del storage en cada llamada (nunca se cachea en el cliente),
así varios procesos comparten el mismo token si el storage es compartido.
"""

from __future__ import annotations

import json
import logging
import warnings
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from ..config import Config
from ..credentials import Credential, Identity, is_valid, now_ms
from ..errors import (
    ConfigurationDiagnostic,
    ConfigurationError,
    MissingCredential,
    PersistenceFailure,
    Success,
)
from ..messages import Selector, TextMessage
from ..storage import CallbackStorage, InMemoryStorage, StorageAdapter
from .classifier import Outcome
from .token_exchanger import TokenExchanger
from .transport import HttpTransport

logger = logging.getLogger(__name__)


class DeploymentMode(str, Enum):
    SINGLE_PROCESS = "single-process"
    DISTRIBUTED = "distributed"


class WeComClient:
    API_BASE = "https://qyapi.weixin.qq.com"
    SEND_PATH = "/cgi-bin/message/send"

    def __init__(
        self,
        corp_id: Optional[str] = None,
        secret: Optional[str] = None,
        *,
        storage: Optional[StorageAdapter] = None,
        load: Optional[Callable[[str], Optional[Credential]]] = None,
        save: Optional[Callable[[str, Credential], None]] = None,
        defaults: Optional[Dict[str, Any]] = None,
        agent_id: Optional[int] = None,
        api_base: Optional[str] = None,
        deployment_mode: Union[DeploymentMode, str, None] = None,
        exchange_on_missing: bool = True,
        strict: bool = False,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], int] = now_ms,
    ):
        corp_id = corp_id or Config.WECOM_CORP_ID
        secret = secret or Config.WECOM_CORP_SECRET
        if not corp_id or not secret:
            raise ConfigurationError("WeComClient requires corp_id and secret")
        self.identity = Identity(corp_id=corp_id, secret=secret)

        if storage is None and (load or save):
            if not (load and save):
                raise ConfigurationError("Custom token storage needs both load and save")
            storage = CallbackStorage(load, save)
        self.storage = storage or InMemoryStorage()

        try:
            self.deployment_mode = DeploymentMode(deployment_mode or Config.WECOM_DEPLOYMENT_MODE)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown deployment mode: {deployment_mode!r}", cause=exc) from exc
        self.diagnostics: List[str] = []
        self._check_deployment(strict)

        self.agent_id = Config.WECOM_AGENT_ID if agent_id is None else agent_id
        self.api_base = (api_base or Config.WECOM_API_BASE or self.API_BASE).rstrip("/")
        self.exchange_on_missing = exchange_on_missing
        self.clock = clock
        self.transport = HttpTransport(
            session=session,
            timeout=Config.WECOM_HTTP_TIMEOUT if timeout is None else timeout,
            defaults=defaults,
        )
        self.exchanger = TokenExchanger(
            self.identity, self.storage, self.transport, self.api_base, clock=clock
        )

    @property
    def corp_id(self) -> str:
        return self.identity.corp_id

    @property
    def defaults(self) -> Dict[str, Any]:
        return self.transport.defaults

    def _check_deployment(self, strict: bool) -> None:
        if self.deployment_mode is not DeploymentMode.DISTRIBUTED or not self.storage.process_local:
            return
        message = (
            f"Access token for {self.identity.corp_id} is kept in process memory while "
            "deployment mode is distributed; token state will not be shared. "
            "Pass a shared storage adapter."
        )
        if strict:
            raise ConfigurationError(message)
        self.diagnostics.append(message)
        warnings.warn(message, ConfigurationDiagnostic, stacklevel=3)

    def request(self, url: str, method: str = "GET", **opts: Any) -> Outcome:
        return self.transport.request(method, url, **opts)

    def get_access_token(self) -> Outcome:
        """Fuerza un intercambio nuevo en ``gettoken`` y lo guarda."""
        return self.exchanger.exchange()

    refresh = get_access_token

    def _ensure_credential(self) -> Union[Outcome, PersistenceFailure]:
        corp_id = self.identity.corp_id
        try:
            credential = self.storage.load(corp_id)
        except Exception as exc:
            failure = PersistenceFailure("load", corp_id, cause=exc)
            logger.error("%s", failure)
            return failure

        if credential is None and not self.exchange_on_missing:
            return MissingCredential(corp_id)
        if is_valid(credential, self.clock()):
            return Success(credential)
        logger.debug("No valid access token for %s; exchanging", corp_id)
        return self.exchanger.exchange()

    def call(self, path: str, payload: Dict[str, Any]) -> Outcome:
        """POST autenticado a cualquier endpoint ``/cgi-bin/...``.

        Un token rechazado por el servidor (p.ej. errcode 42001) no se
        reintenta: el caller puede usar ``refresh()`` y volver a llamar.
        """
        ensured = self._ensure_credential()
        if not ensured.ok:
            return ensured

        credential: Credential = ensured.value
        outcome = self.transport.request(
            "POST",
            f"{self.api_base}{path}",
            params={"access_token": credential.token},
            data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        if not ensured.warnings:
            return outcome
        if outcome.ok:
            return Success(outcome.value, warnings=outcome.warnings + ensured.warnings)
        outcome.warnings = outcome.warnings + ensured.warnings
        return outcome

    def send(self, message: Union[TextMessage, Dict[str, Any]]) -> Outcome:
        if not isinstance(message, TextMessage):
            options = dict(message)
            if not options.get("agentid"):
                options["agentid"] = self.agent_id
            message = TextMessage.from_options(options)
        return self.call(self.SEND_PATH, message.to_payload())

    def send_text(
        self,
        content: str,
        touser: Selector = None,
        toparty: Selector = None,
        totag: Selector = None,
        agentid: Optional[int] = None,
        safe: bool = False,
    ) -> Outcome:
        message = TextMessage(
            content=content,
            touser=touser,
            toparty=toparty,
            totag=totag,
            agentid=self.agent_id if agentid is None else agentid,
            safe=safe,
        )
        return self.send(message)

    def close(self) -> None:
        self.transport.close()
