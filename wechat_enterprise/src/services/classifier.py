"""Clasificación de respuestas de la API de WeCom.

Ver códigos: https://developer.work.weixin.qq.com/document/path/90313
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import requests

from ..errors import RemoteApplicationError, Success, TransportFailure

logger = logging.getLogger(__name__)

Outcome = Union[Success, TransportFailure, RemoteApplicationError]


def classify(
    response: Optional[requests.Response] = None,
    error: Optional[BaseException] = None,
) -> Outcome:
    if error is not None:
        return TransportFailure(f"WeChatAPI{type(error).__name__}: {error}", cause=error)
    if response is None:
        return TransportFailure("WeChatAPIError: no response from transport")

    try:
        data = response.json()
    except ValueError as exc:
        return TransportFailure(
            f"WeChatAPIError: undecodable body (HTTP {response.status_code})",
            cause=exc,
            status_code=response.status_code,
        )
    if not isinstance(data, dict):
        return TransportFailure(
            f"WeChatAPIError: unexpected body type {type(data).__name__}",
            status_code=response.status_code,
        )

    try:
        errcode = int(data.get("errcode") or 0)
    except (TypeError, ValueError) as exc:
        return TransportFailure(
            f"WeChatAPIError: malformed errcode {data.get('errcode')!r}",
            cause=exc,
            status_code=response.status_code,
        )
    if errcode:
        logger.warning("WeCom errcode=%s errmsg=%s", errcode, data.get("errmsg"))
        return RemoteApplicationError(errcode, data.get("errmsg") or "", data)

    if response.status_code >= 400:
        return TransportFailure(
            f"WeChatAPIError: HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return Success(data)
