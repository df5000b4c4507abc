"""Capa HTTP sobre ``requests`` con opciones por defecto fusionadas."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .classifier import Outcome, classify


def merge_options(defaults: Dict[str, Any], opts: Dict[str, Any]) -> Dict[str, Any]:
    """``headers`` se fusionan clave por clave; el resto de opciones se reemplaza."""
    options = dict(defaults)
    if defaults.get("headers"):
        options["headers"] = dict(defaults["headers"])
    for key, value in opts.items():
        if key != "headers":
            options[key] = value
        elif value:
            headers = options.get("headers") or {}
            headers.update(value)
            options["headers"] = headers
    return options


class HttpTransport:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 20,
        defaults: Optional[Dict[str, Any]] = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.defaults: Dict[str, Any] = dict(defaults or {})

    def request(self, method: str, url: str, **opts: Any) -> Outcome:
        options = merge_options(self.defaults, opts)
        options.setdefault("timeout", self.timeout)
        try:
            resp = self.session.request(method, url, **options)
        except requests.RequestException as exc:
            return classify(error=exc)
        return classify(resp)

    def close(self) -> None:
        self.session.close()
