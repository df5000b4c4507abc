from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

Selector = Union[str, int, Iterable[Union[str, int]], None]


def _join(value: Selector) -> Optional[str]:
    if value is None:
        return None
    # toparty / totag suelen ser ids numéricos
    if isinstance(value, (str, int)) or not isinstance(value, abc.Iterable):
        return str(value)
    return "|".join(str(v) for v in value)


@dataclass
class TextMessage:
    """Mensaje ``text`` para ``/cgi-bin/message/send``.

    ``touser``/``toparty``/``totag`` aceptan ``"a|b"`` o una lista.
    """

    content: str
    touser: Selector = None
    toparty: Selector = None
    totag: Selector = None
    agentid: int = 0
    safe: bool = False

    def __post_init__(self) -> None:
        if not self.content:
            raise ValueError("Text message content is required")
        if not (self.touser or self.toparty or self.totag):
            raise ValueError("At least one of touser, toparty or totag is required")

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "TextMessage":
        text = options.get("text")
        if isinstance(text, dict):
            text = text.get("content")
        try:
            agentid = int(options.get("agentid") or 0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"agentid must be an integer, got {options.get('agentid')!r}") from exc
        return cls(
            content=text or options.get("content") or "",
            touser=options.get("touser"),
            toparty=options.get("toparty"),
            totag=options.get("totag"),
            agentid=agentid,
            safe=str(options.get("safe", "0")) in ("1", "True", "true"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "touser": _join(self.touser),
            "toparty": _join(self.toparty),
            "totag": _join(self.totag),
            "msgtype": "text",
            "agentid": self.agentid,
            "text": {"content": self.content},
            "safe": "1" if self.safe else "0",
        }
        return {k: v for k, v in payload.items() if v is not None}
