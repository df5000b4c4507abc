from flask import Blueprint, current_app, jsonify, request

from ..src.errors import ConfigurationError
from ..src.services.wecom_client import WeComClient
from ..src.storage import create_storage_from_config


bp = Blueprint("messages", __name__)

# kind de la falla -> status HTTP del relay
STATUS_BY_KIND = {
    "remote": 502,
    "missing_credential": 409,
    "transport": 504,
    "persistence": 503,
}


def _client() -> WeComClient:
    client = current_app.extensions.get("wecom_client")
    if client is None:
        client = WeComClient(storage=create_storage_from_config())
        current_app.extensions["wecom_client"] = client
    return client


def _authorized() -> bool:
    key = current_app.config.get("RELAY_API_KEY")
    return not key or request.headers.get("X-Api-Key") == key


def _outcome_response(outcome, payload_key: str, payload):
    warnings = [w.to_dict() for w in outcome.warnings]
    if outcome.ok:
        return jsonify({"status": "ok", payload_key: payload, "warnings": warnings}), 200
    return jsonify({"error": outcome.to_dict(), "warnings": warnings}), STATUS_BY_KIND.get(outcome.kind, 500)


@bp.post("/text")
def send_text():
    """Envía un mensaje de texto con el cuerpo de ``message/send`` (touser, agentid, text...)."""
    if not _authorized():
        return jsonify({"error": "X-Api-Key inválida"}), 401

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Se requiere un cuerpo JSON"}), 400

    try:
        client = _client()
    except ConfigurationError as exc:
        return jsonify({"error": exc.to_dict()}), 500

    try:
        outcome = client.send(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    return _outcome_response(outcome, "result", outcome.value if outcome.ok else None)


@bp.post("/token/refresh")
def refresh_token():
    """Fuerza un nuevo gettoken (tras un 42001 del servidor, por ejemplo)."""
    if not _authorized():
        return jsonify({"error": "X-Api-Key inválida"}), 401
    try:
        client = _client()
    except ConfigurationError as exc:
        return jsonify({"error": exc.to_dict()}), 500

    outcome = client.refresh()
    token = None
    if outcome.ok:
        credential = outcome.value
        token = {"expires_in": credential.ttl_seconds, "create_at": credential.issued_at}
    return _outcome_response(outcome, "token", token)
