from flask import Blueprint, jsonify
from ..src.config import Config


bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "service": "wechat_enterprise",
        "debug": Config.DEBUG,
        "deployment_mode": Config.WECOM_DEPLOYMENT_MODE,
        "token_store": Config.WECOM_TOKEN_STORE,
    }), 200
