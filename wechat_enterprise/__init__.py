from flask import Flask, jsonify, request, g
import time
import logging
from flask_cors import CORS

from .src.config import Config
from .routes.health import bp as health_bp
from .routes.messages import bp as messages_bp


def create_app(client=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    CORS(app, resources={r"/*": {"origins": Config.CORS_ORIGINS}}, supports_credentials=True)

    # Cliente inyectado (tests) o construido a demanda desde Config
    if client is not None:
        app.extensions["wecom_client"] = client

    app.register_blueprint(health_bp)
    app.register_blueprint(messages_bp, url_prefix="/messages")

    logging.basicConfig(level=logging.DEBUG if getattr(Config, 'DEBUG', True) else logging.INFO)

    @app.before_request
    def _log_start():
        g._start_time = time.time()

    @app.after_request
    def _log_request(resp):
        started = getattr(g, '_start_time', None)
        dur_ms = int((time.time() - started) * 1000) if started else -1
        logging.info(
            "%s %s -> %s (%d ms) ip=%s",
            request.method,
            request.path,
            resp.status_code,
            dur_ms,
            request.headers.get('X-Forwarded-For', request.remote_addr),
        )
        return resp

    @app.get("/")
    def root():
        return jsonify({"name": "wechat_enterprise", "status": "ok"}), 200

    return app
