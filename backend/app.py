import os, logging, threading
from datetime import datetime, timezone
from bson import ObjectId
from flask import Flask, request, jsonify, redirect, send_from_directory
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from werkzeug.exceptions import InternalServerError
from werkzeug.serving import make_server
from .credentials import CredentialService
from .routes import create_api
from .store import Store

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
FRONTEND_FOLDER = os.path.join(BASE_DIR, 'frontend')


class MongoJSONProvider(DefaultJSONProvider):
    """Renders ObjectIds as hex strings and datetimes as ISO 8601 in UTC.

    Naive datetimes are the UTC values MongoDB hands back.
    """

    @staticmethod
    def default(o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, datetime):
            if o.tzinfo is None:
                o = o.replace(tzinfo=timezone.utc)
            return o.astimezone(timezone.utc).isoformat()
        return DefaultJSONProvider.default(o)


def strip_port(host):
    # "[::1]:3000" keeps its brackets, a bare "[::1]" has no port to drop
    if ":" in host and not host.endswith("]"):
        return host.rsplit(":", 1)[0]
    return host


def _env_flag(name, default="False"):
    return os.getenv(name, default).lower() == "true"


def create_app(config=None, mongo_client=None):
    config = dict(config or {})
    frontend = config.get("FRONTEND_FOLDER", os.getenv("FRONTEND_FOLDER", FRONTEND_FOLDER))
    app = Flask(__name__, static_folder=frontend)
    app.json = MongoJSONProvider(app)

    app.config.update(
        MONGO_URI=os.getenv("MONGO_URI", "mongodb://localhost:27017/"),
        MONGO_DB_NAME=os.getenv("MONGO_DB_NAME", "plant_catalog"),
        MONGO_TIMEOUT_MS=int(os.getenv("MONGO_TIMEOUT_MS", "5000")),
        BCRYPT_LOG_ROUNDS=int(os.getenv("BCRYPT_LOG_ROUNDS", "10")),
        HOST=os.getenv("HOST", "0.0.0.0"),
        HTTP_PORT=int(os.getenv("HTTP_PORT", "3000")),
        HTTPS_PORT=int(os.getenv("HTTPS_PORT", "3443")),
        FORCE_HTTPS=_env_flag("FORCE_HTTPS"),
        TLS_CERT_FILE=os.getenv("TLS_CERT_FILE", "/etc/ssl/certs/selfsigned.crt"),
        TLS_KEY_FILE=os.getenv("TLS_KEY_FILE", "/etc/ssl/private/selfsigned.key"),
    )
    app.config.update(config)

    CORS(app)
    store = Store(app, mongo_client)
    credentials = CredentialService(app)
    app.register_blueprint(create_api(store, credentials))

    # --- Transport ------------------------------------------------------

    @app.before_request
    def redirect_to_https():
        if app.config["FORCE_HTTPS"] and not request.is_secure:
            host = strip_port(request.host)
            path = request.full_path.rstrip("?")
            return redirect(f"https://{host}:{app.config['HTTPS_PORT']}{path}")

    @app.errorhandler(InternalServerError)
    def handle_server_error(e):
        app.logger.error("Unhandled error on %s %s: %s", request.method, request.path,
                         e.original_exception or e)
        return jsonify({"message": "Server error"}), 500

    # --- Frontend Serving Routes ----------------------------------------

    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def serve_frontend(path):
        if path != "" and os.path.exists(os.path.join(app.static_folder, path)):
            return send_from_directory(app.static_folder, path)
        else:
            return send_from_directory(app.static_folder, 'index.html')

    return app


def main():
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    store = app.extensions["store"]
    host = app.config["HOST"]

    if app.config["FORCE_HTTPS"]:
        https_server = make_server(host, app.config["HTTPS_PORT"], app, threaded=True,
                                   ssl_context=(app.config["TLS_CERT_FILE"],
                                                app.config["TLS_KEY_FILE"]))
        threading.Thread(target=https_server.serve_forever, daemon=True).start()
        app.logger.info("HTTPS server running on https://%s:%s", host, app.config["HTTPS_PORT"])

    try:
        app.logger.info("HTTP server running on http://%s:%s", host, app.config["HTTP_PORT"])
        app.run(host=host, port=app.config["HTTP_PORT"], threaded=True, use_reloader=False,
                debug=os.getenv("FLASK_DEBUG", "False").lower() == "true")
    finally:
        store.close()

# -------------------------------------------------------------------

if __name__ == "__main__":
    main()
