import logging

import click
import jwt
from flask import Flask, g, jsonify
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config.config import Config
from extensions import db, login_manager

# Route Imports
from routes.auth_routes import auth_bp
from routes.admin_routes import admin_bp
from routes.teacher_routes import teacher_bp
from routes.student_routes import student_bp
from routes.notification_routes import notifications_bp

from models.user import User
from services.errors import AcadenceError
from utils.seed_data import run_seed
from utils.tokens import decode_access_token

logger = logging.getLogger(__name__)

migrate = Migrate()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(app):
    logging.basicConfig(level=app.config["LOG_LEVEL"], format=LOG_FORMAT)
    logging.getLogger().setLevel(app.config["LOG_LEVEL"])


def load_user_from_request(request):
    g.auth_error = None
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None

    try:
        payload = decode_access_token(token.strip())
    except jwt.ExpiredSignatureError:
        g.auth_error = "Token has expired"
        return None
    except jwt.InvalidTokenError:
        g.auth_error = "Invalid token"
        return None

    user_id = payload.get("id")
    if not isinstance(user_id, int):
        g.auth_error = "Invalid token"
        return None

    # the stored row, not the token claim, decides role and ownership
    user = db.session.get(User, user_id)
    if user is None:
        g.auth_error = "Invalid token"
    return user


def unauthorized():
    return jsonify({"message": g.get("auth_error") or "No token provided"}), 401


def register_error_handlers(app):
    @app.errorhandler(AcadenceError)
    def handle_acadence_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error")
        db.session.rollback()
        return jsonify({"message": "Internal server error", "error": str(e)}), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize Extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Bearer tokens only; no session cookies
    login_manager.init_app(app)
    login_manager.request_loader(load_user_from_request)
    login_manager.unauthorized_handler(unauthorized)

    register_error_handlers(app)

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(teacher_bp)
    app.register_blueprint(student_bp)
    app.register_blueprint(notifications_bp)

    @app.route("/health")
    def health():
        return {"status": "ok", "app": "acadence"}

    @app.cli.command("seed")
    def seed_command():
        """Create or refresh the default admin and teacher accounts."""
        run_seed()
        click.echo("Default admin and teacher accounts are ready.")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=True)
