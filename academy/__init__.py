from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .commands import register_commands
from .config import Config
from .errors import register_error_handlers
from .extensions import db, jwt, mail, migrate
from .routes import admin, auth, contact, courses, enrollments, mobile, video


def register_jwt_callbacks():
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"message": "Authorization token is missing"}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"message": "Invalid token"}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"message": "Token has expired, please log in again"}), 401


def create_app(config_class=Config):
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    register_jwt_callbacks()
    register_error_handlers(app)
    register_commands(app)

    # Register blueprints
    app.register_blueprint(auth.bp, url_prefix="/api")
    app.register_blueprint(enrollments.bp, url_prefix="/api")
    app.register_blueprint(admin.bp, url_prefix="/api")
    app.register_blueprint(courses.bp, url_prefix="/api")
    app.register_blueprint(video.bp, url_prefix="/api")
    app.register_blueprint(contact.bp, url_prefix="/api")
    app.register_blueprint(mobile.bp, url_prefix="/api/mobile")

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app
