from flask import Flask, jsonify
from bookstore.config import Config
from bookstore.errors import DomainError, error_response
from bookstore.extensions import db, migrate, jwt, mail


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # register models on the metadata before migrations / create_all
    from bookstore import models  # noqa: F401

    from bookstore.controllers.auth_controller import auth_bp
    from bookstore.controllers.book_controller import book_bp
    from bookstore.controllers.borrow_controller import borrow_bp
    from bookstore.controllers.return_controller import returns_bp
    from bookstore.controllers.fine_controller import fines_bp
    from bookstore.controllers.discount_controller import discount_bp
    from bookstore.controllers.delivery_controller import delivery_bp
    from bookstore.controllers.notification_controller import notif_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrow_bp, url_prefix="/borrow")
    app.register_blueprint(returns_bp, url_prefix="/returns")
    app.register_blueprint(fines_bp, url_prefix="/returns/fines")
    app.register_blueprint(discount_bp, url_prefix="/discounts")
    app.register_blueprint(delivery_bp, url_prefix="/delivery")
    app.register_blueprint(notif_bp, url_prefix="/notifications")

    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        if error.http_status >= 500:
            app.logger.error(f"[api] {error.code}: {error.message}")
        else:
            app.logger.info(f"[api] {error.code} ({error.http_status}): {error.message}")
        return error_response(error)

    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return jsonify({"success": False, "code": "unauthorized", "message": reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return jsonify({"success": False, "code": "unauthorized", "message": reason}), 401

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    if app.config.get("SCHEDULER_ENABLED"):
        from bookstore.tasks.scheduler import start_scheduler
        start_scheduler(app)

    return app
