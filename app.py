"""
Main Flask application factory for the forum
"""
import atexit
import logging

from flask import Flask, jsonify, request

from config import CaptchaSettings, Config
from models import db
from services.captcha_service import CaptchaService
from services.captcha_store import CaptchaStore
from services.reclaimer import CaptchaReclaimer

MS_PER_SECOND = 1000


def create_app(config_class=Config):
    """Application factory pattern. DB init runs inside app_context; non-fatal on failure."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db.init_app(app)

    # Built once; shared read-only by the renderer and the service.
    settings = CaptchaSettings.from_config(app.config)
    captcha_service = CaptchaService(settings, CaptchaStore())
    reclaimer = CaptchaReclaimer(
        captcha_service,
        interval_seconds=settings.cleanup_interval_ms / MS_PER_SECOND,
        app=app,
    )
    app.extensions["captcha_service"] = captcha_service
    app.extensions["captcha_reclaimer"] = reclaimer

    @app.errorhandler(500)
    def handle_500_error(e):
        return jsonify({"success": False, "message": "Internal server error. Please try again later."}), 500

    # Create tables only inside app context; do not crash if DB temporarily unavailable
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logging.getLogger(__name__).warning("Database init skipped (non-fatal): %s", e)

    from routes import captcha_bp, auth_bp
    app.register_blueprint(captcha_bp)
    app.register_blueprint(auth_bp)

    # Maintenance mode: block everything except static assets
    @app.before_request
    def check_maintenance():
        if not app.config.get("MAINTENANCE_MODE"):
            return None
        if request.path.startswith('/static'):
            return None
        return jsonify({
            "success": False,
            "title": app.config.get("SITE_TITLE"),
            "message": app.config.get("MAINTENANCE_MESSAGE"),
        }), 503

    if app.config.get("CAPTCHA_RECLAIMER_ENABLED") and not app.testing:
        reclaimer.start()
        atexit.register(reclaimer.stop)

    return app
