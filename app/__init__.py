import os
from flask import Flask
from dotenv import load_dotenv

load_dotenv()


def create_app(config_name=None):
    flask_app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV")
        if not config_name:
            # Default to production on managed platforms to avoid accidental
            # debug mode/weak defaults when env selection is omitted.
            if os.environ.get("RAILWAY_ENVIRONMENT") or os.environ.get("PORT"):
                config_name = "production"
            else:
                config_name = "development"

    from app.config import config_map

    config_cls = config_map.get(config_name, config_map["development"])
    flask_app.config.from_object(config_cls)

    if hasattr(config_cls, "init_app"):
        config_cls.init_app(flask_app)

    # Initialize extensions
    from app.extensions import init_redis

    init_redis(flask_app)

    # Register blueprints
    from app.blueprints.auth import auth_bp
    from app.blueprints.dashboard import dashboard_bp
    from app.blueprints.products import products_bp

    flask_app.register_blueprint(auth_bp)
    flask_app.register_blueprint(dashboard_bp)
    flask_app.register_blueprint(products_bp)

    # Register CLI commands
    from app.cli import register_cli

    register_cli(flask_app)

    @flask_app.context_processor
    def inject_operator():
        from flask import session
        from app.blueprints.auth.session import USERNAME_KEY, is_authenticated

        return {
            "operator": session.get(USERNAME_KEY),
            "logged_in": is_authenticated(),
        }

    # Serve static files efficiently in production with WhiteNoise
    if not flask_app.debug:
        from whitenoise import WhiteNoise

        flask_app.wsgi_app = WhiteNoise(
            flask_app.wsgi_app,
            root=os.path.join(flask_app.static_folder),
            prefix="static/",
            max_age=31536000,  # 1 year cache for hashed assets
        )

    _register_health(flask_app)

    return flask_app


def _register_health(flask_app):
    @flask_app.route("/health")
    def health():
        """Liveness plus where drafts are kept. Backends are not called here."""
        from app import extensions
        from redis.exceptions import RedisError

        checks = {"status": "ok", "drafts": "memory"}
        if extensions.redis_client is not None:
            try:
                extensions.redis_client.ping()
                checks["drafts"] = "redis"
            except RedisError:
                flask_app.logger.exception("Draft store unreachable")
                checks["drafts"] = "error"
                checks["status"] = "degraded"
        return checks, (200 if checks["status"] == "ok" else 503)
