from flask import Flask

from evaljudge.config import configure_logging, load_settings
from evaljudge.web.views import eval_views


def create_app(config: dict | None = None) -> Flask:
    settings = load_settings()

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.config["TRACING"] = settings.tracing
    app.config["JUDGE_FACTORY"] = None
    if config:
        app.config.update(config)

    if not app.testing:
        configure_logging(settings.log_level)

    app.register_blueprint(eval_views.bp)
    return app
