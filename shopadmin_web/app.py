"""Flask web app for managing the shop catalog, orders and shipping.

Run directly (``python -m shopadmin_web.app``) or build an instance with
``create_app`` for tests and WSGI servers.
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask

from shopadmin.dashboard import format_vnd, stock_status
from shopadmin.logging_config import setup_logging
from shopadmin.models import format_number, resolve

from .config import API_BASE_URL, FLASK_DEBUG, FLASK_HOST, FLASK_PORT, SECRET_KEY
from .views import admin


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    """Build the admin app.

    ``config`` overrides the defaults; set ``CLIENT_FACTORY`` to a callable
    taking a token store and returning an ``ApiClient`` to swap the backend.
    """
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=SECRET_KEY,
        API_BASE_URL=API_BASE_URL,
        CLIENT_FACTORY=None,
    )
    if config:
        app.config.update(config)

    app.register_blueprint(admin)

    app.jinja_env.globals["resolve"] = resolve
    app.jinja_env.filters["vnd"] = format_vnd
    app.jinja_env.filters["number"] = format_number
    app.jinja_env.filters["stock_status"] = stock_status
    return app


if __name__ == "__main__":
    setup_logging(level=logging.DEBUG if FLASK_DEBUG else logging.INFO)
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
