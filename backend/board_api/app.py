"""
Flask Application Factory.

Wires the contract layer into a Flask app for a transport layer to build on:
request ids, ApiError error bodies and the frozen schema registry. No routes
are defined here.
"""

import logging

from flask import Flask

from board_api.config import Config, configure_logging


logger = logging.getLogger('board_api.app')


def create_app(config_object=None):
    configure_logging()

    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    # === API CONTRACT MIDDLEWARE ===
    from board_api.middleware import setup_request_id_middleware, setup_error_handlers
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    # Load contract schemas (registers and freezes on import)
    from board_api.contracts import SCHEMAS
    logger.info(f"API contracts loaded: {len(SCHEMAS.names())} schemas")

    return app
