"""
Flask application factory and main application entry point.

This module creates and configures the Flask application instance
with WebSocket support for real-time game communication.
"""

import os
import sys

from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from loguru import logger
from .room_registry import RoomRegistry, DEFAULT_ROOM_ID_LENGTH, random_room_id


def _env_config():
    """Configuration values overridden through the environment."""
    overrides = {}
    for key in ('SECRET_KEY', 'LOG_LEVEL'):
        if key in os.environ:
            overrides[key] = os.environ[key]
    if 'CORS_ORIGINS' in os.environ:
        origins = os.environ['CORS_ORIGINS']
        overrides['CORS_ORIGINS'] = origins.split(',') if ',' in origins else origins
    if 'ROOM_ID_LENGTH' in os.environ:
        overrides['ROOM_ID_LENGTH'] = int(os.environ['ROOM_ID_LENGTH'])
    return overrides


def create_app(config=None):
    """
    Create and configure the Flask application.

    Args:
        config: Dictionary of configuration values, applied last

    Returns:
        Tuple of the Flask application and its SocketIO instance
    """
    app = Flask(__name__)

    # Default configuration
    app.config.update({
        'SECRET_KEY': 'dev-key-change-in-production',
        'DEBUG': True,
        'CORS_ORIGINS': '*',
        'LOG_LEVEL': 'INFO',
        'ROOM_ID_LENGTH': DEFAULT_ROOM_ID_LENGTH,
    })
    app.config.update(_env_config())

    if config:
        app.config.update(config)

    # Configure logging
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="{time} | {level} | {message}",
        level=app.config['LOG_LEVEL'],
        colorize=True
    )
    logger.info("Starting tic-tac-toe game server")

    # Enable CORS for all HTTP requests
    CORS(app, origins=app.config['CORS_ORIGINS'])

    # Initialize SocketIO for WebSocket support
    socketio = SocketIO(app, cors_allowed_origins=app.config['CORS_ORIGINS'])

    id_length = app.config['ROOM_ID_LENGTH']
    registry = RoomRegistry(id_generator=lambda: random_room_id(id_length))

    # Initialize WebSocket handlers
    from . import websocket_handlers
    sessions = websocket_handlers.init_socketio_handlers(socketio, registry)

    app.extensions['tictactoe'] = {
        'registry': registry,
        'sessions': sessions,
    }

    from . import routes
    app.register_blueprint(routes.bp)

    return app, socketio
