"""
HTTP routes.

The game itself runs entirely over Socket.IO; these endpoints only report
that the server is up and how busy it is.
"""

from flask import Blueprint, current_app, jsonify

bp = Blueprint('main', __name__)


@bp.route('/')
def index():
    """Health check."""
    return 'Multiplayer Tic-Tac-Toe Server is Running!'


@bp.route('/api/status')
def status():
    """Live room and connection counts."""
    state = current_app.extensions['tictactoe']
    registry = state['registry']
    return jsonify({
        'success': True,
        'data': {
            'rooms': len(registry),
            'waiting_rooms': registry.count_waiting_rooms(),
            'connections': len(state['sessions']),
        }
    }), 200
