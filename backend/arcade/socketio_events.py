from flask_socketio import join_room, leave_room, emit
from arcade import socketio


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(data):
    game_name = (data or {}).get('game_name')
    if not game_name:
        emit('error', {'message': 'game_name is required'})
        return
    room = f"leaderboard:{game_name}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_leaderboard(data):
    game_name = (data or {}).get('game_name')
    if not game_name:
        emit('error', {'message': 'game_name is required'})
        return
    room = f"leaderboard:{game_name}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/ws')
    socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace='/')
        socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
