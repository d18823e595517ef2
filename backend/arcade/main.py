from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user
from arcade import db
from arcade.models import utcnow
from arcade.services import players as player_service

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the arcade game server!'})


@main.route('/api/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': utcnow().isoformat()})


@main.route('/api/auth/badge-login', methods=['POST'])
def badge_login():
    data = request.get_json(silent=True) or {}
    player = player_service.login_or_prompt(data.get('badgeId'))
    if player is None:
        # Unknown badge: the client asks for a display name and calls /register
        return jsonify({'success': False, 'registrationRequired': True, 'badgeId': data.get('badgeId')})

    db.session.commit()
    login_user(player, remember=True)
    return jsonify({
        'success': True,
        'player': player.to_dict(),
        'message': 'Welcome new player!' if player.games_played == 0 else 'Welcome back!',
    })


@main.route('/api/auth/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    player = player_service.register(data.get('badgeId'), data.get('name'))
    db.session.commit()
    login_user(player, remember=True)
    return jsonify({'success': True, 'player': player.to_dict()}), 201


@main.route('/api/auth/logout', methods=['POST'])
def logout():
    logout_user()
    return jsonify({'success': True})
