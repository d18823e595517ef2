from flask import Blueprint, jsonify, request
from arcade import db, socketio
from arcade.services import ledger
from arcade.services import players as player_service
from arcade.services.platform import (
    complete_level,
    derive_platform_profile,
    equip_cosmetic,
    purchase_ability,
    purchase_cosmetic,
    sync_unlocked_levels_from_ledger,
    unlock_level,
    update_platform_profile,
)
from arcade.services.stats import platform_game


players = Blueprint('players', __name__)


def _action_response(result):
    db.session.commit()
    return jsonify(result.to_dict()), (200 if result.success else 400)


@players.route('/', methods=['GET'], strict_slashes=False)
def list_players():
    return jsonify([p.to_dict() for p in player_service.list_players()])


@players.route('/', methods=['POST'], strict_slashes=False)
def create_player():
    data = request.get_json(silent=True) or {}
    player = player_service.register(data.get('badgeId'), data.get('name'))
    db.session.commit()
    return jsonify(player.to_dict()), 201


@players.route('/<int:player_id>', methods=['GET'])
def get_player_by_id(player_id):
    return jsonify(player_service.get_player_by_id(player_id).to_dict())


@players.route('/badge/<string:badge_id>', methods=['GET'])
def get_player_by_badge(badge_id):
    return jsonify(player_service.get_player_by_badge(badge_id).to_dict())


@players.route('/badge/<string:badge_id>/tilli', methods=['GET'])
def get_platform_profile(badge_id):
    player = player_service.get_player(badge_id)
    profile = derive_platform_profile(player)
    # First read seeds the starter profile
    db.session.commit()
    return jsonify(profile.to_dict())


@players.route('/badge/<string:badge_id>/tilli', methods=['POST', 'PUT'])
def update_platform(badge_id):
    player = player_service.get_player(badge_id)
    profile = update_platform_profile(player, request.get_json(silent=True) or {})
    db.session.commit()
    return jsonify({'success': True, 'profile': profile.to_dict()})


@players.route('/badge/<string:badge_id>/tilli/unlock', methods=['POST'])
def unlock(badge_id):
    data = request.get_json(silent=True) or {}
    player = player_service.get_player(badge_id)
    profile = unlock_level(player, data.get('level'))
    db.session.commit()
    return jsonify({'success': True, 'profile': profile.to_dict()})


@players.route('/badge/<string:badge_id>/tilli/purchase/skin', methods=['POST'])
def buy_skin(badge_id):
    data = request.get_json(silent=True) or {}
    player = player_service.get_player(badge_id)
    return _action_response(purchase_cosmetic(player, data.get('itemId'), data.get('cost')))


@players.route('/badge/<string:badge_id>/tilli/purchase/ability', methods=['POST'])
def buy_ability(badge_id):
    data = request.get_json(silent=True) or {}
    player = player_service.get_player(badge_id)
    return _action_response(purchase_ability(player, data.get('itemId'), data.get('cost')))


@players.route('/badge/<string:badge_id>/tilli/equip', methods=['POST'])
def equip(badge_id):
    data = request.get_json(silent=True) or {}
    player = player_service.get_player(badge_id)
    return _action_response(equip_cosmetic(player, data.get('itemId')))


@players.route('/badge/<string:badge_id>/tilli/level-complete', methods=['POST'])
def level_complete(badge_id):
    player = player_service.get_player(badge_id)
    result = complete_level(player, request.get_json(silent=True) or {})
    db.session.commit()
    game = platform_game()
    socketio.emit('highscore_update', {'game_name': game, 'player_id': player.id},
                  to=f"leaderboard:{game}", namespace='/ws')
    return jsonify(result.to_dict())


@players.route('/badge/<string:badge_id>/tilli/sync-levels', methods=['POST'])
def sync_levels(badge_id):
    player = player_service.get_player(badge_id)
    profile = sync_unlocked_levels_from_ledger(player)
    db.session.commit()
    return jsonify({'success': True, 'profile': profile.to_dict()})


@players.route('/badge/<string:badge_id>/tilli/scores', methods=['GET'])
def platform_scores(badge_id):
    player = player_service.get_player(badge_id)
    limit = request.args.get('limit', type=int)
    records = ledger.scores_for_player(player.id, platform_game(), limit=limit)
    return jsonify([r.to_dict() for r in records])
