from flask import Blueprint, jsonify, request
from arcade import db
from arcade.errors import ValidationError
from arcade.services import players as player_service
from arcade.services.leaderboard import clamp_limit, score_history


scores = Blueprint('scores', __name__)


@scores.route('/', methods=['GET'], strict_slashes=False)
def list_scores():
    return jsonify(score_history(limit=clamp_limit(request.args.get('limit'), default=50)))


@scores.route('/game/<string:game_name>', methods=['GET'])
def scores_by_game(game_name):
    # One row per player: their best session
    limit = clamp_limit(request.args.get('limit'))
    return jsonify(score_history(game_name, limit=limit, best_per_player=True))


@scores.route('/', methods=['POST'], strict_slashes=False)
def add_score():
    data = request.get_json(silent=True) or {}
    if not data.get('playerId') or not data.get('gameName') or data.get('score') is None:
        raise ValidationError('Missing required fields')
    record = player_service.record_score(
        data['playerId'],
        data['gameName'],
        data['score'],
        level=data.get('level'),
        duration=data.get('duration'),
    )
    db.session.commit()
    return jsonify(record.to_dict()), 201
