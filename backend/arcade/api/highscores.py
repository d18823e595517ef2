from flask import Blueprint, jsonify, request, current_app
from arcade import db, socketio
from arcade.errors import ValidationError
from arcade.services import ledger
from arcade.services import players as player_service
from arcade.services.leaderboard import clamp_limit, get_highscores, shooter_leaderboard
from arcade.services.shooter import derive_shooter_profile, shooter_analytics, update_shooter_profile
from arcade.services.stats import shooter_game


highscores = Blueprint('highscores', __name__)

# Shooter clients send their counters at the top level of the payload
SHOOTER_FIELDS = ('asteroidsDestroyed', 'powerUpsCollected', 'accuracy', 'survivalTime', 'shipUsed')


@highscores.route('/<string:game_name>', methods=['GET'])
def list_highscores(game_name):
    return jsonify(get_highscores(game_name, request.args.get('limit')))


@highscores.route('/submit', methods=['POST'])
def submit():
    data = request.get_json(silent=True) or {}
    player_id = data.get('playerId')
    game_name = data.get('gameName')
    if not player_id or not game_name or data.get('score') is None:
        raise ValidationError('Missing required fields')

    raw_stats = data.get('customStats')
    custom_stats = dict(raw_stats) if isinstance(raw_stats, dict) else {}
    if game_name == shooter_game():
        for key in SHOOTER_FIELDS:
            if data.get(key) is not None:
                custom_stats.setdefault(key, data[key])

    result = player_service.submit_score(
        player_id,
        game_name,
        data.get('score'),
        level=data.get('level'),
        lines=data.get('lines'),
        coins_earned=data.get('coinsEarned'),
        duration=data.get('duration'),
        custom_stats=custom_stats,
    )
    db.session.commit()

    if result.is_new_highscore:
        current_app.logger.info(f"[highscore] player={result.score_record.player_id} game={game_name} score={result.score_record.score}")
    socketio.emit('highscore_update', {
        'game_name': game_name,
        'player_id': result.score_record.player_id,
        'score': result.score_record.score,
        'is_new_highscore': result.is_new_highscore,
    }, to=f"leaderboard:{game_name}", namespace='/ws')

    payload = result.to_dict()
    payload['coinsEarned'] = data.get('coinsEarned') or 0
    return jsonify(payload)


@highscores.route('/player/<int:player_id>/<string:game_name>', methods=['GET'])
def player_scores(player_id, game_name):
    player = player_service.get_player_by_id(player_id)
    limit = clamp_limit(request.args.get('limit'), default=5)
    return jsonify([r.to_dict(include_player=True) for r in ledger.scores_for_player(player.id, game_name, limit=limit)])


@highscores.route('/profile/<int:player_id>/spaceships', methods=['GET'])
def get_shooter_profile(player_id):
    player = player_service.get_player_by_id(player_id)
    profile = derive_shooter_profile(player)
    db.session.commit()
    return jsonify(profile.to_dict())


@highscores.route('/profile/<int:player_id>/spaceships', methods=['POST'])
def update_shooter(player_id):
    player = player_service.get_player_by_id(player_id)
    profile = update_shooter_profile(player, request.get_json(silent=True) or {})
    db.session.commit()
    return jsonify({'success': True, 'message': 'Profile updated successfully', 'profile': profile.to_dict()})


@highscores.route('/analytics/spaceships/<int:player_id>', methods=['GET'])
def analytics(player_id):
    player = player_service.get_player_by_id(player_id)
    payload = shooter_analytics(player)
    db.session.commit()
    return jsonify(payload)


@highscores.route('/leaderboard/spaceships/<string:category>', methods=['GET'])
def leaderboard(category):
    return jsonify(shooter_leaderboard(category, request.args.get('limit')))
