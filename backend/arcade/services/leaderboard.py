"""Leaderboards.

Games listed in ``Config.LEDGER_GAMES`` are ranked from the score ledger
with one (best) row per player; the platformer ranks by level before score.
Every other game is ranked from the highscores kept on the player documents.
"""
from flask import current_app
from sqlalchemy import func

from arcade.models import Player, ScoreRecord
from arcade.services.stats import peek_stats, platform_game, shooter_game, to_int, to_number

SHOOTER_CATEGORIES = {
    'score': lambda entry: entry.highscore,
    'accuracy': lambda entry: to_number(entry.custom_stats.get('bestAccuracy'), 0),
    'survival': lambda entry: to_number(entry.custom_stats.get('averageSurvivalTime'), 0),
}


def clamp_limit(limit, default=None):
    cfg = current_app.config
    if default is None:
        default = int(cfg.get('HIGHSCORE_DEFAULT_LIMIT', 10))
    limit = to_int(limit, default) or default
    return max(1, min(limit, int(cfg.get('HIGHSCORE_MAX_LIMIT', 100))))


def _ledger_order(game_name):
    if game_name == platform_game():
        return (ScoreRecord.level.desc(), ScoreRecord.score.desc(), ScoreRecord.created_at.asc(), ScoreRecord.id.asc())
    return (ScoreRecord.score.desc(), ScoreRecord.created_at.asc(), ScoreRecord.id.asc())


def _ledger_row(rank, record):
    row = record.to_dict(include_player=True)
    row.update({'rank': rank, 'highscore': record.score, 'bestLevel': record.level})
    return row


def _best_per_player(query, order):
    # Rank each player's rows in the database and keep their first one
    ranked = (query.with_entities(
        ScoreRecord.id.label('record_id'),
        func.row_number().over(partition_by=ScoreRecord.player_id, order_by=list(order)).label('position'),
    ).subquery())
    return (ScoreRecord.query
            .join(ranked, ranked.c.record_id == ScoreRecord.id)
            .filter(ranked.c.position == 1))


def score_history(game_name=None, limit=50, best_per_player=False):
    query = ScoreRecord.query
    if game_name:
        query = query.filter_by(game_name=game_name)
        order = _ledger_order(game_name)
    else:
        order = (ScoreRecord.score.desc(), ScoreRecord.id.asc())

    if best_per_player:
        query = _best_per_player(query, order)
    records = query.order_by(*order).limit(limit).all()
    return [_ledger_row(rank, record) for rank, record in enumerate(records, start=1)]


def _player_rows(game_name, key):
    rows = []
    for player in Player.query.all():
        entry = peek_stats(player, game_name)
        if entry is None or entry.highscore <= 0:
            continue
        rows.append((key(entry), player, entry))
    rows.sort(key=lambda row: (-row[0], row[1].id))
    return rows


def get_highscores(game_name, limit=None):
    limit = clamp_limit(limit)
    if game_name in current_app.config.get('LEDGER_GAMES', []):
        return score_history(game_name, limit=limit, best_per_player=True)

    highscores = []
    for rank, (_, player, entry) in enumerate(_player_rows(game_name, lambda e: e.highscore)[:limit], start=1):
        row = entry.to_dict()
        row.pop('customStats', None)
        row.update({
            'rank': rank,
            'playerId': player.id,
            'name': player.name,
            'badgeId': player.badge_id,
            'score': entry.highscore,
        })
        highscores.append(row)
    return highscores


def shooter_leaderboard(category, limit=None):
    limit = clamp_limit(limit)
    key = SHOOTER_CATEGORIES.get(category, SHOOTER_CATEGORIES['score'])
    leaderboard = []
    for rank, (_, player, entry) in enumerate(_player_rows(shooter_game(), key)[:limit], start=1):
        leaderboard.append({
            'rank': rank,
            'playerId': player.id,
            'name': player.name,
            'badgeId': player.badge_id,
            'score': entry.highscore,
            'accuracy': to_number(entry.custom_stats.get('bestAccuracy'), 0),
            'survivalTime': to_number(entry.custom_stats.get('averageSurvivalTime'), 0),
            'gamesPlayed': entry.games_played,
        })
    return leaderboard
