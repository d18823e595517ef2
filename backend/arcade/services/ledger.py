from sqlalchemy import func

from arcade import db
from arcade.models import ScoreRecord
from arcade.services.stats import to_int


def append_score(player, game_name, score, level=1, duration=0):
    record = ScoreRecord(
        player_id=player.id,
        game_name=game_name,
        score=max(0, to_int(score, 0)),
        level=max(1, to_int(level, 1)),
        duration=max(0, to_int(duration, 0)),
    )
    db.session.add(record)
    db.session.flush()
    return record


def scores_for_player(player_id, game_name, limit=None):
    """Best sessions first."""
    query = (ScoreRecord.query
             .filter_by(player_id=player_id, game_name=game_name)
             .order_by(ScoreRecord.score.desc(), ScoreRecord.created_at.desc()))
    if limit:
        query = query.limit(limit)
    return query.all()


def recent_scores(player_id, game_name, limit=20):
    return (ScoreRecord.query
            .filter_by(player_id=player_id, game_name=game_name)
            .order_by(ScoreRecord.created_at.desc(), ScoreRecord.id.desc())
            .limit(limit)
            .all())


def max_level(player_id, game_name):
    highest = (db.session.query(func.max(ScoreRecord.level))
               .filter(ScoreRecord.player_id == player_id, ScoreRecord.game_name == game_name)
               .scalar())
    return int(highest or 0)
