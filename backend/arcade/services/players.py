"""Player lookup, badge registration and score submission.

There is no per-player locking: two submissions racing on the same player
document can lose an increment (last write wins). The score ledger is
append-only and is the source of truth for history; the counters on the
player are a best-effort cache, see ``sync_unlocked_levels_from_ledger``.
"""
from dataclasses import dataclass

from flask import current_app

from arcade import db
from arcade.errors import ConflictError, NotFoundError, ValidationError
from arcade.models import Player
from arcade.services import ledger
from arcade.services.stats import bump_player_totals, get_or_init_stats, to_int, update_stats


@dataclass
class SubmissionResult:
    game_stats: object
    is_new_highscore: bool
    score_record: object

    def to_dict(self):
        return {
            'success': True,
            'gameStats': self.game_stats.to_dict(),
            'isNewHighscore': self.is_new_highscore,
            'score': self.score_record.to_dict(),
        }


def _clean(value, field_name):
    value = str(value).strip() if value is not None else ''
    if not value:
        raise ValidationError(f'{field_name} is required')
    return value


def login_or_prompt(badge_id):
    """Return the player for ``badge_id``, or None when the badge still needs registering.

    Logging in is not a session: ``lastPlayed`` only moves when a score is recorded.
    """
    badge_id = _clean(badge_id, 'badgeId')
    return Player.query.filter_by(badge_id=badge_id).first()


def register(badge_id, name):
    badge_id = _clean(badge_id, 'badgeId')
    name = _clean(name, 'name')
    if Player.query.filter_by(badge_id=badge_id).first():
        raise ConflictError('Player with this badge ID already exists')
    player = Player(badge_id=badge_id, name=name)
    db.session.add(player)
    db.session.flush()
    current_app.logger.info(f"[register] player={player.id} badge={badge_id}")
    return player


def get_player_by_id(player_id):
    player = db.session.get(Player, to_int(player_id, 0))
    if player is None:
        raise NotFoundError('Player not found')
    return player


def get_player_by_badge(badge_id):
    player = Player.query.filter_by(badge_id=str(badge_id)).first()
    if player is None:
        raise NotFoundError('Player not found')
    return player


def get_player(identifier):
    """Look a player up by badge credential first, then by numeric id."""
    identifier = _clean(identifier, 'identifier')
    player = Player.query.filter_by(badge_id=identifier).first()
    if player is None and identifier.isdigit():
        player = db.session.get(Player, int(identifier))
    if player is None:
        raise NotFoundError('Player not found')
    return player


def list_players():
    return Player.query.order_by(Player.total_score.desc(), Player.id.asc()).all()


def submit_score(player_id, game_name, score, level=None, lines=None, coins_earned=None,
                 duration=None, custom_stats=None):
    game_name = _clean(game_name, 'gameName')
    player = get_player_by_id(player_id)
    score = max(0, to_int(score, 0))

    previous_best = get_or_init_stats(player, game_name).highscore
    entry = update_stats(player, game_name, {
        'score': score,
        'level': level,
        'lines': lines,
        'coinsEarned': coins_earned,
        'duration': duration,
        'customStats': custom_stats or {},
    })
    bump_player_totals(player, score)
    record = ledger.append_score(player, game_name, score, level, duration)

    is_new_highscore = score > previous_best
    current_app.logger.info(
        f"[submit] player={player.id} game={game_name} score={score} new_highscore={is_new_highscore}"
    )
    return SubmissionResult(entry, is_new_highscore, record)


def record_score(player_id, game_name, score, level=None, duration=None):
    """Append a bare ledger row and bump the player's aggregates, leaving game stats alone."""
    game_name = _clean(game_name, 'gameName')
    player = get_player_by_id(player_id)
    bump_player_totals(player, score)
    return ledger.append_score(player, game_name, score, level, duration)
