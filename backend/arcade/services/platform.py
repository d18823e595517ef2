"""Profile for the adventure platformer (``Config.PLATFORM_GAME``).

The profile is a typed view over the platformer's ``customStats`` bag plus
the generic entry fields. Level gating is reconciled against the score
ledger every time an existing profile is read.
"""
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from arcade import db
from arcade.errors import ValidationError
from arcade.services import ledger
from arcade.services.stats import (
    STARTER_FLAG,
    bump_player_totals,
    camel,
    get_or_init_stats,
    normalize_levels,
    platform_game,
    store_stats,
    to_int,
    to_number,
    update_stats,
)

# Never written through update_platform_profile
IDENTITY_FIELDS = {'playerId', 'badgeId', 'name'}
DERIVED_FIELDS = {'bestScore', 'gamesPlayed', 'lastPlayed'}

REASON_MESSAGES = {
    'insufficient_coins': 'Not enough coins',
    'already_owned': 'Item already owned',
    'not_owned': 'Item not owned',
}


def max_platform_level():
    return int(current_app.config.get('MAX_PLATFORM_LEVEL', 10))


def _str_list(value, fallback):
    if not isinstance(value, (list, tuple)):
        return list(fallback)
    return [str(item) for item in value]


@dataclass
class PlatformProfile:
    player_id: Optional[int]
    coins: int = 0
    best_score: int = 0
    games_played: int = 0
    highest_level_reached: int = 1
    unlocked_levels: List[int] = field(default_factory=lambda: [1])
    owned_skins: List[str] = field(default_factory=list)
    equipped_skin: str = 'default'
    owned_abilities: List[str] = field(default_factory=list)
    total_gears_collected: int = 0
    total_enemies_defeated: int = 0
    total_deaths: int = 0
    total_play_time: float = 0
    perfect_runs: int = 0
    fastest_completion: Optional[float] = None
    favorite_level: int = 1
    achievements: List[str] = field(default_factory=list)
    last_played: Optional[str] = None

    @classmethod
    def from_entry(cls, player, entry):
        stats = entry.custom_stats
        skin = current_app.config.get('PLATFORM_STARTER_SKIN', 'default')
        fastest = stats.get('fastestCompletion')
        return cls(
            player_id=player.id,
            coins=entry.coins,
            best_score=entry.highscore,
            games_played=entry.games_played,
            highest_level_reached=max(1, to_int(stats.get('highestLevelReached'), 1)),
            unlocked_levels=normalize_levels(stats.get('unlockedLevels')) or [1],
            owned_skins=_str_list(stats.get('ownedSkins'), [skin]),
            equipped_skin=str(stats.get('equippedSkin') or skin),
            owned_abilities=_str_list(stats.get('ownedAbilities'), []),
            total_gears_collected=to_number(stats.get('totalGearsCollected'), 0),
            total_enemies_defeated=to_number(stats.get('totalEnemiesDefeated'), 0),
            total_deaths=to_number(stats.get('totalDeaths'), 0),
            total_play_time=to_number(stats.get('totalPlayTime'), 0),
            perfect_runs=to_int(stats.get('perfectRuns'), 0),
            fastest_completion=None if fastest is None else to_number(fastest, None),
            favorite_level=max(1, to_int(stats.get('favoriteLevel'), 1)),
            achievements=_str_list(stats.get('achievements'), []),
            last_played=entry.last_played.isoformat(),
        )

    def to_dict(self):
        return {camel(key): value for key, value in asdict(self).items()}


@dataclass
class ActionResult:
    success: bool
    profile: Optional[PlatformProfile] = None
    reason: Optional[str] = None

    def to_dict(self):
        payload = {'success': self.success}
        if self.reason:
            payload['reason'] = self.reason
            payload['error'] = REASON_MESSAGES.get(self.reason, self.reason)
        if self.profile is not None:
            payload['profile'] = self.profile.to_dict()
        return payload


@dataclass
class LevelResult:
    profile: PlatformProfile
    coins_earned: int
    score_record: object

    def to_dict(self):
        return {
            'success': True,
            'coinsEarned': self.coins_earned,
            'profile': self.profile.to_dict(),
            'score': self.score_record.to_dict(),
        }


def derive_platform_profile(player):
    game = platform_game()
    is_new = game not in (player.game_stats or {})
    entry = get_or_init_stats(player, game)
    if is_new:
        return PlatformProfile.from_entry(player, entry)
    return sync_unlocked_levels_from_ledger(player)


def update_platform_profile(player, partial):
    """Replace the given profile fields. Levels are deduplicated and sorted, coins never go below zero."""
    game = platform_game()
    entry = get_or_init_stats(player, game)
    for key, value in (partial or {}).items():
        if key in IDENTITY_FIELDS or key in DERIVED_FIELDS or key == STARTER_FLAG:
            continue
        if key == 'coins':
            entry.coins = max(0, to_int(value, 0))
        elif key == 'unlockedLevels':
            entry.custom_stats['unlockedLevels'] = normalize_levels(value)
        elif key == 'highestLevelReached':
            entry.custom_stats['highestLevelReached'] = max(1, to_int(value, 1))
        else:
            entry.custom_stats[key] = value
    store_stats(player, game, entry)
    return PlatformProfile.from_entry(player, entry)


def unlock_level(player, level):
    level = to_int(level, 0)
    profile = derive_platform_profile(player)
    if level < 1 or level > max_platform_level() or level in profile.unlocked_levels:
        return profile
    return update_platform_profile(player, {
        'unlockedLevels': profile.unlocked_levels + [level],
        'highestLevelReached': max(profile.highest_level_reached, level),
    })


def _purchase(player, item_id, cost, owned_key):
    if not item_id:
        raise ValidationError('itemId is required')
    item_id = str(item_id)
    cost = max(0, to_int(cost, 0))
    profile = derive_platform_profile(player)
    owned = profile.owned_skins if owned_key == 'ownedSkins' else profile.owned_abilities

    if profile.coins < cost:
        reason = 'insufficient_coins'
    elif item_id in owned:
        reason = 'already_owned'
    else:
        updated = update_platform_profile(player, {
            'coins': profile.coins - cost,
            owned_key: owned + [item_id],
        })
        current_app.logger.info(f"[purchase] player={player.id} item={item_id} cost={cost} coins_left={updated.coins}")
        return ActionResult(True, updated)

    current_app.logger.info(f"[purchase-rejected] player={player.id} item={item_id} reason={reason}")
    return ActionResult(False, profile, reason)


def purchase_cosmetic(player, item_id, cost):
    return _purchase(player, item_id, cost, 'ownedSkins')


def purchase_ability(player, item_id, cost):
    return _purchase(player, item_id, cost, 'ownedAbilities')


def equip_cosmetic(player, item_id):
    if not item_id:
        raise ValidationError('itemId is required')
    profile = derive_platform_profile(player)
    if str(item_id) not in profile.owned_skins:
        return ActionResult(False, profile, 'not_owned')
    return ActionResult(True, update_platform_profile(player, {'equippedSkin': str(item_id)}))


def sync_unlocked_levels_from_ledger(player):
    """Unlock every level up to one past the best level in the ledger.

    Only ever adds levels. A failing ledger query is logged and leaves the
    stored profile as it was.
    """
    game = platform_game()
    entry = get_or_init_stats(player, game)
    try:
        # A failed statement only rolls back this savepoint, not the caller's transaction
        with db.session.begin_nested():
            highest_seen = ledger.max_level(player.id, game)
    except SQLAlchemyError as exc:
        current_app.logger.warning(f"[sync-levels] player={player.id} ledger query failed: {exc}")
        return PlatformProfile.from_entry(player, entry)

    stats = entry.custom_stats
    current = set(normalize_levels(stats.get('unlockedLevels')))
    target = set(range(1, min(highest_seen + 1, max_platform_level()) + 1))
    highest = max(1, to_int(stats.get('highestLevelReached'), 1))

    changed = False
    if not target.issubset(current):
        stats['unlockedLevels'] = sorted(current | target)
        changed = True
    if highest_seen > highest:
        stats['highestLevelReached'] = highest_seen
        changed = True
    if changed:
        store_stats(player, game, entry)
        current_app.logger.info(
            f"[sync-levels] player={player.id} max_level={highest_seen} unlocked={stats['unlockedLevels']}"
        )
    return PlatformProfile.from_entry(player, entry)


def complete_level(player, session):
    """Record a finished platformer level: coins, counters, unlocks and a ledger row."""
    session = session or {}
    game = platform_game()
    cap = max_platform_level()

    level = max(1, to_int(session.get('level'), 1))
    score = max(0, to_int(session.get('score'), 0))
    gears = max(0, to_int(session.get('gearsCollected'), 0))
    enemies = max(0, to_int(session.get('enemiesDefeated'), 0))
    deaths = max(0, to_int(session.get('deaths'), 0))
    play_time = max(0, to_number(session.get('playTime'), 0))
    completion_time = to_number(session.get('completionTime'), 0)
    coins_earned = score // 10 + gears * 5

    entry = update_stats(player, game, {
        'score': score,
        'level': level,
        'coinsEarned': coins_earned,
        'customStats': {
            'totalGearsCollected': gears,
            'totalEnemiesDefeated': enemies,
            'totalDeaths': deaths,
            'totalPlayTime': play_time,
        },
    })
    stats = entry.custom_stats

    if deaths == 0:
        stats['perfectRuns'] = to_int(stats.get('perfectRuns'), 0) + 1
    if completion_time > 0:
        fastest = to_number(stats.get('fastestCompletion'), 0)
        if fastest <= 0 or completion_time < fastest:
            stats['fastestCompletion'] = completion_time

    plays = stats.get('levelPlays')
    if not isinstance(plays, dict):
        plays = {}
    plays[str(level)] = to_int(plays.get(str(level)), 0) + 1
    stats['levelPlays'] = plays
    stats['favoriteLevel'] = to_int(max(plays, key=lambda key: (plays[key], -to_int(key, 0))), 1)

    unlocked = set(normalize_levels(stats.get('unlockedLevels')))
    unlocked.update(range(1, min(level + 1, cap) + 1))
    stats['unlockedLevels'] = sorted(unlocked)
    stats['highestLevelReached'] = max(to_int(stats.get('highestLevelReached'), 1), min(level, cap))
    store_stats(player, game, entry)

    bump_player_totals(player, score)
    record = ledger.append_score(player, game, score, level, play_time)
    current_app.logger.info(
        f"[level-complete] player={player.id} level={level} score={score} coins_earned={coins_earned}"
    )
    return LevelResult(PlatformProfile.from_entry(player, entry), coins_earned, record)
