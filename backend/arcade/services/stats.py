"""Per-game statistics store kept on ``Player.game_stats``.

Every game a player touches gets exactly one entry, keyed by game name and
serialized as a JSON mapping::

    {
        "highscore": 0, "coins": 0, "gamesPlayed": 0, "lastPlayed": "...",
        "bestLevel": 1, "bestLines": 0, "customStats": {...}
    }

``customStats`` is the open bag for game specific counters and profile
fields. The two games with structured profiles (platform and shooter, see
``Config.PLATFORM_GAME`` / ``Config.SHOOTER_GAME``) get their own ``GameRules``
subclass that knows their starter content and which session counters are
cumulative. Any other game falls back to ``GameRules``: custom keys are
overwritten by the latest session.

Entries are materialized lazily by ``get_or_init_stats``. Starter content is
granted once and guarded by the ``starterGranted`` flag in ``customStats``.
Callers are responsible for committing the player.
"""
import copy
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from flask import current_app

from arcade.models import utcnow

STARTER_FLAG = 'starterGranted'


def to_number(value, default=0):
    """Coerce loosely typed client input to a number, falling back to ``default``."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
        if not math.isfinite(number):
            return default
        return int(number) if number.is_integer() else number
    return default


def to_int(value, default=0):
    return int(to_number(value, default))


def camel(name):
    head, *rest = name.split('_')
    return head + ''.join(word.title() for word in rest)


def normalize_levels(values):
    """Unique, ascending, positive level numbers."""
    if not isinstance(values, (list, tuple, set)):
        return []
    levels = {to_int(value, 0) for value in values}
    return sorted(level for level in levels if level >= 1)


def _parse_timestamp(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return utcnow()


def _as_mapping(value):
    if isinstance(value, dict):
        return dict(value)
    # Maps serialized as [[key, value], ...]
    if isinstance(value, (list, tuple)):
        try:
            return dict(value)
        except (TypeError, ValueError):
            return {}
    return {}


@dataclass
class GameStatEntry:
    highscore: int = 0
    coins: int = 0
    games_played: int = 0
    last_played: datetime = field(default_factory=utcnow)
    best_level: int = 1
    best_lines: int = 0
    custom_stats: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            highscore=to_int(data.get('highscore'), 0),
            coins=max(0, to_int(data.get('coins'), 0)),
            games_played=to_int(data.get('gamesPlayed'), 0),
            last_played=_parse_timestamp(data.get('lastPlayed')),
            best_level=to_int(data.get('bestLevel'), 1),
            best_lines=to_int(data.get('bestLines'), 0),
            custom_stats=_as_mapping(data.get('customStats')),
        )

    def to_dict(self):
        return {
            'highscore': self.highscore,
            'coins': self.coins,
            'gamesPlayed': self.games_played,
            'lastPlayed': self.last_played.isoformat(),
            'bestLevel': self.best_level,
            'bestLines': self.best_lines,
            'customStats': copy.deepcopy(self.custom_stats),
        }


class GameRules:
    """Merge rules for games without a structured profile."""

    def starter_coins(self):
        return 0

    def starter_stats(self):
        return {}

    def grant_starter(self, entry):
        defaults = self.starter_stats()
        if not defaults:
            return
        entry.coins += self.starter_coins()
        entry.custom_stats.update(defaults)
        entry.custom_stats[STARTER_FLAG] = True

    def patch(self, entry):
        """Back-fill fields added by later schema versions. Returns True if anything changed."""
        defaults = self.starter_stats()
        if not defaults:
            return False
        changed = False
        for key, value in defaults.items():
            if key not in entry.custom_stats:
                entry.custom_stats[key] = value
                changed = True
        if not entry.custom_stats.get(STARTER_FLAG):
            if entry.games_played == 0 and entry.coins == 0:
                entry.coins = self.starter_coins()
            entry.custom_stats[STARTER_FLAG] = True
            changed = True
        return changed

    def accumulate(self, entry, session_stats):
        """Apply cumulative counters; returns the keys it consumed."""
        return set()

    def merge(self, entry, session_stats):
        consumed = self.accumulate(entry, session_stats)
        for key, value in session_stats.items():
            if key in consumed or key == STARTER_FLAG:
                continue
            entry.custom_stats[key] = value


class PlatformRules(GameRules):
    COUNTERS = ('totalGearsCollected', 'totalEnemiesDefeated', 'totalDeaths', 'totalPlayTime')

    def starter_coins(self):
        return int(current_app.config.get('PLATFORM_STARTER_COINS', 100))

    def starter_stats(self):
        skin = current_app.config.get('PLATFORM_STARTER_SKIN', 'default')
        return {
            'highestLevelReached': 1,
            'unlockedLevels': [1],
            'ownedSkins': [skin],
            'equippedSkin': skin,
            'ownedAbilities': [],
            'achievements': [],
            'totalGearsCollected': 0,
            'totalEnemiesDefeated': 0,
            'totalDeaths': 0,
            'totalPlayTime': 0,
            'perfectRuns': 0,
            'fastestCompletion': None,
            'favoriteLevel': 1,
            'levelPlays': {},
        }

    def accumulate(self, entry, session_stats):
        stats = entry.custom_stats
        consumed = set()
        for key in self.COUNTERS:
            if key in session_stats:
                delta = max(0, to_number(session_stats[key], 0))
                stats[key] = to_number(stats.get(key), 0) + delta
                consumed.add(key)
        return consumed


class ShooterRules(GameRules):
    SESSION_KEYS = ('asteroidsDestroyed', 'powerUpsCollected', 'accuracy', 'survivalTime', 'shipUsed')

    def starter_coins(self):
        return int(current_app.config.get('SHOOTER_STARTER_COINS', 1000))

    def starter_stats(self):
        ship = current_app.config.get('SHOOTER_STARTER_SHIP', 'basic')
        return {
            'ownedShips': [ship],
            'equippedShip': ship,
            'ownedUpgrades': [],
            'totalAsteroidsDestroyed': 0,
            'totalPowerUpsCollected': 0,
            'bestAccuracy': 0,
            'totalSurvivalTime': 0,
            'averageSurvivalTime': 0,
            'favoriteShip': None,
        }

    def accumulate(self, entry, session_stats):
        stats = entry.custom_stats
        if 'asteroidsDestroyed' in session_stats:
            stats['totalAsteroidsDestroyed'] = (
                to_number(stats.get('totalAsteroidsDestroyed'), 0)
                + max(0, to_number(session_stats['asteroidsDestroyed'], 0))
            )
        if 'powerUpsCollected' in session_stats:
            stats['totalPowerUpsCollected'] = (
                to_number(stats.get('totalPowerUpsCollected'), 0)
                + max(0, to_number(session_stats['powerUpsCollected'], 0))
            )
        if 'accuracy' in session_stats:
            stats['bestAccuracy'] = max(
                to_number(stats.get('bestAccuracy'), 0),
                to_number(session_stats['accuracy'], 0),
            )
        if 'survivalTime' in session_stats:
            total = to_number(stats.get('totalSurvivalTime'), 0) + max(0, to_number(session_stats['survivalTime'], 0))
            stats['totalSurvivalTime'] = total
            # games_played already counts the current session
            stats['averageSurvivalTime'] = total / max(entry.games_played, 1)
        if session_stats.get('shipUsed'):
            stats['favoriteShip'] = str(session_stats['shipUsed'])
        return set(self.SESSION_KEYS)


def platform_game():
    return current_app.config.get('PLATFORM_GAME', 'tilliman')


def shooter_game():
    return current_app.config.get('SHOOTER_GAME', 'spaceships')


def rules_for(game_name):
    if game_name == platform_game():
        return PlatformRules()
    if game_name == shooter_game():
        return ShooterRules()
    return GameRules()


def store_stats(player, game_name, entry):
    """Write ``entry`` back onto the player as a fresh mapping so the JSON column is flagged dirty."""
    if player.game_stats is None:
        player.game_stats = {}
    player.game_stats[game_name] = entry.to_dict()


def peek_stats(player, game_name):
    """Read an entry without materializing it. Returns None for games never played."""
    raw = (player.game_stats or {}).get(game_name)
    if raw is None:
        return None
    return GameStatEntry.from_dict(raw)


def get_or_init_stats(player, game_name):
    """Return the player's entry for ``game_name``, creating it on first access.

    Side effect: a missing entry is synthesized (with starter content for the
    known games) and written into ``player.game_stats`` before it is returned,
    so a second call finds the stored entry and grants nothing again. Existing
    entries of known games are back-filled with any missing profile fields.
    """
    rules = rules_for(game_name)
    raw = (player.game_stats or {}).get(game_name)
    if raw is None:
        entry = GameStatEntry()
        rules.grant_starter(entry)
        store_stats(player, game_name, entry)
        return entry

    entry = GameStatEntry.from_dict(raw)
    if rules.patch(entry):
        store_stats(player, game_name, entry)
    return entry


def update_stats(player, game_name, session):
    """Merge one session outcome into the player's entry for ``game_name``.

    ``session`` uses the client's wire keys: ``score`` plus optional ``level``,
    ``lines``, ``coinsEarned``, ``duration`` and ``customStats``. Malformed
    numbers are coerced, never rejected.
    """
    session = session or {}
    entry = get_or_init_stats(player, game_name)
    rules = rules_for(game_name)

    entry.highscore = max(entry.highscore, to_int(session.get('score'), 0))
    entry.coins = max(0, entry.coins + to_int(session.get('coinsEarned'), 0))
    entry.games_played += 1
    entry.last_played = utcnow()
    entry.best_level = max(entry.best_level, to_int(session.get('level'), 1))
    entry.best_lines = max(entry.best_lines, to_int(session.get('lines'), 0))

    session_stats = session.get('customStats')
    if isinstance(session_stats, dict) and session_stats:
        rules.merge(entry, session_stats)

    store_stats(player, game_name, entry)
    return entry


def bump_player_totals(player, score):
    """Update the cross-game aggregates for one finished session."""
    player.total_score = (player.total_score or 0) + max(0, to_int(score, 0))
    player.games_played = (player.games_played or 0) + 1
    player.last_played = utcnow()
