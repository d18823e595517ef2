"""Profile and analytics for the space shooter (``Config.SHOOTER_GAME``)."""
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from flask import current_app

from arcade.services import ledger
from arcade.services.stats import (
    STARTER_FLAG,
    camel,
    get_or_init_stats,
    shooter_game,
    store_stats,
    to_int,
    to_number,
)

IDENTITY_FIELDS = {'playerId', 'badgeId', 'name'}
DERIVED_FIELDS = {'bestScore', 'gamesPlayed', 'averageScore', 'lastPlayed'}


@dataclass
class ShooterProfile:
    player_id: Optional[int]
    coins: int = 0
    best_score: int = 0
    games_played: int = 0
    total_asteroids_destroyed: int = 0
    total_power_ups_collected: int = 0
    best_accuracy: float = 0
    total_survival_time: float = 0
    average_survival_time: float = 0
    owned_ships: List[str] = field(default_factory=list)
    owned_upgrades: List[str] = field(default_factory=list)
    equipped_ship: str = 'basic'
    favorite_ship: Optional[str] = None
    average_score: int = 0
    last_played: Optional[str] = None

    @classmethod
    def from_entry(cls, player, entry):
        stats = entry.custom_stats
        ship = current_app.config.get('SHOOTER_STARTER_SHIP', 'basic')
        owned_ships = stats.get('ownedShips')
        owned_upgrades = stats.get('ownedUpgrades')
        return cls(
            player_id=player.id,
            coins=entry.coins,
            best_score=entry.highscore,
            games_played=entry.games_played,
            total_asteroids_destroyed=to_number(stats.get('totalAsteroidsDestroyed'), 0),
            total_power_ups_collected=to_number(stats.get('totalPowerUpsCollected'), 0),
            best_accuracy=to_number(stats.get('bestAccuracy'), 0),
            total_survival_time=to_number(stats.get('totalSurvivalTime'), 0),
            average_survival_time=to_number(stats.get('averageSurvivalTime'), 0),
            owned_ships=list(owned_ships) if isinstance(owned_ships, list) else [ship],
            owned_upgrades=list(owned_upgrades) if isinstance(owned_upgrades, list) else [],
            equipped_ship=str(stats.get('equippedShip') or ship),
            favorite_ship=stats.get('favoriteShip'),
            average_score=round(entry.highscore / entry.games_played) if entry.games_played > 0 else 0,
            last_played=entry.last_played.isoformat(),
        )

    def to_dict(self):
        return {camel(key): value for key, value in asdict(self).items()}


def derive_shooter_profile(player):
    return ShooterProfile.from_entry(player, get_or_init_stats(player, shooter_game()))


def update_shooter_profile(player, partial):
    game = shooter_game()
    entry = get_or_init_stats(player, game)
    for key, value in (partial or {}).items():
        if key in IDENTITY_FIELDS or key in DERIVED_FIELDS or key == STARTER_FLAG:
            continue
        if key == 'coins':
            entry.coins = max(0, to_int(value, 0))
        else:
            entry.custom_stats[key] = value
    store_stats(player, game, entry)
    return ShooterProfile.from_entry(player, entry)


def shooter_analytics(player, window=20):
    game = shooter_game()
    entry = get_or_init_stats(player, game)
    scores = ledger.recent_scores(player.id, game, limit=window)
    return {
        'totalGames': entry.games_played,
        'bestScore': entry.highscore,
        'averageScore': round(sum(s.score for s in scores) / len(scores)) if scores else 0,
        # newest minus oldest within the window
        'improvement': scores[0].score - scores[-1].score if len(scores) >= 2 else 0,
        'recentGames': [s.to_dict() for s in scores[:5]],
        'playTime': to_number(entry.custom_stats.get('totalSurvivalTime'), 0),
        'coins': entry.coins,
    }
