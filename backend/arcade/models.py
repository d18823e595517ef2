from datetime import datetime, timezone

from flask_login import UserMixin
from sqlalchemy.ext.mutable import MutableDict

from arcade import db


def utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


class Player(UserMixin, db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    badge_id = db.Column(db.String(128), unique=True, nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    total_score = db.Column(db.Integer, default=0, nullable=False)
    games_played = db.Column(db.Integer, default=0, nullable=False)
    last_played = db.Column(db.DateTime(timezone=True), default=utcnow)
    # game name -> serialized GameStatEntry (see arcade.services.stats)
    game_stats = db.Column(MutableDict.as_mutable(db.JSON), default=dict, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    scores = db.relationship('ScoreRecord', back_populates='player', lazy='dynamic')

    def __init__(self, **kwargs):
        super(Player, self).__init__(**kwargs)
        if self.game_stats is None:
            self.game_stats = {}
        if self.total_score is None:
            self.total_score = 0
        if self.games_played is None:
            self.games_played = 0

    def to_dict(self, include_stats=True):
        data = {
            'id': self.id,
            'badgeId': self.badge_id,
            'name': self.name,
            'totalScore': self.total_score,
            'gamesPlayed': self.games_played,
            'lastPlayed': _isoformat(self.last_played),
            'createdAt': _isoformat(self.created_at),
        }
        if include_stats:
            data['gameStats'] = dict(self.game_stats or {})
        return data


class ScoreRecord(db.Model):
    """One completed game session. Rows are appended, never updated."""
    __tablename__ = 'score_record'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    game_name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    duration = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    player = db.relationship('Player', back_populates='scores')

    __table_args__ = (
        db.Index('ix_score_record_player_game', 'player_id', 'game_name'),
        db.Index('ix_score_record_game_score', 'game_name', 'score'),
        db.Index('ix_score_record_game_level_score', 'game_name', 'level', 'score'),
    )

    def to_dict(self, include_player=False):
        data = {
            'id': self.id,
            'playerId': self.player_id,
            'gameName': self.game_name,
            'score': self.score,
            'level': self.level,
            'duration': self.duration,
            'createdAt': _isoformat(self.created_at),
        }
        if include_player and self.player is not None:
            data['name'] = self.player.name
            data['badgeId'] = self.player.badge_id
        return data
