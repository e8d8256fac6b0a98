from courtside import db, bcrypt
from flask_login import UserMixin
import json
import time

TIMER_STATES = ('stopped', 'running', 'paused')
GAME_STATUSES = ('scheduled', 'in_progress', 'completed')
POSSESSION_RESULTS = ('goal', 'turnover', 'out_of_bounds', 'timeout', 'period_end')
EVENT_TYPES = ('fault', 'shot', 'free_shot', 'timeout', 'substitution', 'period_start', 'period_end')
USER_ROLES = ('admin', 'coach', 'viewer')


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='viewer')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
        }


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    status = db.Column(db.String(32), nullable=False, default='scheduled')  # scheduled, in_progress, completed
    home_score = db.Column(db.Integer, nullable=False, default=0)
    away_score = db.Column(db.Integer, nullable=False, default=0)
    # Clock columns; timestamps are epoch seconds, durations whole seconds
    current_period = db.Column(db.Integer, nullable=False, default=1)
    number_of_periods = db.Column(db.Integer, nullable=False, default=4)
    period_duration = db.Column(db.Integer, nullable=False, default=600)
    time_remaining = db.Column(db.Integer, nullable=True)  # stored when paused; null means full period
    timer_state = db.Column(db.String(16), nullable=False, default='stopped')
    timer_started_at = db.Column(db.Float, nullable=True)
    timer_paused_at = db.Column(db.Float, nullable=True)
    updated_at = db.Column(db.Float, nullable=True)

    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])
    possessions = db.relationship('Possession', backref='game', lazy='dynamic')
    events = db.relationship('GameEvent', backref='game', lazy='dynamic')

    def touch(self):
        self.updated_at = time.time()

    def opponent_of(self, team_id):
        if team_id == self.home_team_id:
            return self.away_team_id
        if team_id == self.away_team_id:
            return self.home_team_id
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'home_team_id': self.home_team_id,
            'away_team_id': self.away_team_id,
            'home_team': self.home_team.name if self.home_team else None,
            'away_team': self.away_team.name if self.away_team else None,
            'status': self.status,
            'home_score': self.home_score,
            'away_score': self.away_score,
            'current_period': self.current_period,
            'number_of_periods': self.number_of_periods,
        }


class Possession(db.Model):
    __tablename__ = 'ball_possession'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    period = db.Column(db.Integer, nullable=False)
    started_at = db.Column(db.Float, nullable=False, default=time.time)
    ended_at = db.Column(db.Float, nullable=True)
    duration_seconds = db.Column(db.Integer, nullable=True)
    shots_taken = db.Column(db.Integer, nullable=False, default=0)
    result = db.Column(db.String(20), nullable=True)  # goal, turnover, out_of_bounds, timeout, period_end

    team = db.relationship('Team')

    @property
    def is_active(self):
        return self.ended_at is None

    def to_dict(self, now=None):
        data = {
            'id': self.id,
            'game_id': self.game_id,
            'team_id': self.team_id,
            'team_name': self.team.name if self.team else None,
            'period': self.period,
            'started_at': self.started_at,
            'ended_at': self.ended_at,
            'duration_seconds': self.duration_seconds,
            'shots_taken': self.shots_taken,
            'result': self.result,
        }
        if self.ended_at is None and now is not None:
            data['current_duration_seconds'] = max(0, int(now - self.started_at))
        return data


class GameEvent(db.Model):
    __tablename__ = 'game_event'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    event_type = db.Column(db.String(32), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=True)
    period = db.Column(db.Integer, nullable=False)
    details = db.Column(db.Text, nullable=True)  # JSON-encoded
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        try:
            details = json.loads(self.details) if self.details else None
        except ValueError:
            details = None
        return {
            'id': self.id,
            'game_id': self.game_id,
            'event_type': self.event_type,
            'team_id': self.team_id,
            'period': self.period,
            'details': details,
            'created_at': self.created_at,
        }
