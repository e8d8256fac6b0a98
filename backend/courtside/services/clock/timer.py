import json
import time
from typing import Optional

from courtside import db
from courtside.models import Game, GameEvent, Possession
from .possessions import close_active_possession


class ClockConflict(Exception):
    """The requested transition is not valid for the clock's current state."""

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.current_state = current_state


class PeriodLimitReached(ClockConflict):
    pass


def remaining_seconds(game: Game, now: Optional[float] = None) -> int:
    """Seconds left in the current period as seen at ``now``.

    ``time_remaining`` holds the value at the last start/resume; while the
    clock runs the elapsed whole seconds since ``timer_started_at`` are
    subtracted. Never negative.
    """
    now = time.time() if now is None else now
    base = game.time_remaining if game.time_remaining is not None else game.period_duration
    if game.timer_state == 'running' and game.timer_started_at:
        elapsed = int(now - game.timer_started_at)
        return max(0, base - elapsed)
    return max(0, base)


def clock_payload(game: Game, now: Optional[float] = None) -> dict:
    now = time.time() if now is None else now
    return {
        'game_id': game.id,
        'current_period': game.current_period,
        'number_of_periods': game.number_of_periods,
        'period_duration': game.period_duration,
        'time_remaining': remaining_seconds(game, now),
        'timer_state': game.timer_state,
        'timer_started_at': game.timer_started_at,
        'timer_paused_at': game.timer_paused_at,
        'server_time': now,
    }


def _require_in_progress(game: Game) -> None:
    if game.status != 'in_progress':
        raise ClockConflict('Cannot start timer for game that is not in progress', game.timer_state)


def start_clock(game: Game, now: float) -> Game:
    _require_in_progress(game)
    if game.timer_state == 'running':
        raise ClockConflict('Timer is already running', game.timer_state)
    if game.timer_state == 'stopped':
        game.time_remaining = game.period_duration
    game.timer_state = 'running'
    game.timer_started_at = now
    game.timer_paused_at = None
    game.touch()
    db.session.add(game)
    return game


def resume_clock(game: Game, now: float) -> Game:
    _require_in_progress(game)
    if game.timer_state != 'paused':
        raise ClockConflict('Timer is not paused', game.timer_state)
    return start_clock(game, now)


def pause_clock(game: Game, now: float) -> Game:
    if game.timer_state != 'running':
        raise ClockConflict('Timer is not running', game.timer_state)
    game.time_remaining = remaining_seconds(game, now)
    game.timer_state = 'paused'
    game.timer_paused_at = now
    game.touch()
    db.session.add(game)
    return game


def stop_clock(game: Game) -> Game:
    game.timer_state = 'stopped'
    game.time_remaining = None
    game.timer_started_at = None
    game.timer_paused_at = None
    game.touch()
    db.session.add(game)
    return game


def _period_event(game: Game, event_type: str, period: int) -> GameEvent:
    event = GameEvent(
        game_id=game.id,
        event_type=event_type,
        team_id=game.home_team_id,
        period=period,
        details=json.dumps({'period_number': period}),
    )
    db.session.add(event)
    return event


def advance_period(game: Game, now: float) -> Game:
    """Move to the next period with a stopped clock.

    The active possession ends with ``period_end``; a ``period_end`` event is
    written for the old period and a ``period_start`` event for the new one.
    """
    if game.current_period >= game.number_of_periods:
        raise PeriodLimitReached('Already at final period', game.timer_state)
    previous = game.current_period
    close_active_possession(game.id, 'period_end', now)
    game.current_period = previous + 1
    stop_clock(game)
    _period_event(game, 'period_end', previous)
    _period_event(game, 'period_start', game.current_period)
    return game


def set_period(game: Game, period: int) -> Game:
    game.current_period = period
    return stop_clock(game)


def set_period_duration(game: Game, minutes: int) -> Game:
    game.period_duration = minutes * 60
    game.touch()
    db.session.add(game)
    return game


def reset_match(game: Game) -> Game:
    """Clear events, possessions and scores; back to period 1, clock stopped."""
    GameEvent.query.filter_by(game_id=game.id).delete()
    Possession.query.filter_by(game_id=game.id).delete()
    game.home_score = 0
    game.away_score = 0
    game.current_period = 1
    return stop_clock(game)
