from typing import List, Optional

from courtside import db
from courtside.models import Game, Possession


def active_possession(game_id: int) -> Optional[Possession]:
    return (
        Possession.query.filter_by(game_id=game_id, ended_at=None)
        .order_by(Possession.started_at.desc())
        .first()
    )


def close_possession(possession: Possession, result: Optional[str], now: float) -> Possession:
    """End a possession at ``now`` and freeze its duration."""
    possession.ended_at = now
    possession.duration_seconds = max(0, int(now - possession.started_at))
    if result is not None or possession.result is None:
        possession.result = result
    db.session.add(possession)
    return possession


def close_active_possession(game_id: int, result: Optional[str], now: float) -> List[Possession]:
    """End every open possession of a game.

    Normally there is at most one; closing all of them keeps the
    single-active invariant intact even after a bad write.
    """
    closed = []
    for possession in Possession.query.filter_by(game_id=game_id, ended_at=None).all():
        closed.append(close_possession(possession, result, now))
    return closed


def open_possession(game: Game, team_id: int, period: int, now: float) -> Possession:
    """Hand the ball to ``team_id``; the previous holder loses it on a turnover."""
    close_active_possession(game.id, 'turnover', now)
    possession = Possession(game_id=game.id, team_id=team_id, period=period, started_at=now)
    db.session.add(possession)
    return possession


def possession_stats(game_id: int) -> List[dict]:
    goal = db.case((Possession.result == 'goal', 1), else_=0)
    turnover = db.case((Possession.result == 'turnover', 1), else_=0)
    rows = (
        db.session.query(
            Possession.team_id,
            db.func.count(Possession.id),
            db.func.avg(Possession.duration_seconds),
            db.func.avg(Possession.shots_taken),
            db.func.sum(goal),
            db.func.sum(turnover),
        )
        .filter(Possession.game_id == game_id, Possession.ended_at.isnot(None))
        .group_by(Possession.team_id)
        .order_by(Possession.team_id)
        .all()
    )
    return [
        {
            'team_id': team_id,
            'total_possessions': int(total or 0),
            'avg_duration_seconds': round(float(avg_duration or 0), 1),
            'avg_shots_per_possession': round(float(avg_shots or 0), 2),
            'possessions_with_goal': int(goals or 0),
            'turnovers': int(turnovers or 0),
        }
        for team_id, total, avg_duration, avg_shots, goals, turnovers in rows
    ]
