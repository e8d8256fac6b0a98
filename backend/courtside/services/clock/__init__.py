"""Authoritative match clock and possession services.

This package holds the server-side rules for the game clock, periods and
ball possessions. HTTP routes and socket handlers import from here so the
transport layer stays free of clock arithmetic.
"""

from .possessions import (
    active_possession,
    close_active_possession,
    close_possession,
    open_possession,
    possession_stats,
)
from .timer import (
    ClockConflict,
    PeriodLimitReached,
    advance_period,
    clock_payload,
    pause_clock,
    remaining_seconds,
    reset_match,
    resume_clock,
    set_period,
    set_period_duration,
    start_clock,
    stop_clock,
)
