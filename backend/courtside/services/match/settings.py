from dataclasses import dataclass


@dataclass(frozen=True)
class EngineSettings:
    clock_sync_interval: float = 5.0
    possession_tick: float = 1.0
    countdown_tick: float = 1.0

    @classmethod
    def from_config(cls, config) -> 'EngineSettings':
        """Build from a config class/object or a Flask ``app.config`` mapping."""
        get = config.get if hasattr(config, 'get') else lambda key, default: getattr(config, key, default)
        return cls(
            clock_sync_interval=float(get('CLOCK_SYNC_INTERVAL_SEC', cls.clock_sync_interval)),
            possession_tick=float(get('POSSESSION_TICK_SEC', cls.possession_tick)),
            countdown_tick=float(get('COUNTDOWN_TICK_SEC', cls.countdown_tick)),
        )
