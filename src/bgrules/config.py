"""Engine and simulation configuration."""

import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping, Optional

from bgrules.core.types import MAX_CUBE_VALUE

MATCH_LENGTH_OPTIONS = tuple(range(1, 26, 2))
ENV_PREFIX = "BGRULES_"


@dataclass
class EngineConfig:
    """Engine configuration."""

    # Match defaults
    default_match_length: int = 7
    max_cube_value: int = MAX_CUBE_VALUE
    jacoby_rule: bool = False  # Money play only

    # Randomness
    seed: Optional[int] = None  # None = OS entropy

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    run_name: str = "bgrules"
    console_interval: int = 10

    # Simulation
    max_moves_per_game: int = 2000
    cube_offer_rate: float = 0.1
    cube_take_rate: float = 0.7

    def validate(self) -> None:
        """Check that the configuration is usable.

        Raises:
            ValueError: If any setting is out of range
        """
        if self.default_match_length not in MATCH_LENGTH_OPTIONS:
            raise ValueError(
                f"default_match_length must be one of {MATCH_LENGTH_OPTIONS}, "
                f"got {self.default_match_length}"
            )
        cap = self.max_cube_value
        if not 1 <= cap <= MAX_CUBE_VALUE or cap & (cap - 1):
            raise ValueError(
                f"max_cube_value must be a power of two up to {MAX_CUBE_VALUE}, got {cap}"
            )
        if self.console_interval < 1:
            raise ValueError("console_interval must be positive")
        if self.max_moves_per_game < 1:
            raise ValueError("max_moves_per_game must be positive")
        for name in ("cube_offer_rate", "cube_take_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``BGRULES_*`` environment variables.

        Unset variables keep their defaults, e.g. ``BGRULES_LOG_LEVEL=DEBUG``
        or ``BGRULES_DEFAULT_MATCH_LENGTH=5``.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Validated EngineConfig
        """
        if environ is None:
            environ = os.environ

        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            kwargs[f.name] = _coerce(f.name, raw, getattr(cls, f.name))

        config = cls(**kwargs)
        config.validate()
        return config


def _coerce(name: str, raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{name}: expected a boolean, got {raw!r}")
    if isinstance(default, int) or (default is None and name == "seed"):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name}: expected an integer, got {raw!r}") from None
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{name}: expected a number, got {raw!r}") from None
    return raw
