"""
Runtime configuration read from the environment.

Recognised variables:
    ODEBENCH_ENABLE_X64     Use float64 in JAX (default: true)
    ODEBENCH_LOG_LEVEL      Level of the `odebench` logger (default: WARNING)
    ODEBENCH_PLATFORM       JAX platform to run on, e.g. "cpu" or "gpu"
    ODEBENCH_LOG_COMPILES   Log every XLA compilation (default: false)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import jax

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: str) -> bool:
    """Parse a boolean environment value."""
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Cannot interpret {value!r} as a boolean")


@dataclass(frozen=True)
class Settings:
    """
    Process-wide settings applied by `configure`.

    Attributes:
        enable_x64: Use float64 in JAX.
        log_level: Level of the `odebench` logger.
        platform: JAX platform to run on. None leaves the choice to JAX.
        log_compiles: Log every XLA compilation.
    """
    enable_x64: bool = True
    log_level: str = "WARNING"
    platform: Optional[str] = None
    log_compiles: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        log_level = env.get("ODEBENCH_LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown log level: {log_level}")
        return cls(
            enable_x64=parse_bool(env.get("ODEBENCH_ENABLE_X64", "true")),
            log_level=log_level,
            platform=env.get("ODEBENCH_PLATFORM") or None,
            log_compiles=parse_bool(env.get("ODEBENCH_LOG_COMPILES", "false")),
        )


def configure(settings: Optional[Settings] = None) -> Settings:
    """
    Apply settings to JAX and to the package logger.

    Must run before any JAX array is created for `enable_x64` and
    `platform` to take effect.
    """
    if settings is None:
        settings = Settings.from_env()

    jax.config.update("jax_enable_x64", settings.enable_x64)
    jax.config.update("jax_log_compiles", settings.log_compiles)
    if settings.platform is not None:
        jax.config.update("jax_platforms", settings.platform)

    logging.getLogger("odebench").setLevel(settings.log_level)
    logger.debug("Applied %s", settings)
    return settings
