"""
Settings read from the environment, and logging setup
"""

import logging
import os
from dataclasses import dataclass

ONE_YEAR_IN_SECS = 365 * 24 * 60 * 60
ONE_GWEI = 1_000_000_000

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def _int_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value

@dataclass
class Config:
    port: int = 10000
    secret_key: str = "demo_secret_key_change_in_production"
    log_level: str = "INFO"
    faucet_amount: int = 0  # 0 disables minting for new accounts

    @classmethod
    def from_env(cls, environ=None) -> 'Config':
        environ = os.environ if environ is None else environ

        log_level = environ.get("TIMELOCK_LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown log level {log_level!r}")

        return cls(
            port=_int_env(environ, "PORT", cls.port),
            secret_key=environ.get("TIMELOCK_SECRET_KEY", cls.secret_key),
            log_level=log_level,
            faucet_amount=_int_env(environ, "TIMELOCK_FAUCET_AMOUNT", cls.faucet_amount),
        )

def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the timelock logger once"""
    logger = logging.getLogger("timelock")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
