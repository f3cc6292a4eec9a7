"""Configuration settings for the retrieval gateway."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from common.constants import DEFAULT_HOST, DEFAULT_PORT, STREAM_BUFFER_SIZE
from common.exceptions import ConfigurationError

DATABASE_PATH_ENV = "CARSERVE_DATABASE_PATH"
HOST_ENV = "CARSERVE_HOST"
PORT_ENV = "CARSERVE_PORT"
STREAM_BUFFER_SIZE_ENV = "CARSERVE_STREAM_BUFFER_SIZE"


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, loaded once at startup.
    """
    database_path: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    stream_buffer_size: int = STREAM_BUFFER_SIZE


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        environ: Mapping to read from. Defaults to os.environ

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If the mapping database path is missing or a
            numeric setting is malformed
    """
    if environ is None:
        environ = os.environ

    database_path = environ.get(DATABASE_PATH_ENV, "").strip()
    if not database_path:
        raise ConfigurationError(f"Environment variable {DATABASE_PATH_ENV} is required")

    return Settings(
        database_path=database_path,
        host=environ.get(HOST_ENV, "").strip() or DEFAULT_HOST,
        port=_int_setting(environ, PORT_ENV, DEFAULT_PORT),
        stream_buffer_size=_int_setting(environ, STREAM_BUFFER_SIZE_ENV, STREAM_BUFFER_SIZE),
    )
