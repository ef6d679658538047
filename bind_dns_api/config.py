"""Application configuration and its JSON file format."""

import json
import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from typing import Any, TypeVar, Union

_T = TypeVar("_T")

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class ServerConfig:
    """Where the HTTP server listens."""

    host: str = ""
    port: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "ServerConfig":
        return _load_into(cls(), data, "server")


@dataclass
class BINDConfig:
    """Locations of the name server's files and the zone defaults."""

    named_conf_path: str = ""
    zone_directory: str = ""
    rndc_path: str = ""
    rndc_conf_path: str = ""
    default_ttl: int = 0
    default_refresh: int = 0
    default_retry: int = 0
    default_expire: int = 0
    default_minimum: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "BINDConfig":
        return _load_into(cls(), data, "bind")


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = ""
    format: str = ""
    output_path: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "LoggingConfig":
        return _load_into(cls(), data, "logging")


@dataclass
class Config:
    """Complete application configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    bind: BINDConfig = field(default_factory=BINDConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        return _load_into(cls(), data, "")


def _load_into(instance: _T, data: Any, path: str) -> _T:
    """Return a copy of ``instance`` with the values in ``data`` laid over it."""
    if data is None:
        return instance
    if not isinstance(data, dict):
        raise ValueError(f"{path or 'configuration'}: expected a JSON object")
    changes = {}
    for spec in fields(instance):
        if spec.name not in data:
            continue
        value = data[spec.name]
        where = f"{path}.{spec.name}" if path else spec.name
        current = getattr(instance, spec.name)
        if is_dataclass(current):
            changes[spec.name] = _load_into(current, value, where)
        elif value is None:
            continue
        elif spec.type is int:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{where}: expected an integer, got {value!r}")
            changes[spec.name] = value
        elif spec.type is str:
            if not isinstance(value, str):
                raise ValueError(f"{where}: expected a string, got {value!r}")
            changes[spec.name] = value
    return replace(instance, **changes)


def default_config() -> Config:
    """Return a configuration filled with the default values."""
    return Config(
        server=ServerConfig(host="0.0.0.0", port=8080),
        bind=BINDConfig(
            named_conf_path="/etc/bind/named.conf",
            zone_directory="./zones",
            rndc_path="/usr/sbin/rndc",
            rndc_conf_path="/etc/bind/rndc.conf",
            default_ttl=3600,
            default_refresh=7200,
            default_retry=3600,
            default_expire=1209600,
            default_minimum=86400,
        ),
        logging=LoggingConfig(level="info", format="json", output_path="stdout"),
    )


def load_config(path: PathLike) -> Config:
    """Load a JSON configuration file over the defaults.

    A missing file yields the defaults; malformed JSON or values of the wrong
    type raise ``ValueError``.
    """
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        return default_config()
    return _load_into(default_config(), data, "")


def save_config(config: Config, path: PathLike) -> None:
    """Write the configuration to ``path`` as indented JSON."""
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(json.dumps(config.to_dict(), indent=2))
        handle.write("\n")