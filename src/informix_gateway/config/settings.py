import logging
import os
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from jinja2.sandbox import SandboxedEnvironment
from pydantic import BaseModel, ConfigDict, ValidationError

from informix_gateway.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_JDBC_JAR = "/opt/informix/jdbc/ifxjdbc.jar"
DEFAULT_CACHE_TTL_SECONDS = 60.0

BridgeMode = Literal["compile", "adapter"]

_REQUIRED_CONNECTION_FIELDS = ("database", "user", "password", "server")


class ConnectionDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = 9088
    database: str
    user: str
    password: str
    server: str
    client_locale: str = "en_US.utf8"
    db_locale: str = "en_US.utf8"

    @property
    def jdbc_url(self) -> str:
        return (
            f"jdbc:informix-sqli://{self.host}:{self.port}/{self.database}"
            f":INFORMIXSERVER={self.server};CLIENT_LOCALE={self.client_locale};DB_LOCALE={self.db_locale}"
        )

    def __repr__(self) -> str:
        # never leak the password into logs
        return f"ConnectionDescriptor(url={self.jdbc_url!r}, user={self.user!r})"


class PoolHints(BaseModel):
    """Pool sizing hints. Kept for configuration compatibility, sessions are never pooled."""

    model_config = ConfigDict(frozen=True)

    min: int = 2
    max: int = 10


class GatewaySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    connection: ConnectionDescriptor
    jdbc_jar: Path = Path(DEFAULT_JDBC_JAR)
    java_bin: str = "java"
    javac_bin: str = "javac"
    work_dir: Path | None = None
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    bridge_mode: BridgeMode = "compile"
    pool: PoolHints = PoolHints()


def load_settings(config_file: Path | None = None, environ: Mapping[str, str] | None = None) -> GatewaySettings:
    """Build the gateway settings, either from a YAML file or from INFORMIX_* environment variables.

    Args:
        config_file: Optional YAML file. It is rendered as a Jinja template first, so values can be
            pulled from the environment with `{{ env_var("NAME", "default") }}`.
        environ: The environment to read from. Defaults to `os.environ`.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If a required connection field is missing or a value does not validate.
    """
    env = os.environ if environ is None else environ

    if config_file is not None:
        raw = _read_config_file(config_file, env)
    else:
        raw = _read_environment(env)

    connection = raw.get("connection") or {}
    missing = [name for name in _REQUIRED_CONNECTION_FIELDS if not connection.get(name)]
    if missing:
        raise ConfigError(f"Missing required database configuration: {', '.join(missing)}")

    try:
        settings = GatewaySettings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid gateway configuration: {e}") from e

    logger.debug("Loaded settings for %r (bridge mode: %s)", settings.connection, settings.bridge_mode)
    return settings


def _read_config_file(config_file: Path, env: Mapping[str, str]) -> dict[str, Any]:
    def env_var(name: str, default: str | None = None) -> str:
        if name in env:
            return env[name]
        if default is not None:
            return default
        raise ConfigError(f"Error in config file. The environment variable {name} is missing and no default was provided")

    source = config_file.expanduser().read_text(encoding="utf-8")
    rendered = SandboxedEnvironment().from_string(source).render(env_var=env_var)
    content = yaml.safe_load(rendered) or {}
    if not isinstance(content, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")
    return content


def _read_environment(env: Mapping[str, str]) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "connection": {
            "host": env.get("INFORMIX_HOST") or "localhost",
            "port": _int_or_default(env.get("INFORMIX_PORT"), 9088),
            "database": env.get("INFORMIX_DATABASE", ""),
            "user": env.get("INFORMIX_USER", ""),
            "password": env.get("INFORMIX_PASSWORD", ""),
            "server": env.get("INFORMIX_SERVER", ""),
            "client_locale": env.get("INFORMIX_CLIENT_LOCALE") or "en_US.utf8",
            "db_locale": env.get("INFORMIX_DB_LOCALE") or "en_US.utf8",
        },
        "pool": {
            "min": _int_or_default(env.get("INFORMIX_POOL_MIN"), 2),
            "max": _int_or_default(env.get("INFORMIX_POOL_MAX"), 10),
        },
        "jdbc_jar": env.get("INFORMIX_JDBC_JAR") or DEFAULT_JDBC_JAR,
        "java_bin": env.get("INFORMIX_JAVA_BIN") or "java",
        "javac_bin": env.get("INFORMIX_JAVAC_BIN") or "javac",
    }

    if env.get("INFORMIX_WORK_DIR"):
        raw["work_dir"] = env["INFORMIX_WORK_DIR"]
    if env.get("INFORMIX_CACHE_TTL"):
        raw["cache_ttl"] = env["INFORMIX_CACHE_TTL"]
    if env.get("INFORMIX_BRIDGE_MODE"):
        raw["bridge_mode"] = env["INFORMIX_BRIDGE_MODE"].lower()

    return raw


def _int_or_default(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default
