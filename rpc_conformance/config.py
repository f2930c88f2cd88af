"""
Harness configuration.

``load_config`` is called once by the entry point (a test session fixture or
a script). The resulting HarnessConfig is passed explicitly to whatever
needs it; nothing in the package keeps it as module-level state.
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .exceptions import ConfigError
from .properties import load_properties
from .topology import DEFAULT_API_VERSION, Topology, TopologyBuilder

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = "./data/env.properties"


class HarnessSettings(BaseModel):
    """Tunable harness settings, read from CONFORMANCE_* environment variables."""
    model_config = ConfigDict(frozen=True)

    api_version: int = Field(DEFAULT_API_VERSION, gt=0)
    waiting_time: float = Field(30.0, gt=0)
    poll_interval: float = Field(0.0, ge=0)
    http_timeout: float = Field(10.0, gt=0)
    retry_count: int = Field(3, ge=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessSettings":
        """
        Build settings from environment variables, falling back to defaults.

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        environ = os.environ if environ is None else environ
        names = {
            "api_version": "CONFORMANCE_API_VERSION",
            "waiting_time": "CONFORMANCE_WAITING_TIME",
            "poll_interval": "CONFORMANCE_POLL_INTERVAL",
            "http_timeout": "CONFORMANCE_HTTP_TIMEOUT",
            "retry_count": "CONFORMANCE_RETRY_COUNT",
        }
        values = {field: environ[var] for field, var in names.items() if environ.get(var)}
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid harness settings: {e}") from e


@dataclass(frozen=True)
class HarnessConfig:
    """Topology plus settings, shared read-only by every scenario."""
    topology: Topology
    settings: HarnessSettings
    env_file: Path


def load_config(
    env_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    builder: Optional[TopologyBuilder] = None,
) -> HarnessConfig:
    """
    Load the harness configuration.

    Args:
        env_file: Topology file path (default: $CHAIN_ENV or ./data/env.properties)
        environ: Environment mapping (default: os.environ)
        builder: Custom topology builder; wallet paths resolve next to env_file otherwise

    Returns:
        The immutable harness configuration

    Raises:
        ConfigError: If the file is missing or the topology is invalid
    """
    environ = os.environ if environ is None else environ
    path = Path(env_file or environ.get("CHAIN_ENV", DEFAULT_ENV_FILE))
    props = load_properties(path)

    settings = HarnessSettings.from_env(environ)
    builder = builder or TopologyBuilder(data_dir=path.parent)
    topology = builder.build(props)

    logger.info(f"Loaded harness configuration from {path}")
    return HarnessConfig(topology=topology, settings=settings, env_file=path)
