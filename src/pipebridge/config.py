"""
Persistent configuration for the bridge.

Describes which child executable to launch and how to talk to it.
Persists to JSON at ~/.pipebridge/config.json (overridable via the
PIPEBRIDGE_CONFIG env var).  PIPEBRIDGE_COMMAND, when set, replaces the
configured child command line.
"""

import json
import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.expanduser("~/.pipebridge")
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, "config.json")
DEFAULT_COMMAND = ["bookr.exe"]


@dataclass
class BridgeConfig:
    command: List[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None
    encoding: str = "utf-8"
    quit_command: str = "quit"
    forward_stderr: bool = True  # log child stderr instead of inheriting it

    def to_dict(self) -> dict:
        d = {
            "command": list(self.command),
            "encoding": self.encoding,
            "quit_command": self.quit_command,
            "forward_stderr": self.forward_stderr,
        }
        if self.cwd is not None:
            d["cwd"] = self.cwd
        if self.env is not None:
            d["env"] = dict(self.env)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "BridgeConfig":
        command = data.get("command", DEFAULT_COMMAND)
        if isinstance(command, str):
            command = shlex.split(command)
        return cls(
            command=list(command),
            cwd=data.get("cwd"),
            env=data.get("env"),
            encoding=data.get("encoding", "utf-8"),
            quit_command=data.get("quit_command", "quit"),
            forward_stderr=data.get("forward_stderr", True),
        )


def get_config_path() -> str:
    """Resolve config file path from env var or default."""
    return os.environ.get("PIPEBRIDGE_CONFIG", DEFAULT_CONFIG_PATH)


def _apply_env_overrides(config: BridgeConfig) -> BridgeConfig:
    command = os.environ.get("PIPEBRIDGE_COMMAND")
    if command:
        config.command = shlex.split(command)
    return config


def load_config(path: Optional[str] = None) -> BridgeConfig:
    """
    Load config from JSON file.

    Returns a default BridgeConfig if the file doesn't exist or is invalid.
    Environment overrides are applied in both cases.
    """
    path = path or get_config_path()
    if not os.path.exists(path):
        logger.debug("No config file at %s, using defaults", path)
        return _apply_env_overrides(BridgeConfig())
    try:
        with open(path, "r") as f:
            data = json.load(f)
        config = BridgeConfig.from_dict(data)
        logger.debug("Loaded config from %s", path)
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning("Failed to load config from %s: %s, using defaults", path, e)
        config = BridgeConfig()
    return _apply_env_overrides(config)


def save_config(config: BridgeConfig, path: Optional[str] = None) -> None:
    """Persist config to JSON file, creating parent directories as needed."""
    path = path or get_config_path()
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info("Config saved to %s", path)
