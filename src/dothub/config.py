import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

CONFIG_DIR = Path.home() / ".dothub"
CONFIG_FILE = CONFIG_DIR / "config"

DEFAULT_STORE_DIR = Path("/usr/local/share/dothub")
DEFAULT_HUB_URL = "https://raw.githubusercontent.com/huncholane/dothub/refs/heads/main/hub.yml"
GH_TOKEN_HELP_URL = "https://github.com/settings/personal-access-tokens"
USER_AGENT = "dothub/0.1"

# keys understood in the config file and the environment
_OVERRIDABLE = {
    "DOTHUB_HUB_URL": "hub_url",
    "DOTHUB_STORE_DIR": "store_dir",
    "DOTHUB_CONFIG_DIR": "config_dir",
}


class Settings(BaseModel):
    """runtime configuration handed to every component."""
    store_dir: Path = DEFAULT_STORE_DIR
    config_dir: Path = Path.home() / ".config"
    hub_url: str = DEFAULT_HUB_URL
    github_api_url: str = "https://api.github.com"
    github_graphql_url: str = "https://api.github.com/graphql"
    token_env_var: str = "GITHUB_TOKEN"
    user_agent: str = USER_AGENT
    http_timeout: float = 10.0
    batch_size: int = Field(default=50, ge=1, le=100)
    fallback_workers: int = Field(default=8, ge=1)

    def github_token(self) -> Optional[str]:
        """read the personal access token, treating an empty value as unset."""
        token = os.environ.get(self.token_env_var)
        return token or None


def read_config_file(path: Path = CONFIG_FILE) -> Dict[str, str]:
    """read KEY=value lines from the config file."""
    values = {}
    if not path.exists():
        return values

    try:
        with open(path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip()
    except (IOError, PermissionError, OSError):
        # if we can't read the file, treat as not configured
        return {}
    return values


def load_settings(config_file: Path = CONFIG_FILE, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    build settings from defaults, the config file and the environment.

    later sources win: defaults < config file < environment.
    """
    env = os.environ if env is None else env
    overrides = {}

    file_values = read_config_file(config_file)
    for key, field in _OVERRIDABLE.items():
        if file_values.get(key):
            overrides[field] = file_values[key]
        if env.get(key):
            overrides[field] = env[key]

    return Settings(**overrides)


def set_config_value(key: str, value: str, config_file: Optional[Path] = None):
    """set a value in the config file, preserving other config values."""
    config_file = config_file or CONFIG_FILE
    if key not in _OVERRIDABLE:
        raise ValueError(f"unknown config key '{key}'. expected one of: {', '.join(_OVERRIDABLE)}")

    config_file.parent.mkdir(parents=True, exist_ok=True)
    config = read_config_file(config_file)
    config[key] = value

    try:
        with open(config_file, "w") as f:
            for k, v in config.items():
                f.write(f"{k}={v}\n")
    except (IOError, PermissionError, OSError) as e:
        raise RuntimeError(f"failed to write config file: {e}") from e
