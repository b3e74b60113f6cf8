"""Configuration loader for secretcache."""
import os
import logging
from pathlib import Path
from typing import Dict, Any

import yaml

from .models import DEFAULT_MAX_CACHE_SIZE, DEFAULT_REFRESH_INTERVAL, CacheConfig
from .preferences import CONFIG_PATH_KEY, get_preference

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("gcp", "aws")


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "secretcache" / "config.yml"


def _get_config_path() -> str:
    """
    Get config file path using XDG Base Directory standard.

    Priority order:
    1. User preference (stored in ~/.config/secretcache/preferences.json)
    2. Default location: ~/.config/secretcache/config.yml

    Returns:
        Absolute path to config file

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference(CONFIG_PATH_KEY)
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   secretcache config set-path /path/to/your/config.yml\n"
    )


def _validate_gcp(config: Dict[str, Any], config_path: str) -> None:
    gcp = config.get("gcp")
    if not os.getenv("GCP_PROJECT") and (not isinstance(gcp, dict) or "project_id" not in gcp):
        raise ConfigError(
            f"Missing 'gcp.project_id' in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id\n"
            f"(or set the GCP_PROJECT environment variable)"
        )

    auth = config.get("authentication")
    if auth is None:
        # Application default credentials
        return

    if not isinstance(auth, dict):
        raise ConfigError(f"'authentication' section in config at {config_path} must be a mapping")

    if auth.get("type") != "service_account":
        raise ConfigError(
            f"Unsupported authentication type: {auth.get('type')}\n"
            f"Only 'service_account' is supported."
        )

    service_account_path = auth.get("service_account_path")
    if not service_account_path:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in config\n"
            "Please specify the absolute path to your service account JSON file."
        )

    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )


def _validate_aws(config: Dict[str, Any], config_path: str) -> None:
    aws = config.get("aws")
    if aws is not None and not isinstance(aws, dict):
        raise ConfigError(f"'aws' section in config at {config_path} must be a mapping")


def load_config() -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Returns:
        Dict containing configuration with keys:
        - backend: dict with type ("gcp" or "aws")
        - gcp / authentication: GCP project and optional service account
        - aws: optional region and profile_name
        - cache: optional cache tuning (see load_cache_config)

    Raises:
        ConfigError: If config file is invalid
        FileNotFoundError: If no config file exists
    """
    # Resolved on every call so preference changes apply immediately
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    backend = config.get("backend")
    if not isinstance(backend, dict) or "type" not in backend:
        raise ConfigError(
            f"Missing 'backend.type' in config at {config_path}\n"
            f"Required format:\n"
            f"backend:\n"
            f"  type: gcp   # or aws"
        )

    backend_type = backend["type"]
    if backend_type not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported backend type: {backend_type}\n"
            f"Supported types: {', '.join(SUPPORTED_BACKENDS)}"
        )

    if backend_type == "gcp":
        _validate_gcp(config, config_path)
    else:
        _validate_aws(config, config_path)

    # Fail at load time rather than on first lookup
    load_cache_config(config)

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using backend: {backend_type}")

    return config


def load_cache_config(config: Dict[str, Any]) -> CacheConfig:
    """
    Build a CacheConfig from the optional 'cache' section.

    Raises:
        ConfigError: If a value has the wrong type or is not positive
    """
    cache = config.get("cache") or {}
    if not isinstance(cache, dict):
        raise ConfigError("'cache' section must be a mapping")

    max_cache_size = cache.get("max_cache_size", DEFAULT_MAX_CACHE_SIZE)
    if isinstance(max_cache_size, bool) or not isinstance(max_cache_size, int) or max_cache_size < 1:
        raise ConfigError(f"'cache.max_cache_size' must be a positive integer, got {max_cache_size!r}")

    interval = cache.get("secret_refresh_interval", DEFAULT_REFRESH_INTERVAL)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError(
            f"'cache.secret_refresh_interval' must be a positive number of seconds, got {interval!r}"
        )

    default_stage = cache.get("default_version_stage")
    if default_stage is not None and not isinstance(default_stage, str):
        raise ConfigError(f"'cache.default_version_stage' must be a string, got {default_stage!r}")

    return CacheConfig(
        max_cache_size=max_cache_size,
        secret_refresh_interval=float(interval),
        default_version_stage=default_stage,
    )
