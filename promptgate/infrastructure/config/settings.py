"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.promptgate/config.yaml). The YAML file may be nested;
keys are addressed with dots (e.g. 'rate_limit.requests_per_minute').
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from promptgate.domain.models.config import ClientConfig, RateLimitConfig

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".promptgate"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "PROMPTGATE_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, reload: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to `get_config`

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        reload: Discard previously loaded values and load again.
    """
    global _config, _loaded
    if _loaded and not reload:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment variables are read lazily by get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")

def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested mappings into dotted keys."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat

def _coerce_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except ValueError:
        return value

def env_var_names(key: str) -> tuple:
    """Environment variable names checked for a key, in priority order."""
    env_key = key.upper().replace('.', '_')
    return (f"{ENV_PREFIX}{env_key}", env_key)

def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (PROMPTGATE_<KEY> then <KEY>, dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'retry.max_attempts'.
        default: Default value if the key is not found.

    Returns:
        The configuration value.
    """
    if key in _test_config:
        return _test_config[key]

    for env_key in env_var_names(key):
        if env_key in os.environ:
            return _coerce_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default

def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_openai_api_key() -> Optional[str]:
    """Convenience function to get the OpenAI API key."""
    key = get_config('openai.api_key')
    return str(key) if key is not None else None

def get_default_model() -> Optional[str]:
    model = get_config('openai.model')
    return str(model) if model is not None else None

def build_client_config() -> ClientConfig:
    """Assembles a ClientConfig from the loaded settings.

    Values are passed through unvalidated; `ConfigValidator` range-checks
    them when the client is constructed.
    """
    rate_limit = RateLimitConfig(
        requests_per_minute=get_config('rate_limit.requests_per_minute'),
        tokens_per_minute=get_config('rate_limit.tokens_per_minute'),
    )
    window = get_config('rate_limit.window')
    if window is not None:
        rate_limit.window = window
    poll_interval = get_config('rate_limit.poll_interval')
    if poll_interval is not None:
        rate_limit.poll_interval = poll_interval

    return ClientConfig(
        api_key=get_openai_api_key(),
        default_model=get_default_model(),
        default_temperature=get_config('openai.temperature'),
        system_message=get_config('openai.system_message'),
        max_tokens=get_config('openai.max_tokens'),
        base_url=get_config('openai.base_url'),
        organization=get_config('openai.organization'),
        timeout=get_config('openai.timeout'),
        rate_limit=rate_limit,
        request_delay=get_config('throttle.request_delay'),
        use_jitter=get_config('throttle.use_jitter'),
        jitter_factor=get_config('throttle.jitter_factor'),
        enable_retry=get_config('retry.enabled'),
        max_retry_attempts=get_config('retry.max_attempts'),
        base_retry_delay=get_config('retry.base_delay'),
        max_retry_delay=get_config('retry.max_delay'),
        tokenizer=get_config('tokenizer.encoding'),
    )

def set_config(key: str, value: Any) -> None:
    """Sets a configuration value in memory for the current process.

    Args:
        key: Configuration key (e.g., 'logging.level')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

# Load configuration when the module is imported
load_configuration()
