# config_loader.py

import os
import re
import yaml
from typing import Dict, Any

from sleeplog.utils.logging_config import get_logger
logger = get_logger(__name__)

config_cache: Dict[str, Dict[str, Any]] = {}

_ENV_VAR = re.compile(r'\$\{(\w+)\}')


def load_config(config_path: str, force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads a YAML configuration file, replaces ${VAR_NAME} with environment
    variables (empty string if unset), and caches the result per path.

    An empty file yields {}. Raises if the file cannot be read or parsed.
    """
    config_path = str(config_path)
    if not force_reload and config_path in config_cache:
        logger.debug(f"Configuration loaded from cache: {config_path}")
        return config_cache[config_path]

    try:
        with open(config_path, 'r', encoding='utf-8') as file:
            content = _ENV_VAR.sub(lambda m: os.environ.get(m.group(1), ''), file.read())
        config = yaml.safe_load(content) or {}
        if not isinstance(config, dict):
            raise ValueError(f"Top level of {config_path} must be a mapping")
        config_cache[config_path] = config
        logger.info(f"Configuration loaded and cached: {config_path}")
        return config
    except Exception as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        raise
