"""
Configuration - Loto Bonheur
============================

Settings come from config/config.ini, with environment variables (loaded
from .env when python-dotenv finds one) taking precedence.
"""

import configparser
import os
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))
CONFIG_PATH = os.path.join(PROJECT_ROOT, 'config', 'config.ini')

DEFAULTS = {
    'paths': {
        'database_file': 'data/lotobonheur.db',
    },
    'api': {
        'host': '0.0.0.0',
        'port': '8000',
        'log_level': 'info',
    },
    'predictions': {
        'history_limit': '300',
        'diversity_min_distance': '3',
        'include_color': 'false',
    },
    'loader': {
        'results_url': 'https://lotobonheur.ci/api/results',
        'referer': 'https://lotobonheur.ci/resultats',
        'timeout': '10',
    },
}

# Environment variables that override a config.ini value
ENV_OVERRIDES = {
    ('paths', 'database_file'): 'LOTO_DB_PATH',
    ('api', 'host'): 'HOST',
    ('api', 'port'): 'PORT',
    ('api', 'log_level'): 'LOG_LEVEL',
    ('loader', 'results_url'): 'LOTO_RESULTS_URL',
}

ADMIN_API_KEY_ENV = 'LOTO_ADMIN_API_KEY'

load_dotenv()


def get_config(config_path: Optional[str] = None) -> configparser.ConfigParser:
    """Read config.ini on top of the built-in defaults."""
    config = configparser.ConfigParser()
    config.read_dict(DEFAULTS)
    path = config_path or CONFIG_PATH
    try:
        if not config.read(path):
            logger.warning(f"Config file not found at {path}, using defaults")
    except configparser.Error as e:
        logger.error(f"Error reading config file {path}: {e}. Using defaults.")
    return config


def get_setting(section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
    env_name = ENV_OVERRIDES.get((section, key))
    if env_name and os.getenv(env_name):
        return os.getenv(env_name)
    return get_config().get(section, key, fallback=fallback)


def get_int_setting(section: str, key: str, fallback: int) -> int:
    value = get_setting(section, key)
    try:
        return int(value) if value is not None else fallback
    except ValueError:
        logger.warning(f"Invalid integer for [{section}] {key}: {value!r}, using {fallback}")
        return fallback


def get_bool_setting(section: str, key: str, fallback: bool = False) -> bool:
    value = get_setting(section, key)
    if value is None:
        return fallback
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


def get_admin_api_key() -> Optional[str]:
    return os.getenv(ADMIN_API_KEY_ENV)
