import copy
import logging
import os

import yaml

from gameshelf.constants import CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def _merge_defaults(settings):
    # Deep merge with defaults so new sections/keys are always present
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in settings.items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force and config_file is None:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}
        settings = _merge_defaults(settings)
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w") as yaml_file:
            yaml.dump(settings, yaml_file)

    _cached_settings = settings
    return settings


def save_settings(settings, config_file=None):
    config_file = config_file or CONFIG_FILE
    os.makedirs(os.path.dirname(config_file), exist_ok=True)
    with open(config_file, "w") as yaml_file:
        yaml.dump(settings, yaml_file)
    reload_conf(config_file=config_file)


def get_igdb_settings(settings=None):
    """IGDB section with environment overrides applied"""
    settings = settings or load_settings()
    igdb = dict(settings.get("igdb", {}))
    if os.environ.get("IGDB_CLIENT_ID"):
        igdb["client_id"] = os.environ["IGDB_CLIENT_ID"]
    if os.environ.get("IGDB_CLIENT_SECRET"):
        igdb["client_secret"] = os.environ["IGDB_CLIENT_SECRET"]
    return igdb


def verify_settings(section, data):
    success = True
    errors = []
    if section == "backup":
        keep = data.get("keep")
        if not isinstance(keep, int) or keep < 1:
            success = False
            errors.append({"path": "backup/keep", "error": "keep must be a positive integer."})
    elif section == "maintenance":
        hour = data.get("reminder_hour", 9)
        if not isinstance(hour, int) or not 0 <= hour <= 23:
            success = False
            errors.append({"path": "maintenance/reminder_hour", "error": f"Invalid hour {hour}."})
        days = data.get("reminder_days_before", 7)
        if not isinstance(days, int) or days < 1:
            success = False
            errors.append({"path": "maintenance/reminder_days_before", "error": f"Invalid day count {days}."})
        limit = data.get("history_limit", 50)
        if not isinstance(limit, int) or limit < 1:
            success = False
            errors.append({"path": "maintenance/history_limit", "error": f"Invalid history size {limit}."})
    return success, errors


def set_section_settings(section, data, config_file=None):
    settings = load_settings(config_file=config_file)
    merged = {**settings.get(section, {}), **data}
    success, errors = verify_settings(section, merged)
    if not success:
        return success, errors
    settings[section] = merged
    save_settings(settings, config_file=config_file)
    return success, errors


def reload_conf(config_file=None):
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True, config_file=config_file)
