from constants import *
import copy
import yaml
import os

import logging

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def merge_settings(settings):
    """Deep merge a settings dict over the defaults, section by section"""
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (settings or {}).items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}

        # Deep merge with defaults to ensure new keys are present
        settings = merge_settings(settings)

    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w") as yaml_file:
            yaml.dump(settings, yaml_file)

    _cached_settings = settings
    return settings


def verify_settings(section, data, plugin_ids=None):
    success = True
    errors = []
    if section == "oai":
        path = data.get("path", "")
        if not path or not path.startswith("/"):
            success = False
            errors.append({"path": "oai/path", "error": f"Path {path!r} must start with '/'."})

        expiration = data.get("expiration")
        if not isinstance(expiration, int) or isinstance(expiration, bool) or expiration <= 0:
            success = False
            errors.append({"path": "oai/expiration", "error": "Expiration must be a positive number of seconds."})

        email = data.get("admin_email") or ""
        if "@" not in email:
            success = False
            errors.append({"path": "oai/admin_email", "error": f"{email!r} is not an e-mail address."})

        if plugin_ids is not None:
            for prefix, plugin_id in (data.get("metadata_map") or {}).items():
                if plugin_id not in plugin_ids:
                    success = False
                    errors.append({
                        "path": "oai/metadata_map",
                        "error": f"Plugin {plugin_id} for {prefix} is not registered.",
                    })
    return success, errors


def save_settings(settings, config_file=None):
    config_file = config_file or CONFIG_FILE
    with open(config_file, "w") as yaml_file:
        yaml.dump(settings, yaml_file)
    return reload_conf(config_file=config_file)


def set_metadata_map(prefix, plugin_id, config_file=None):
    """Map a metadataPrefix to a metadata format plugin"""
    settings = load_settings(force=True, config_file=config_file)
    settings["oai"].setdefault("metadata_map", {})[prefix] = plugin_id
    return save_settings(settings, config_file=config_file)


def remove_metadata_map(prefix, config_file=None):
    settings = load_settings(force=True, config_file=config_file)
    metadata_map = settings["oai"].get("metadata_map") or {}
    if prefix not in metadata_map:
        return False
    del metadata_map[prefix]
    save_settings(settings, config_file=config_file)
    return True


def reload_conf(config_file=None):
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True, config_file=config_file)
