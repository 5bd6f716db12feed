import json
import os
from typing import Any, Dict, Optional

CONFIG_PATH = "config.json"

# Default configuration values
DEFAULT_CONFIG = {
    # Spotify Web API (OAuth PKCE)
    # NOTE: spotify_client_id must be set before authenticating; there is no built-in fallback.
    "spotify_client_id": "",
    "spotify_redirect_uri": "http://127.0.0.1:8888/callback",
    "spotify_scopes": [
        "user-read-playback-state",
        "user-modify-playback-state",
        "user-read-currently-playing",
    ],

    # Polling
    "refresh_interval_ms": 1000,
    "request_timeout": 5,

    # Redirect channel
    "callback_listener_enabled": True,
    "callback_timeout": 120,

    # Durable state (token, expiry, pending verifier)
    "state_file": "data/widget_state.json",

    "profile": "balanced",
}

# Profile definitions
CONFIG_PROFILES = {
    "responsive": {
        "refresh_interval_ms": 500,
        "request_timeout": 5,
    },
    "balanced": {
        "refresh_interval_ms": 1000,
        "request_timeout": 5,
    },
    "battery": {
        "refresh_interval_ms": 5000,
        "request_timeout": 10,
    },
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "spotify_client_id": {"type": str, "required": False},
    "spotify_redirect_uri": {"type": str, "required": True},
    "spotify_scopes": {"type": list, "required": False, "element_type": str},

    # 500 ms is the documented floor but nothing below it is rejected.
    "refresh_interval_ms": {"type": int, "required": True, "min": 1, "max": 600000},
    "request_timeout": {"type": (int, float), "required": False, "min": 1, "max": 60},

    "callback_listener_enabled": {"type": bool, "required": False},
    "callback_timeout": {"type": int, "required": False, "min": 10, "max": 3600},

    "state_file": {"type": str, "required": True},
    "profile": {"type": str, "required": False, "choices": list(CONFIG_PROFILES.keys())},
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from file, applying defaults for missing fields."""
    path = path or CONFIG_PATH
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file {path} not found.")

    with open(path, "r", encoding="utf-8") as f:
        config = json.load(f)

    # Apply defaults for missing fields
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = value

    return config


def load_or_create_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the config, writing the defaults first if the file does not exist yet."""
    path = path or CONFIG_PATH
    if not os.path.exists(path):
        save_config(DEFAULT_CONFIG.copy(), path)
    return load_config(path)


def save_config(config: Dict[str, Any], path: Optional[str] = None) -> bool:
    """Save configuration to file."""
    try:
        with open(path or CONFIG_PATH, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except Exception as e:
        raise IOError(f"Failed to save config: {e}")


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        # Check required fields
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        # Type check (bool is an int subclass; don't let True pass as a number)
        expected_type = rules.get("type")
        if expected_type and (
            not isinstance(value, expected_type) or (isinstance(value, bool) and expected_type is not bool)
        ):
            type_names = expected_type.__name__ if not isinstance(expected_type, tuple) else "/".join(t.__name__ for t in expected_type)
            errors.append(f"Field '{key}' must be {type_names}, got {type(value).__name__}")
            continue

        # List element type check (when schema uses: {"type": list, "element_type": ...})
        if isinstance(value, list) and "element_type" in rules:
            elem_type = rules["element_type"]
            bad_elems = [v for v in value if not isinstance(v, elem_type)]
            if bad_elems:
                errors.append(
                    f"Field '{key}' must be a list of {elem_type.__name__}, got invalid elements: {bad_elems}"
                )
                continue

        # Choices check
        if "choices" in rules and value not in rules["choices"]:
            errors.append(f"Field '{key}' must be one of {rules['choices']}, got '{value}'")

        # Range check for numeric values
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"Field '{key}' must be >= {rules['min']}, got {value}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"Field '{key}' must be <= {rules['max']}, got {value}")

    return len(errors) == 0, errors


def update_config(key: str, value: Any, path: Optional[str] = None) -> tuple[bool, str]:
    """
    Update a single config field with validation.
    Returns (success, message).
    """
    config = load_config(path)

    # Check if key is valid
    if key not in CONFIG_SCHEMA:
        return False, f"Unknown config key: {key}"

    # Create temporary config with new value
    test_config = config.copy()
    test_config[key] = value

    # Validate the change
    is_valid, errors = validate_config(test_config)
    if not is_valid:
        return False, f"Validation failed: {', '.join(errors)}"

    # Save the updated config
    config[key] = value
    save_config(config, path)

    return True, f"Updated '{key}' to '{value}'"


def apply_config_profile(profile_name: str, path: Optional[str] = None) -> tuple[bool, str]:
    """
    Apply a configuration profile, updating relevant settings.
    Returns (success, message).
    """
    if profile_name not in CONFIG_PROFILES:
        return False, f"Unknown profile: {profile_name}. Available: {list(CONFIG_PROFILES.keys())}"

    config = load_config(path)

    for key, value in CONFIG_PROFILES[profile_name].items():
        config[key] = value

    config["profile"] = profile_name

    is_valid, errors = validate_config(config)
    if not is_valid:
        return False, f"Profile validation failed: {', '.join(errors)}"

    save_config(config, path)
    return True, f"Applied profile '{profile_name}' successfully"


def list_profiles() -> Dict[str, Dict[str, Any]]:
    """Return all available profiles and their settings."""
    return CONFIG_PROFILES.copy()


def reset_to_defaults(path: Optional[str] = None) -> tuple[bool, str]:
    """Reset configuration to default values, keeping the client id."""
    try:
        current = load_config(path) if os.path.exists(path or CONFIG_PATH) else {}
        config = DEFAULT_CONFIG.copy()
        config["spotify_client_id"] = current.get("spotify_client_id", "")
        save_config(config, path)
        return True, "Configuration reset to defaults"
    except Exception as e:
        return False, f"Failed to reset config: {e}"
