import questionary
from config import (
    load_config, validate_config, update_config,
    apply_config_profile, list_profiles, reset_to_defaults,
    CONFIG_SCHEMA
)
from utils.logger import log_error, log_success


def config_menu(config: dict) -> dict:
    """
    Display the configuration menu and handle user selections.
    Returns the potentially updated config dict.
    """
    while True:
        choice = questionary.select(
            "⚙️ Config Menu — What would you like to do?",
            choices=[
                "View current config",
                "Update a setting",
                "Switch refresh profile",
                "Reset to defaults",
                "Validate configuration",
                "Back"
            ]
        ).ask()

        if choice == "View current config":
            view_config(config)

        elif choice == "Update a setting":
            config = update_setting_menu(config)

        elif choice == "Switch refresh profile":
            config = switch_profile_menu(config)

        elif choice == "Reset to defaults":
            config = reset_config_menu(config)

        elif choice == "Validate configuration":
            validate_config_menu(config)

        else:
            break

    return config


def view_config(config: dict):
    """Display the current configuration in a readable format."""
    print("\n" + "=" * 50)
    print("📋 Current Configuration")
    print("=" * 50)

    categories = {
        "Spotify App": ["spotify_client_id", "spotify_redirect_uri", "spotify_scopes"],
        "Polling": ["refresh_interval_ms", "request_timeout", "profile"],
        "Redirect Listener": ["callback_listener_enabled", "callback_timeout"],
        "Storage": ["state_file"],
    }

    for category, keys in categories.items():
        print(f"\n{category}:")
        for key in keys:
            if key in config:
                value = config[key]
                if isinstance(value, bool):
                    value = "✓ Enabled" if value else "✗ Disabled"
                elif isinstance(value, list):
                    value = ", ".join(str(v) for v in value)
                print(f"  {key}: {value}")

    print("\n" + "=" * 50)
    input("\nPress Enter to continue...")


def update_setting_menu(config: dict) -> dict:
    """Menu to update individual settings."""
    editable_keys = [k for k in CONFIG_SCHEMA.keys() if CONFIG_SCHEMA[k].get("type") is not list]
    editable_keys.append("Back")

    key = questionary.select(
        "Select setting to update:",
        choices=editable_keys
    ).ask()

    if key in (None, "Back"):
        return config

    schema = CONFIG_SCHEMA.get(key, {})
    current_value = config.get(key, "Not set")

    print(f"\nCurrent value: {current_value}")

    if "choices" in schema:
        new_value = questionary.select(
            f"Select new value for {key}:",
            choices=schema["choices"]
        ).ask()

    elif schema.get("type") == bool:
        new_value = questionary.confirm(
            f"Enable {key}?",
            default=current_value if isinstance(current_value, bool) else True
        ).ask()

    elif schema.get("type") in [int, (int, float)]:
        min_val = schema.get("min", 0)
        max_val = schema.get("max", 9999)
        new_value_str = questionary.text(
            f"Enter new value for {key} ({min_val}-{max_val}):",
            default=str(current_value) if current_value != "Not set" else ""
        ).ask()

        try:
            if schema.get("type") == int:
                new_value = int(new_value_str)
            else:
                new_value = float(new_value_str)
        except (TypeError, ValueError):
            log_error("Invalid number format")
            return config

    else:
        new_value = questionary.text(
            f"Enter new value for {key}:",
            default=str(current_value) if current_value != "Not set" else ""
        ).ask()
        new_value = (new_value or "").strip()

    success, message = update_config(key, new_value)

    if success:
        log_success(message)
        config[key] = new_value
    else:
        log_error(message)

    return config


def switch_profile_menu(config: dict) -> dict:
    """Menu to switch between refresh profiles."""
    profiles = list_profiles()

    print("\n📋 Available Profiles:\n")

    for name, settings in profiles.items():
        current = " (current)" if config.get("profile") == name else ""
        print(f"  {name}{current}:")
        for key, value in settings.items():
            print(f"    - {key}: {value}")
        print()

    choice = questionary.select(
        "Select profile to apply:",
        choices=list(profiles.keys()) + ["Back"]
    ).ask()

    if choice in (None, "Back"):
        return config

    success, message = apply_config_profile(choice)

    if success:
        log_success(message)
        config = load_config()
    else:
        log_error(message)

    return config


def reset_config_menu(config: dict) -> dict:
    """Menu to reset configuration to defaults."""
    confirm = questionary.confirm(
        "⚠️ Reset all settings to defaults? Your Client ID is kept.",
        default=False
    ).ask()

    if confirm:
        success, message = reset_to_defaults()

        if success:
            log_success(message)
            config = load_config()
        else:
            log_error(message)

    return config


def validate_config_menu(config: dict):
    """Validate the current configuration and show any errors."""
    is_valid, errors = validate_config(config)

    print("\n" + "=" * 50)
    print("🔍 Configuration Validation")
    print("=" * 50)

    if is_valid:
        log_success("Configuration is valid! ✓")
    else:
        log_error("Configuration has errors:")
        for error in errors:
            print(f"  ✗ {error}")

    print("=" * 50)
    input("\nPress Enter to continue...")
