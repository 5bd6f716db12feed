import json

from config import load_or_create_config
from utils.logger import setup_logging, log_info, log_error, log_success
from managers.command_relay import NEXT, PLAY_PAUSE, PREVIOUS, send_command
from menus.main_menu import main_menu
from menus.auth_menu import authenticate_menu, sign_out_menu, token_status
from menus.widget_menu import show_widget
from menus.config_menu import config_menu
from spotify_api.auth import SpotifyPKCEAuth
from spotify_api.session import WidgetSession

CONTROL_CHOICES = {
    "Play / Pause": PLAY_PAUSE,
    "Next track": NEXT,
    "Previous track": PREVIOUS,
}


def main() -> int:
    setup_logging()

    try:
        config = load_or_create_config()
    except json.JSONDecodeError as e:
        log_error(f"Config file contains invalid JSON: {e}")
        return 1
    except Exception as e:
        log_error(f"Error loading config: {e}")
        return 1

    session = WidgetSession.from_config(config)
    auth = SpotifyPKCEAuth(session)
    log_info("Spotify Widget is ready")

    while True:
        choice = main_menu()

        if choice == "Show widget":
            show_widget(session)

        elif choice == "Authenticate with Spotify":
            authenticate_menu(auth)

        elif choice in CONTROL_CHOICES:
            if send_command(CONTROL_CHOICES[choice]):
                log_success(f"Sent {choice}")
            else:
                log_error("Failed to control Spotify. Make sure Spotify is running on a supported platform.")

        elif choice == "Token status":
            log_info(token_status(session))

        elif choice == "Sign out":
            sign_out_menu(auth)

        elif choice == "Config Menu":
            state_file = config.get("state_file")
            config = config_menu(config)
            if config.get("state_file") != state_file:
                session = WidgetSession.from_config(config)
                auth = SpotifyPKCEAuth(session)
            else:
                session.config = config

        elif choice == "Exit":
            log_info("Exiting program...")
            break

        else:
            log_error("Invalid choice.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
