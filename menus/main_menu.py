import questionary

MAIN_MENU_CHOICES = [
    "Show widget",
    "Authenticate with Spotify",
    "Play / Pause",
    "Next track",
    "Previous track",
    "Token status",
    "Sign out",
    "Config Menu",
    "Exit",
]


def main_menu() -> str:
    """Show the top-level menu and return the selected entry."""
    return questionary.select(
        "🎵 Spotify Widget — What would you like to do?",
        choices=MAIN_MENU_CHOICES,
    ).ask() or "Exit"
