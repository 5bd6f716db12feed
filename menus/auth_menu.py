import time
import webbrowser

import questionary

from managers.callback_server import RedirectReceiver
from spotify_api.auth import (
    AuthenticationError,
    AuthSessionExpired,
    ConfigurationError,
    SpotifyPKCEAuth,
    check_spotify_credentials,
    code_from_user_input,
    get_redirect_uri,
    spotify_app_setup_instructions,
)
from utils.logger import log_info, log_success, log_warning, log_error


def spotify_setup_help(config: dict) -> None:
    creds = check_spotify_credentials(config)
    log_info("\n" + "=" * 72)
    log_info("SPOTIFY WEB API SETUP")
    log_info("=" * 72)
    log_info(spotify_app_setup_instructions(redirect_uri=creds.get("redirect_uri") or get_redirect_uri(config)))
    log_info("Current config status:")
    log_info(f"- spotify_client_id: {'SET' if creds.get('client_id') else 'NOT SET'}")
    log_info(f"- spotify_redirect_uri: {creds.get('redirect_uri') or ''}")
    log_info(f"- spotify_scopes: {', '.join(creds.get('scopes') or [])}")
    log_info("")
    if not creds.get("ok"):
        log_warning(creds.get("message") or "Spotify credentials are incomplete.")
    else:
        log_info(creds.get("message") or "Spotify credentials look OK.")
    log_info("=" * 72 + "\n")


def token_status(session) -> str:
    if not session.access_token:
        return "No stored Spotify token found."
    if session.expires_at is None:
        return "Token stored: YES | Expiry unknown (re-authenticate)"
    expired = time.time() >= session.expires_at
    exp_str = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(float(session.expires_at)))
    return f"Token stored: YES | Expired: {'YES' if expired else 'NO'} | Expires at: {exp_str}"


def _start_redirect_receiver(auth: SpotifyPKCEAuth):
    config = auth.config
    if not config.get("callback_listener_enabled", True):
        return None

    def on_redirect(url: str) -> bool:
        credential = auth.handle_callback(url)
        exp_str = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(float(credential.expires_at)))
        log_success(f"Spotify authentication successful (redirect). Token expires at: {exp_str}")
        return True

    try:
        receiver = RedirectReceiver(
            get_redirect_uri(config),
            on_redirect,
            timeout=float(config.get("callback_timeout", 120)),
        )
        receiver.start()
        return receiver
    except (OSError, ValueError) as e:
        log_warning(f"Redirect listener unavailable ({e}); paste the code manually instead.")
        return None


def authenticate_menu(auth: SpotifyPKCEAuth) -> bool:
    """Run the interactive PKCE flow. Returns True when a new token was stored."""

    config = auth.config
    creds = check_spotify_credentials(config)
    if not creds.get("ok"):
        log_error(creds.get("message") or "Spotify credentials are incomplete.")
        spotify_setup_help(config)
        return False

    try:
        auth_url = auth.begin_auth()
    except ConfigurationError as e:
        log_error(str(e))
        return False

    receiver = _start_redirect_receiver(auth)

    log_info("\n" + "=" * 72)
    log_info("SPOTIFY AUTHENTICATION")
    log_info("=" * 72)
    log_info("1) A browser login will open (or you can copy/paste the URL).")
    log_info("2) After approving, Spotify redirects back to the widget automatically.")
    log_info("3) If that does not work, paste the code (or the full redirect URL) here.")
    log_info("")
    log_info(f"Authorize URL:\n{auth_url}")
    log_info("=" * 72)

    try:
        if questionary.confirm("Open Spotify login in your default browser?", default=True).ask():
            try:
                webbrowser.open(auth_url)
            except webbrowser.Error as e:
                log_warning(f"Could not open a browser: {e}")

        pasted = questionary.text(
            "Paste the authorization code or redirect URL (leave empty if the browser already finished):"
        ).ask()
        pasted = (pasted or "").strip()

        if pasted:
            try:
                credential = auth.complete_auth(code_from_user_input(pasted))
            except AuthSessionExpired as e:
                if receiver is not None and receiver.succeeded:
                    log_info("Already authenticated through the browser redirect.")
                    return True
                log_error(str(e))
                return False
            except AuthenticationError as e:
                log_error(f"Authentication failed: {e}")
                return False

            exp_str = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(float(credential.expires_at)))
            log_success(f"Successfully authenticated with Spotify! Token expires at: {exp_str}")
            return True

        if receiver is None:
            log_warning("No authorization code provided. Cancelling auth.")
            return False

        if receiver.received_url is None:
            log_info("Waiting for the browser redirect...")
        receiver.wait(float(config.get("callback_timeout", 120)))
        if receiver.received_url is None:
            log_warning("Timed out waiting for the Spotify redirect. Run authentication again.")
            return False
        return receiver.succeeded
    finally:
        if receiver is not None:
            receiver.stop()


def sign_out_menu(auth: SpotifyPKCEAuth) -> None:
    if questionary.confirm("Remove the stored Spotify token?", default=False).ask():
        auth.sign_out()
        log_success("Signed out of Spotify.")
