import logging
import os

LOG_DIR = "logs"
LOG_FILE = os.path.join(LOG_DIR, "widget.log")

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_logger = logging.getLogger("spotify_widget")


def setup_logging(level: int = logging.INFO, *, log_file: str = LOG_FILE) -> logging.Logger:
    """Configure console + file logging for the widget.

    Library modules log through ``logging.getLogger(__name__)``; the root logger
    picks those up too, so both end up in the same file.
    """
    root = logging.getLogger()
    if getattr(root, "_spotify_widget_configured", False):
        return _logger

    root.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console)

    try:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(file_handler)
    except OSError as e:
        _logger.warning(f"File logging disabled: {e}")

    root._spotify_widget_configured = True
    return _logger


def log_info(message: str):
    _logger.info(message)


def log_success(message: str):
    _logger.log(SUCCESS, f"✅ {message}")


def log_warning(message: str):
    _logger.warning(f"⚠️ {message}")


def log_error(message: str):
    _logger.error(f"❌ {message}")
