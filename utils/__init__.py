from utils.logger import setup_logging, log_info, log_success, log_warning, log_error
from utils.formatting import format_ms, describe_snapshot

__all__ = [
    "setup_logging",
    "log_info",
    "log_success",
    "log_warning",
    "log_error",
    "format_ms",
    "describe_snapshot",
]
