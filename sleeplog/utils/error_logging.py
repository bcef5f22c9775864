"""
Banner logging for failures that must stand out in the log file.
"""

import traceback
from typing import Optional
from sleeplog.utils.logging_config import get_logger

logger = get_logger(__name__)

WIDTH = 80


def _emit(log, title: str, rule: str, context: Optional[str], body):
    lines = ["", rule * WIDTH, f"{title:^{WIDTH}}", rule * WIDTH]
    if context:
        lines.append(f"CONTEXT: {context}")
    lines.extend(body)
    lines.extend([rule * WIDTH, ""])
    # One record per line so interleaved handlers keep the banner readable
    for line in lines:
        log(line)


def log_critical_error(context: str, message: str, exception: Optional[Exception] = None):
    """
    Banner for a failed database operation. With an exception, its type and the
    active traceback are included.

    Args:
        context: Where it happened (e.g., "sleep_db.run_atomic")
        message: What failed
        exception: The caught exception, if any
    """
    body = [f"MESSAGE: {message}"]
    if exception is not None:
        body.append(f"EXCEPTION: {type(exception).__name__}: {exception}")
        body.append("TRACEBACK:")
        body.append(traceback.format_exc())
    _emit(logger.error, "ERROR", "*", context, body)


def log_warning_banner(message: str, context: Optional[str] = None):
    _emit(logger.warning, "WARNING", "!", context, [f"MESSAGE: {message}"])
