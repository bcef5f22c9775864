import sys
import os
if hasattr(sys.stdout, 'reconfigure'):
    sys.stdout.reconfigure(encoding='utf-8')
from colorama import Fore, Style


import logging
import queue
import threading
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
import platform

log_queue = queue.Queue()
log_listener = None
log_lock = threading.Lock()

# Handlers created inside the queue listener (captured so we can adjust levels at runtime)
_console_handler = None
_file_handler = None

_pending_console_level = None  # used if a level is set before the first logger initializes handlers
_saved_controls_applied_once = False

# ========================
# 1. Configure Logger
# ========================
GLOBAL_LOG_LEVEL = logging.DEBUG


class SafeFormatter(logging.Formatter):
    def format(self, record):
        # If the record does not have 'user_id', set it to a default value.
        if 'user_id' not in record.__dict__:
            record.__dict__['user_id'] = "-"
        return super().format(record)


LOG_FORMATTER = SafeFormatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(user_id)s - %(message)s'
)


class UnicodeStreamHandler(logging.StreamHandler):
    """Custom StreamHandler that explicitly handles Unicode characters"""
    def __init__(self, stream=None):
        super().__init__(stream)
        self.encoding = 'utf-8'

    def emit(self, record):
        try:
            msg = self.format(record)
            stream = self.stream
            if hasattr(stream, 'buffer'):
                # For sys.stdout/stderr
                stream.buffer.write((msg + self.terminator).encode(self.encoding))
                stream.buffer.flush()
            else:
                stream.write(msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def ensure_logs_directory():
    """Ensure the logs directory exists"""
    logs_dir = os.path.join(os.getcwd(), 'logs')
    if not os.path.exists(logs_dir):
        os.makedirs(logs_dir)
    return logs_dir


def setup_logger(name, level=None, log_file="sleeplog.log"):
    global log_listener, _console_handler, _file_handler, _saved_controls_applied_once

    # Apply the configured console threshold once per process.
    # The flag is set first: loading the config creates loggers of its own.
    if not _saved_controls_applied_once:
        _saved_controls_applied_once = True
        apply_saved_logging_controls()

    logs_dir = ensure_logs_directory()
    if not os.path.isabs(log_file):
        # Process-specific suffix avoids file locking conflicts between processes
        base_name, ext = os.path.splitext(log_file)
        process_id = os.getpid()
        log_file = os.path.join(logs_dir, f"{base_name}_{process_id}{ext}")

    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else GLOBAL_LOG_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        queue_handler = QueueHandler(log_queue)
        logger.addHandler(queue_handler)

    with log_lock:
        if log_listener is None:
            # Use larger file size on Windows to avoid rotation issues
            if platform.system() == 'Windows':
                file_handler = RotatingFileHandler(log_file, maxBytes=10485760, backupCount=2, encoding='utf-8', delay=True)
            else:
                file_handler = RotatingFileHandler(log_file, maxBytes=1048576, backupCount=3, encoding='utf-8', delay=True)
            file_handler.setFormatter(LOG_FORMATTER)

            console_handler = UnicodeStreamHandler(sys.stdout)
            console_handler.setFormatter(LOG_FORMATTER)
            if _pending_console_level is not None:
                console_handler.setLevel(_pending_console_level)

            _file_handler = file_handler
            _console_handler = console_handler

            log_listener = QueueListener(log_queue, file_handler, console_handler)
            log_listener.start()

    return logger


def get_logger(name: str, level=None, log_file="sleeplog.log"):
    """
    Returns a module-specific logger that adheres to the global configuration.
    All log files will be written to the /logs subfolder.
    """
    return setup_logger(name, level, log_file)


# ========================
# 2. Runtime Logging Controls
# ========================
def _normalize_level(level_name):
    """
    Convert a string level to logging level int.
    Special case: "OFF" returns None.
    """
    if level_name is None:
        raise ValueError("level_name cannot be None")

    if isinstance(level_name, int):
        return level_name

    s = str(level_name).strip().upper()
    if s in ("OFF", "DISABLED", "NONE"):
        return None
    if s in ("CRITICAL", "FATAL"):
        return logging.CRITICAL
    if s == "ERROR":
        return logging.ERROR
    if s in ("WARN", "WARNING"):
        return logging.WARNING
    if s == "INFO":
        return logging.INFO
    if s == "DEBUG":
        return logging.DEBUG
    if s == "NOTSET":
        return logging.NOTSET
    raise ValueError(f"Unknown log level: {level_name!r}")


def set_console_level(level_name):
    """
    Set the console handler threshold at runtime.
    If handlers aren't initialized yet, stores a pending level.
    """
    global _pending_console_level
    level = _normalize_level(level_name)
    if level is None:
        # "OFF" doesn't make sense for handler level; treat as CRITICAL+1
        level = logging.CRITICAL + 1

    with log_lock:
        if _console_handler is None:
            _pending_console_level = level
            return
        _console_handler.setLevel(level)


def apply_saved_logging_controls():
    """
    Load the console threshold from the sleep tracking config and apply it.
    Safe to call multiple times.
    """
    try:
        from sleeplog.configs.sleep_config import SleepConfig
        set_console_level(SleepConfig().console_log_level())
    except Exception:
        # A missing or broken config must never stop logging from starting
        return


def stop_logging():
    """Flush queued records and stop the listener thread."""
    global log_listener
    with log_lock:
        if log_listener is not None:
            log_listener.stop()
            log_listener = None


def log_standout_text(logger, content, title=None, color=Fore.LIGHTMAGENTA_EX):
    """
    Logs standout content at INFO level, optionally with a coloured title.
    """
    formatted_title = f"{color}{title}{Style.RESET_ALL}" if title else ""
    formatted_content = f"{color}{content}{Style.RESET_ALL}"
    message = f"{formatted_title}\n{formatted_content}" if title else formatted_content
    logger.info(message)
