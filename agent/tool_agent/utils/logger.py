"""
Logger setup module for the Tool Agent.
Provides functions to configure named loggers from configuration values.
"""
import os
import logging
import logging.handlers
import tempfile
from typing import Optional, Dict, Tuple, Any

DEFAULT_CONSOLE_LEVEL_NAME = 'INFO'
DEFAULT_FILE_LEVEL_NAME = 'DEBUG'
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
FALLBACK_LOG_DIR_NAME = "ToolAgent"

_loggers: Dict[str, logging.Logger] = {}


def _get_log_level(level_name: str, default_level: int = logging.INFO) -> int:
    """
    Convert a log level name to the logging level constant.

    :param level_name: Name of the log level (e.g., 'debug' or 'DEBUG')
    :type level_name: str
    :param default_level: Level used when level_name is not a known level
    :type default_level: int
    :return: The corresponding logging level constant
    :rtype: int
    """
    level = logging.getLevelName(str(level_name).upper())
    if isinstance(level, int):
        return level
    logging.warning(f"Invalid log level name '{level_name}'. Using default level {logging.getLevelName(default_level)}.")
    return default_level


def _check_directory_writable(directory_path: str) -> Tuple[bool, str]:
    """
    Check that a directory exists (creating it if needed) and is writable.

    :param directory_path: Path to the directory to check
    :type directory_path: str
    :return: Tuple (is_writable, message)
    :rtype: Tuple[bool, str]
    """
    if not directory_path:
        return False, "Directory path is empty"

    try:
        os.makedirs(directory_path, exist_ok=True)
    except OSError as e:
        return False, f"Error creating directory {directory_path}: {e}"

    if not os.path.isdir(directory_path):
        return False, f"{directory_path} exists but is not a directory"

    test_file = os.path.join(directory_path, f".log_writetest_{os.getpid()}")
    try:
        with open(test_file, 'w') as f:
            f.write('test')
        os.remove(test_file)
        return True, f"Directory {directory_path} is writable"
    except OSError as e:
        return False, f"Cannot write to directory {directory_path}: {e}"


def _get_fallback_log_directory() -> str:
    """
    Get a log directory under the system temp directory.

    :return: Path to the fallback log directory
    :rtype: str
    """
    return os.path.join(tempfile.gettempdir(), FALLBACK_LOG_DIR_NAME, "logs")


def get_file_logging_status() -> Dict[str, Any]:
    """
    Describe the rotating file handlers attached to the registered loggers.

    :return: Dictionary with file logging diagnostics
    :rtype: Dict[str, Any]
    """
    result: Dict[str, Any] = {
        "file_logging_enabled": False,
        "log_files": [],
    }

    for logger_name, registered in _loggers.items():
        for handler in registered.handlers:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                continue
            result["file_logging_enabled"] = True
            log_path = handler.baseFilename
            exists = os.path.exists(log_path)
            result["log_files"].append({
                "path": log_path,
                "logger": logger_name,
                "level": logging.getLevelName(handler.level),
                "exists": exists,
                "size_bytes": os.path.getsize(log_path) if exists else 0,
                "max_bytes": handler.maxBytes,
                "backup_count": handler.backupCount
            })

    return result


def setup_logger(
    name: str = "tool_agent",
    log_format: str = DEFAULT_LOG_FORMAT,
    console_level_name: str = DEFAULT_CONSOLE_LEVEL_NAME,
    file_level_name: str = DEFAULT_FILE_LEVEL_NAME,
    log_file_path: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT
) -> logging.Logger:
    """
    Sets up and configures a logger instance.

    Calling this again for an already registered name replaces its handlers,
    so a logger created early with defaults can be reconfigured once the
    configuration file has been read.

    :param name: The name for the logger
    :type name: str
    :param log_format: The format string for log messages
    :type log_format: str
    :param console_level_name: Logging level for console output
    :type console_level_name: str
    :param file_level_name: Logging level for file output
    :type file_level_name: str
    :param log_file_path: Path to the log file. If None, file logging is disabled
    :type log_file_path: Optional[str]
    :param max_bytes: Maximum size of the log file before rotation
    :type max_bytes: int
    :param backup_count: Number of rotated log files to keep
    :type backup_count: int
    :return: The configured logger instance
    :rtype: logging.Logger
    """
    logger = logging.getLogger(name)
    console_level = _get_log_level(console_level_name, logging.INFO)
    file_level = _get_log_level(file_level_name, logging.DEBUG)
    logger.setLevel(min(console_level, file_level) if log_file_path else console_level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path) or os.getcwd()
        is_writable, msg = _check_directory_writable(log_dir)
        if not is_writable:
            fallback_dir = _get_fallback_log_directory()
            logger.warning(f"Cannot use log directory: {msg}. Falling back to {fallback_dir}")
            is_writable, msg = _check_directory_writable(fallback_dir)
            if is_writable:
                log_file_path = os.path.join(fallback_dir, os.path.basename(log_file_path))
            else:
                logger.error(f"Cannot use fallback log directory either: {msg}. File logging will be disabled.")
                log_file_path = None

        if log_file_path:
            try:
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file_path,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding='utf-8'
                )
                file_handler.setLevel(file_level)
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
                logger.info(f"File logging enabled to: {log_file_path}")
            except OSError as e:
                logger.error(f"Failed to set up file logging to {log_file_path}: {e}")

    _loggers[name] = logger
    return logger


def get_logger(name: str = "tool_agent") -> logging.Logger:
    """
    Get a logger by name.

    Module loggers are children of the ``tool_agent`` logger, so they are
    plain ``logging.getLogger`` instances that propagate to whatever handlers
    :func:`setup_logger` attached to the root package logger.

    :param name: The name of the logger to retrieve
    :type name: str
    :return: The logger instance
    :rtype: logging.Logger
    """
    if name in _loggers:
        return _loggers[name]
    return logging.getLogger(name)
