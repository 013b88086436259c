# logging_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Level shared by every logger handed out by get_logger, see set_log_level
log_level = "INFO"
_loggers = {}


def get_logger(name: str):
    # Create a logger object.
    logger = logging.getLogger(name)

    # Set the log level.
    logger.setLevel(log_level)

    # Loggers are module-level singletons, only attach the handler once
    if name in _loggers:
        return logger

    # Create a stream handler that logs to stdout.
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(stream_handler)
    _loggers[name] = (logger, stream_handler)

    # Optional: output logging to specified file
    # file_handler = logging.FileHandler('pokedex-locations.log')
    # file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    # logger.addHandler(file_handler)

    return logger


def set_log_level(level: str) -> None:
    """Apply ``level`` to every logger created so far and to those created later."""
    global log_level
    log_level = level.upper()
    for logger, stream_handler in _loggers.values():
        logger.setLevel(log_level)
        stream_handler.setLevel(log_level)
