# rf_mutate/utils/logging_utils.py
import logging

LOG_FORMAT = '[%(asctime)s][%(name)s][%(levelname)s] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def set_rf_mutate_logger_level(debug_logging: bool, logger_name: str = "rf_mutate") -> logging.Logger:
    """Configure the package logger; every module logger is a child of it."""
    logger = logging.getLogger(logger_name)
    level = logging.DEBUG if debug_logging else logging.INFO
    logger.setLevel(level)
    # Ensure a StreamHandler is attached for console output
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
    for h in logger.handlers:
        h.setLevel(level)
    logger.propagate = True  # Let logs reach root logger for caplog
    return logger
