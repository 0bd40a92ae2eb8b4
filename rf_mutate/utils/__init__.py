"""Utility functions for logging and report output."""
from rf_mutate.utils.logging_utils import set_rf_mutate_logger_level

__all__ = ["set_rf_mutate_logger_level"]
