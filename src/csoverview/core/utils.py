"""
Utility functions for csoverview.

This module provides:
- Performance timing decorator and context manager
- Lenient value parsing for decoder fields and server convars
- Rate validation and rounding
"""

import logging
import math
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar("F", bound=Callable[..., Any])


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time.

    Usage:
        @timed
        def my_function():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.info(f"{func.__name__} completed in {elapsed:.3f}s")
        return result

    return wrapper  # type: ignore


class PerformanceMonitor:
    """
    Context manager for monitoring performance of code blocks.

    Usage:
        with PerformanceMonitor("parsing demo"):
            build_match(...)
    """

    def __init__(self, operation_name: str, log_level: int = logging.INFO):
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.perf_counter() - (self.start_time or 0)
        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {elapsed:.3f}s: {exc_val}")
        else:
            logger.log(self.log_level, f"{self.operation_name} completed in {elapsed:.3f}s")
        return False


def safe_float(value: Any, default: float = 0.0) -> float:
    """Convert a value to a finite float, returning ``default`` otherwise."""
    if value is None:
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def safe_int(value: Any, default: int = 0) -> int:
    """Convert a value to int, returning ``default`` otherwise."""
    if value is None:
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return int(result)


def safe_bool(value: Any, default: bool = False) -> bool:
    """Convert a value to bool; NaN and None read as ``default``."""
    if value is None:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    return bool(value)


def safe_str(value: Any, default: str = "") -> str:
    """Convert a value to string; NaN and None read as ``default``."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return default
    return str(value)


def is_valid_rate(rate: float | None) -> bool:
    """A frame or tick rate is usable when it is a positive, finite number."""
    if rate is None:
        return False
    try:
        value = float(rate)
    except (ValueError, TypeError):
        return False
    return not math.isnan(value) and not math.isinf(value) and value > 0


def round_half_up(value: float) -> int:
    """Round a positive rate to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))
