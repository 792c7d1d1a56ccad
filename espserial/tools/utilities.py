"""
Helpers shared by the test phases.
"""

import functools
import logging
from typing import Callable


def log_exceptions(func: Callable) -> Callable:
    """
    Log an exception escaping ``func`` with its traceback, then re-raise.

    The record goes to the logger of the module defining ``func``, so a
    failing phase of DeviceTestRunner is reported under ``espserial.runner``.

    Example:
        >>> @log_exceptions
        ... def run_led_control_test(self):
        ...     self.session.send_command('LED_GREEN_ON')
    """
    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error("Exception in %s: %s", func.__name__, e, exc_info=True)
            raise

    return wrapper
