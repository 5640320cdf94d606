"""
Reusable decorators for timing and exception logging.
"""
import time
import logging
from functools import wraps
from typing import Optional, Type

from exceptions import CflpError

def log_and_time(phase_name: Optional[str] = None, error_cls: Type[BaseException] = CflpError):
    """
    Logs start/end/duration and logs exceptions with stack traces.
    Project errors are rethrown unchanged; anything else is rethrown as error_cls.
    """
    def outer(func):
        @wraps(func)
        def inner(*args, **kwargs):
            logger = logging.getLogger(func.__module__)
            name = phase_name or func.__name__
            t0 = time.perf_counter()
            logger.info(f"▶️ {name} start")
            try:
                result = func(*args, **kwargs)
            except CflpError as e:
                dt = time.perf_counter() - t0
                logger.error(f"❌ {name} failed after {dt:.3f}s: {e}")
                raise
            except Exception as e:
                dt = time.perf_counter() - t0
                logger.exception(f"❌ {name} failed after {dt:.3f}s: {e}")
                raise error_cls(f"{name} failed: {e}") from e
            dt = time.perf_counter() - t0
            logger.info(f"✅ {name} done in {dt:.3f}s")
            return result
        return inner
    return outer
