"""
Context utilities to inject the run ID and problem variant into log records.
"""
import logging
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional

run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)
variant_var: ContextVar[Optional[str]] = ContextVar("variant", default=None)

def set_context(run_id: Optional[str] = None, variant: Optional[str] = None) -> None:
    if run_id is not None:
        run_id_var.set(str(run_id))
    if variant is not None:
        variant_var.set(str(variant))

def clear_context() -> None:
    run_id_var.set(None)
    variant_var.set(None)

class LogContextFilter(logging.Filter):
    """
    Adds contextvars to LogRecord so formatters can print them.
    """
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get() or "-"
        record.variant = variant_var.get() or "-"
        return True

@contextmanager
def run_context(run_id: str, variant: Optional[str] = None):
    prev_run, prev_variant = run_id_var.get(), variant_var.get()
    try:
        set_context(run_id, variant)
        yield
    finally:
        run_id_var.set(prev_run)
        variant_var.set(prev_variant)
