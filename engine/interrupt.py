"""Shared cancellation flag for long-running scans.

Checked between files, never in the middle of one, and cleared when a new
search starts.  Safe to set from another thread or a signal handler while a
scan runs.
"""

import threading

_interrupt_event = threading.Event()


def set_interrupt(active: bool) -> None:
    if active:
        _interrupt_event.set()
    else:
        _interrupt_event.clear()


def is_interrupted() -> bool:
    return _interrupt_event.is_set()
