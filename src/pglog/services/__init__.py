"""Services package.

Keep this module lightweight: importing `pglog.services` should not pull in
pyarrow or pandas. The scan engine is loaded on first use.
"""

from __future__ import annotations

import importlib

from .event_sinks import EventSinks
from .logger import get_logger, setup_logging

__all__ = ["EventSinks", "get_logger", "setup_logging"]


_LAZY_EXPORTS = {
    # Write path
    "EventSpooler": ("pglog.services.spool", "EventSpooler"),
    "SpoolLogHandler": ("pglog.services.spool", "SpoolLogHandler"),
    "init_spooling": ("pglog.services.spool", "init_spooling"),
    "shutdown_spooling": ("pglog.services.spool", "shutdown_spooling"),
    # Read path
    "FileCatalog": ("pglog.services.scan", "FileCatalog"),
    "ScanCursor": ("pglog.services.scan", "ScanCursor"),
    "CostEstimator": ("pglog.services.scan", "CostEstimator"),
    "LogRelation": ("pglog.services.scan", "LogRelation"),
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module_name, attr = _LAZY_EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        if name not in __all__:
            __all__.append(name)
        return value
    raise AttributeError(f"module 'pglog.services' has no attribute {name!r}")
