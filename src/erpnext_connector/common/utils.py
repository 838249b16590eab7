from __future__ import annotations

import importlib
import socket
from typing import Any


def is_connected_to_internet(host: str = "google.com", port: int = 443, timeout: float = 3.0) -> bool:
    """Best-effort reachability check; never raises."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def load_object(path: str) -> Any:
    """Resolve a ``package.module:attribute`` string."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected 'module:attribute', got {path!r}")
    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj
