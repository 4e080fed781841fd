"""Resolve ``module:attribute`` targets into dispatchers."""

import importlib
import sys
from pathlib import Path

from dispatchkit.services.dispatcher import Dispatcher


class TargetError(Exception):
    """Raised when a CLI target cannot be imported or is not a dispatcher."""


def load_dispatcher(target: str, app_dir: Path | None = None) -> Dispatcher:
    """Import ``module:attr`` and return the dispatcher it names.

    ``attr`` may be a ``Dispatcher`` or a zero-argument callable returning
    one; the callable is where startup errors surface.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise TargetError(f"Target must look like 'module:attribute', got '{target}'")

    search_dir = str((app_dir or Path.cwd()).resolve())
    if search_dir not in sys.path:
        sys.path.insert(0, search_dir)

    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetError(f"Cannot import module '{module_name}': {e}") from e

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise TargetError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from e

    if not isinstance(obj, Dispatcher) and callable(obj):
        obj = obj()

    if not isinstance(obj, Dispatcher):
        raise TargetError(
            f"'{target}' is a {type(obj).__name__}, expected a Dispatcher "
            "or a factory returning one"
        )
    return obj
