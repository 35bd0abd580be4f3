"""Caller location lookup, modelled on logging.Logger.findCaller.

Frames that belong to this package are skipped so the result does not depend
on how many internal calls sit between the user and the renderer.
"""

import functools
import os
import sys

_PACKAGE_DIR = os.path.dirname(os.path.normcase(os.path.abspath(__file__)))


@functools.lru_cache(maxsize=256)
def _is_internal(filename: str) -> bool:
    path = os.path.normcase(os.path.abspath(filename))
    return os.path.dirname(path) == _PACKAGE_DIR


def caller_location(skip: int = 0) -> tuple[str, str, int]:
    """Return ``(function, file, line)`` for the first frame outside the
    package, moved *skip* frames further up the stack.

    Returns ``("", "", 0)`` when the stack is not that deep.
    """
    frame = sys._getframe(1)
    while frame is not None and _is_internal(frame.f_code.co_filename):
        frame = frame.f_back
    while frame is not None and skip > 0:
        frame = frame.f_back
        skip -= 1
    if frame is None:
        return "", "", 0

    code = frame.f_code
    name = getattr(code, "co_qualname", code.co_name)
    module = frame.f_globals.get("__name__")
    if module:
        name = f"{module}.{name}"
    return name, code.co_filename, frame.f_lineno
