"""JSON value encoder that appends straight into a caller-owned bytearray.

This is not a general JSON library. Values are resolved in a fixed order:

1. ``marshal_json()`` capability, rendered as a quoted string.
2. ``marshal_text()`` capability, rendered as a quoted string.
3. A ``__str__`` of the value's own (not the one a builtin kind provides),
   rendered as a quoted string.
4. The structural kind of the value (None, bool, int, float, complex, str,
   bytes, mapping, record, sequence, weak reference, opaque object).

A failing capability never raises: the exception text is rendered in place
of the value.
"""

import dataclasses
import math
import re
import threading
import types
import weakref
from collections import abc

_QUOTE = b'"'
_OPAQUE = (
    types.ModuleType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    threading.Thread,
)

# __str__ implementations that only mean "I am a builtin kind".
_PLAIN_STR = frozenset(
    kind.__str__
    for kind in (
        object, bool, int, float, complex, str, bytes, bytearray,
        list, tuple, dict, set, frozenset, range, memoryview,
    )
)

_ESCAPE_RE = re.compile('[\x00-\x1f"\\\\\ud800-\udfff]')
_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _escape_char(match) -> str:
    ch = match.group()
    esc = _ESCAPES.get(ch)
    if esc is not None:
        return esc
    code = ord(ch)
    if code < 0x20:
        return "\\u00%02x" % code
    # Lone surrogate: either a broken str or an invalid byte from append_bytes.
    return "\\ufffd"


def append_string(buf: bytearray, text: str) -> None:
    """Append *text* JSON-escaped, without the surrounding quotes."""
    buf += _ESCAPE_RE.sub(_escape_char, text).encode("utf-8")


def append_bytes(buf: bytearray, data) -> None:
    """Append UTF-8 *data* JSON-escaped; each invalid byte becomes \\ufffd."""
    append_string(buf, bytes(data).decode("utf-8", "surrogateescape"))


def append_value(buf: bytearray, value) -> None:
    """Append the JSON rendering of *value* to *buf*."""
    _append(buf, value, set())


def error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _float_text(value: float) -> str:
    text = repr(value)
    if text.endswith(".0"):
        return text[:-2]
    return text


def _append_quoted_text(buf, text):
    buf += _QUOTE
    append_string(buf, text)
    buf += _QUOTE


def _append_marshaled(buf, method):
    buf += _QUOTE
    try:
        body = method()
    except Exception as exc:
        append_string(buf, error_text(exc))
    else:
        if isinstance(body, (bytes, bytearray, memoryview)):
            append_bytes(buf, body)
        else:
            append_string(buf, str(body))
    buf += _QUOTE


def _close(buf, mark, closer):
    # Every element is followed by ",", so the last separator becomes the
    # closing byte; an empty container just gets the closer appended.
    if len(buf) > mark:
        buf[-1] = closer
    else:
        buf.append(closer)


def _record_fields(value):
    if dataclasses.is_dataclass(value):
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    if isinstance(value, tuple):
        return list(zip(value._fields, value))
    return list(vars(value).items())


def _append(buf: bytearray, value, active: set) -> None:
    kind = type(value)
    if value is None:
        buf += b'""'
        return
    # Exact builtin scalars carry no capabilities; skip the lookups for them.
    if kind is str:
        _append_quoted_text(buf, value)
        return
    if kind is bool:
        buf += b"true" if value else b"false"
        return
    if kind is int:
        buf += str(value).encode("ascii")
        return

    if not isinstance(value, type):
        method = getattr(value, "marshal_json", None)
        if callable(method):
            _append_marshaled(buf, method)
            return
        method = getattr(value, "marshal_text", None)
        if callable(method):
            _append_marshaled(buf, method)
            return
        if kind.__str__ not in _PLAIN_STR:
            _append_marshaled(buf, value.__str__)
            return

    if isinstance(value, bool):
        buf += b"true" if value else b"false"
    elif isinstance(value, int):
        buf += str(int(value)).encode("ascii")
    elif isinstance(value, float):
        if math.isfinite(value):
            buf += _float_text(float(value)).encode("ascii")
        elif math.isnan(value):
            buf += b'"NaN"'
        else:
            buf += b'"+Inf"' if value > 0 else b'"-Inf"'
    elif isinstance(value, complex):
        text = "%s+%si" % (_float_text(value.real), _float_text(value.imag))
        _append_quoted_text(buf, text)
    elif isinstance(value, str):
        _append_quoted_text(buf, str(value))
    elif isinstance(value, (bytes, bytearray, memoryview)):
        buf += _QUOTE
        append_bytes(buf, value)
        buf += _QUOTE
    elif isinstance(value, weakref.ref):
        _append(buf, value(), active)
    elif isinstance(value, abc.Mapping):
        _append_container(buf, value, active, _append_mapping)
    elif _is_declared_record(value):
        _append_container(buf, value, active, _append_record)
    elif isinstance(value, (abc.Sequence, abc.Set, abc.ValuesView)):
        _append_container(buf, value, active, _append_sequence)
    elif _is_plain_object(value):
        _append_container(buf, value, active, _append_record)
    else:
        buf += b'"0x%x"' % id(value)


def _is_declared_record(value) -> bool:
    """Dataclass instances and named tuples."""
    if isinstance(value, type):
        return False
    if dataclasses.is_dataclass(value):
        return True
    return isinstance(value, tuple) and hasattr(value, "_fields")


def _is_plain_object(value) -> bool:
    if isinstance(value, type) or callable(value) or isinstance(value, _OPAQUE):
        return False
    return hasattr(value, "__dict__")


def _append_container(buf, value, active, writer):
    ident = id(value)
    if ident in active:
        buf += b'"<cycle>"'
        return
    active.add(ident)
    try:
        writer(buf, value, active)
    finally:
        active.discard(ident)


def _append_sequence(buf, value, active):
    buf += b"["
    mark = len(buf)
    for item in value:
        _append(buf, item, active)
        buf += b","
    _close(buf, mark, 0x5D)


def _append_mapping(buf, value, active):
    buf += b"{"
    mark = len(buf)
    for key, item in value.items():
        _append_key(buf, key, active)
        buf += b":"
        _append(buf, item, active)
        buf += b","
    _close(buf, mark, 0x7D)


def _append_record(buf, value, active):
    buf += b"{"
    mark = len(buf)
    for name, item in _record_fields(value):
        if name.startswith("_"):
            continue
        _append_quoted_text(buf, name)
        buf += b":"
        _append(buf, item, active)
        buf += b","
    _close(buf, mark, 0x7D)


def _append_key(buf, key, active):
    if isinstance(key, str):
        _append_quoted_text(buf, key)
        return
    scratch = bytearray()
    _append(scratch, key, active)
    if scratch[:1] == _QUOTE:
        buf += scratch
    else:
        _append_quoted_text(buf, scratch.decode("utf-8"))
