"""
Payload flattening.

Walks an arbitrary value into an ordered list of ``FlattenedField`` pairs:

- scalars (``None``, strings, numbers, booleans, dates, UUIDs, enums, paths
  and bare ``object()`` placeholders) yield exactly one field at the current
  key;
- mappings, ``Describable`` payloads, dataclasses, pydantic models and plain
  objects are walked member by member, joining names with ``_``; an object
  with nothing public to walk yields one field holding its text;
- other iterables are walked element by element as
  ``<key>#<ElementType>#<index>``.

A member that cannot be read is reported through the ``on_error`` callback
as a ``FieldReadError`` and skipped. Objects already on the current path are
emitted as ``CYCLE_MARKER`` instead of being walked again, and values nested
deeper than ``max_depth`` as ``DEPTH_MARKER``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from typing import Any, Callable, Iterator
from uuid import UUID

from pydantic import BaseModel

from .diagnostics import get_logger
from .exceptions import FieldReadError
from .types import Describable, FlattenedField

logger = get_logger(__name__)

CYCLE_MARKER = "<cycle>"
DEPTH_MARKER = "<max depth>"
MAX_DEPTH = 64

ErrorReporter = Callable[[BaseException], None]
MemberReader = Callable[[], Any]

_SCALAR_TYPES = (
    str,
    bytes,
    bytearray,
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    date,
    time,
    timedelta,
    UUID,
    Enum,
    PurePath,
)


def is_scalar(value: Any) -> bool:
    """Return True for values rendered as a single field."""
    return value is None or type(value) is object or isinstance(value, _SCALAR_TYPES)


def to_text(value: Any) -> str:
    """Best-effort string conversion; never raises."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="backslashreplace")
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def _member_key(prefix: str, name: str) -> str:
    return f"{prefix}_{name}" if prefix else name


def _element_key(prefix: str, type_name: str, index: int) -> str:
    return f"{prefix}#{type_name}#{index}" if prefix else f"{type_name}#{index}"


def _constant(value: Any) -> MemberReader:
    return lambda: value


def _attribute(obj: Any, name: str) -> MemberReader:
    return lambda: getattr(obj, name)


def _object_members(obj: Any) -> Iterator[tuple[str, MemberReader]]:
    """Public instance attributes, then public properties in class order."""
    seen: set[str] = set()
    for name in getattr(obj, "__dict__", {}):
        if not name.startswith("_"):
            seen.add(name)
            yield name, _attribute(obj, name)
    for klass in reversed(type(obj).__mro__):
        for name in getattr(klass, "__slots__", ()):
            if isinstance(name, str) and not name.startswith("_") and name not in seen:
                seen.add(name)
                yield name, _attribute(obj, name)
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and not name.startswith("_") and name not in seen:
                seen.add(name)
                yield name, _attribute(obj, name)


def _declared_members(value: Any) -> Iterator[tuple[str, MemberReader]] | None:
    """Member readers for values that declare their shape, None otherwise."""
    if isinstance(value, Describable):
        return ((str(name), _constant(member)) for name, member in value.describe_fields())
    if isinstance(value, Mapping):
        return ((to_text(key), _constant(member)) for key, member in value.items())
    if isinstance(value, BaseModel):
        names = list(type(value).model_fields) + list(type(value).model_computed_fields)
        return ((name, _attribute(value, name)) for name in names)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return ((f.name, _attribute(value, f.name)) for f in dataclasses.fields(value))
    return None


class PayloadFlattener:
    """Recursive field flattener.

    Args:
        on_error: Called with a ``FieldReadError`` (chained to the original
            failure) whenever a member cannot be read. Without it, failures
            only go to the diagnostics logger.
        max_depth: Nesting level at which a non-scalar value is emitted as
            ``DEPTH_MARKER`` instead of being walked.
    """

    def __init__(self, on_error: ErrorReporter | None = None, max_depth: int = MAX_DEPTH) -> None:
        self._on_error = on_error
        self._max_depth = max_depth

    def flatten(self, value: Any, prefix: str = "") -> list[FlattenedField]:
        """Flatten ``value`` into fields keyed under ``prefix``."""
        fields: list[FlattenedField] = []
        self._walk(value, prefix, fields, set(), 0)
        return fields

    def _walk(self, value: Any, key: str, out: list[FlattenedField], path: set[int], depth: int) -> None:
        if is_scalar(value):
            out.append(FlattenedField(key, to_text(value)))
            return

        marker = id(value)
        if marker in path:
            logger.debug("payload cycle truncated", key=key, type=type(value).__name__)
            out.append(FlattenedField(key, CYCLE_MARKER))
            return
        if depth >= self._max_depth:
            logger.debug("payload depth limit reached", key=key, type=type(value).__name__, depth=depth)
            out.append(FlattenedField(key, DEPTH_MARKER))
            return

        path.add(marker)
        try:
            try:
                members = _declared_members(value)
            except Exception as exc:
                self._report(exc, field=key or "*", owner=type(value).__name__)
                return
            if members is not None:
                self._walk_members(value, members, key, out, path, depth)
            elif isinstance(value, Iterable):
                self._walk_sequence(value, key, out, path, depth)
            elif not self._walk_members(value, _object_members(value), key, out, path, depth):
                # Nothing public to walk: compiled patterns, builtins, private state
                out.append(FlattenedField(key, to_text(value)))
        finally:
            path.discard(marker)

    def _walk_sequence(
        self, value: Iterable[Any], key: str, out: list[FlattenedField], path: set[int], depth: int
    ) -> None:
        index = 0
        try:
            for element in value:
                self._walk(element, _element_key(key, type(element).__name__, index), out, path, depth + 1)
                index += 1
        except Exception as exc:
            self._report(exc, field=_element_key(key, "?", index), owner=type(value).__name__)

    def _walk_members(
        self,
        value: Any,
        members: Iterator[tuple[str, MemberReader]],
        key: str,
        out: list[FlattenedField],
        path: set[int],
        depth: int,
    ) -> int:
        """Walk each member; return how many were enumerated."""
        owner = type(value).__name__
        count = 0
        try:
            for name, read in members:
                count += 1
                try:
                    member = read()
                except Exception as exc:
                    self._report(exc, field=_member_key(key, name), owner=owner)
                    continue
                self._walk(member, _member_key(key, name), out, path, depth + 1)
        except Exception as exc:
            # Enumeration itself failed; keep what was already collected
            self._report(exc, field=key or "*", owner=owner)
        return count

    def _report(self, exc: Exception, *, field: str, owner: str) -> None:
        try:
            raise FieldReadError(field=field, owner=owner) from exc
        except FieldReadError as err:
            if self._on_error is None:
                logger.warning("payload field unreadable", field=field, owner=owner, error=repr(exc))
                return
            try:
                self._on_error(err)
            except Exception:
                logger.exception("field read failure could not be reported", field=field, owner=owner)


def flatten(value: Any, prefix: str = "", on_error: ErrorReporter | None = None) -> list[FlattenedField]:
    """Flatten ``value`` with a one-off ``PayloadFlattener``."""
    return PayloadFlattener(on_error=on_error).flatten(value, prefix)
