"""Matching a thrown object against exception handlers."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .memory import Memory
from .typeinfo import TypeInfo

Pointer = Optional[int]


def catch(
    handler_type: Optional[TypeInfo],
    thrown_type: TypeInfo,
    thrown_ptr: Pointer,
    memory: Optional[Memory] = None,
) -> Tuple[bool, Pointer]:
    """Return whether a handler catches the thrown object, and the pointer it receives.

    ``handler_type`` of ``None`` is a catch-all handler, which receives the
    address of the exception object itself.  When the handler does not match
    the thrown pointer is returned unchanged.
    """
    if handler_type is None:
        return True, thrown_ptr
    matched, adjusted = handler_type.can_catch(thrown_type, thrown_ptr, memory)
    if matched:
        return True, adjusted
    return False, thrown_ptr


def find_handler(
    handlers: Iterable[Optional[TypeInfo]],
    thrown_type: TypeInfo,
    thrown_ptr: Pointer,
    memory: Optional[Memory] = None,
) -> Optional[Tuple[int, Pointer]]:
    """Return the index of the first handler that catches, with its adjusted pointer.

    Returns ``None`` when no handler matches.
    """
    for index, handler_type in enumerate(handlers):
        matched, adjusted = catch(handler_type, thrown_type, thrown_ptr, memory)
        if matched:
            return index, adjusted
    return None