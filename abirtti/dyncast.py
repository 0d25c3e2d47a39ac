"""Checked down-casts and cross-casts between polymorphic class subobjects."""

from __future__ import annotations

from typing import Any, Optional

from .errors import BadCast, BadTypeid
from .memory import Memory
from .search import search_above_dst, search_below_dst
from .typeinfo import ClassTypeInfo, DynamicCastInfo, Path, Pointer, is_equal


def dynamic_cast(
    memory: Memory,
    static_ptr: Pointer,
    static_type: ClassTypeInfo,
    dst_type: ClassTypeInfo,
    src2dst_offset: int = -1,
) -> Pointer:
    """Cast the ``static_type`` subobject at ``static_ptr`` to ``dst_type``.

    Returns the address of the ``dst_type`` subobject, or ``None`` when the
    cast fails because the destination is absent, ambiguous or reachable
    only through a non-public path.  ``src2dst_offset`` is a hint that is
    accepted but not used.  A null ``static_ptr`` casts to null.
    """
    if static_ptr is None:
        return None
    dynamic_ptr, dynamic_type = memory.dynamic_type(static_ptr)
    info = DynamicCastInfo(
        dst_type=dst_type,
        static_ptr=static_ptr,
        static_type=static_type,
        src2dst_offset=src2dst_offset,
    )

    if is_equal(dynamic_type, dst_type, False):
        # The complete object is the destination: only the path to the
        # static subobject needs checking.
        info.number_of_dst_type = 1
        search_above_dst(
            dynamic_type, info, dynamic_ptr, dynamic_ptr, Path.PUBLIC, False, memory
        )
        if info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
            return dynamic_ptr
        return None

    search_below_dst(dynamic_type, info, dynamic_ptr, Path.PUBLIC, False, memory)
    public_from_top = (
        info.path_dynamic_ptr_to_static_ptr == Path.PUBLIC
        and info.path_dynamic_ptr_to_dst_ptr == Path.PUBLIC
    )
    if info.number_to_static_ptr == 0:
        if info.number_to_dst_ptr == 1 and public_from_top:
            return info.dst_ptr_not_leading_to_static_ptr
    elif info.number_to_static_ptr == 1:
        if info.path_dst_ptr_to_static_ptr == Path.PUBLIC or (
            info.number_to_dst_ptr == 0 and public_from_top
        ):
            return info.dst_ptr_leading_to_static_ptr
    return None


def dynamic_cast_ref(
    memory: Memory,
    static_ptr: Pointer,
    static_type: ClassTypeInfo,
    dst_type: ClassTypeInfo,
    src2dst_offset: int = -1,
) -> int:
    """Like :func:`dynamic_cast`, but raise :class:`BadCast` instead of returning null."""
    result = dynamic_cast(memory, static_ptr, static_type, dst_type, src2dst_offset)
    if result is None:
        raise BadCast()
    return result


def typeid_of(memory: Memory, ptr: Optional[int]) -> Any:
    """Return the dynamic type of the polymorphic object at ``ptr``.

    Raises :class:`BadTypeid` when ``ptr`` is null.
    """
    if ptr is None:
        raise BadTypeid()
    _, dynamic_type = memory.dynamic_type(ptr)
    return dynamic_type