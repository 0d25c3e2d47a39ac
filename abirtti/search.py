"""Walks of the inheritance graph that locate the static and destination subobjects."""

from __future__ import annotations

from typing import Optional

from .memory import Memory
from .typeinfo import (
    BaseClassTypeInfo,
    ClassTypeInfo,
    Derivation,
    DynamicCastInfo,
    Path,
    Pointer,
    SiClassTypeInfo,
    VmiClassTypeInfo,
    is_equal,
)


def _require_class(type_info) -> ClassTypeInfo:
    if not isinstance(type_info, ClassTypeInfo):
        raise TypeError(f"{type_info!r} does not describe a class")
    return type_info


def _base_path(base: BaseClassTypeInfo, path_below: Path) -> Path:
    if base.offset_flags & BaseClassTypeInfo.PUBLIC_MASK:
        return path_below
    return Path.NOT_PUBLIC


def _base_ptr(base: BaseClassTypeInfo, current_ptr: Pointer, memory: Optional[Memory]) -> int:
    return current_ptr + base.base_offset(current_ptr, memory)


def _search_above_base(base, info, dst_ptr, current_ptr, path_below, use_strcmp, memory):
    search_above_dst(
        base.base_type,
        info,
        dst_ptr,
        _base_ptr(base, current_ptr, memory),
        _base_path(base, path_below),
        use_strcmp,
        memory,
    )


def _search_below_base(base, info, current_ptr, path_below, use_strcmp, memory):
    search_below_dst(
        base.base_type,
        info,
        _base_ptr(base, current_ptr, memory),
        _base_path(base, path_below),
        use_strcmp,
        memory,
    )


def process_static_type_above_dst(
    info: DynamicCastInfo, dst_ptr: Pointer, current_ptr: Pointer, path_below: Path
) -> None:
    """Record reaching a static-type node above a destination node."""
    info.found_any_static_type = True
    if current_ptr != info.static_ptr:
        return
    info.found_our_static_ptr = True
    if info.dst_ptr_leading_to_static_ptr is None:
        info.dst_ptr_leading_to_static_ptr = dst_ptr
        info.path_dst_ptr_to_static_ptr = path_below
        info.number_to_static_ptr = 1
        if info.number_of_dst_type == 1 and info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
            info.search_done = True
    elif info.dst_ptr_leading_to_static_ptr == dst_ptr:
        if info.path_dst_ptr_to_static_ptr == Path.NOT_PUBLIC:
            info.path_dst_ptr_to_static_ptr = path_below
        if info.number_of_dst_type == 1 and info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
            info.search_done = True
    else:
        info.number_to_static_ptr += 1
        info.search_done = True


def process_static_type_below_dst(
    info: DynamicCastInfo, current_ptr: Pointer, path_below: Path
) -> None:
    """Record the most public path from the complete object to the static subobject."""
    if current_ptr == info.static_ptr and info.path_dynamic_ptr_to_static_ptr != Path.PUBLIC:
        info.path_dynamic_ptr_to_static_ptr = path_below


def search_above_dst(
    type_info: ClassTypeInfo,
    info: DynamicCastInfo,
    dst_ptr: Pointer,
    current_ptr: Pointer,
    path_below: Path,
    use_strcmp: bool = False,
    memory: Optional[Memory] = None,
) -> None:
    """Search above a destination node for a path to the static subobject."""
    type_info = _require_class(type_info)
    if is_equal(type_info, info.static_type, use_strcmp):
        process_static_type_above_dst(info, dst_ptr, current_ptr, path_below)
        return
    if isinstance(type_info, VmiClassTypeInfo):
        _vmi_search_above(type_info, info, dst_ptr, current_ptr, path_below, use_strcmp, memory)
    elif isinstance(type_info, SiClassTypeInfo):
        search_above_dst(
            type_info.base_type, info, dst_ptr, current_ptr, path_below, use_strcmp, memory
        )


def _vmi_search_above(type_info, info, dst_ptr, current_ptr, path_below, use_strcmp, memory):
    saved_our = info.found_our_static_ptr
    saved_any = info.found_any_static_type
    first, *rest = type_info.base_info
    info.found_our_static_ptr = False
    info.found_any_static_type = False
    _search_above_base(first, info, dst_ptr, current_ptr, path_below, use_strcmp, memory)
    for base in rest:
        if info.search_done:
            break
        if info.found_our_static_ptr:
            if info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
                break
            if not type_info.flags & VmiClassTypeInfo.DIAMOND_SHAPED_MASK:
                break
        elif info.found_any_static_type:
            if not type_info.flags & VmiClassTypeInfo.NON_DIAMOND_REPEAT_MASK:
                break
        info.found_our_static_ptr = False
        info.found_any_static_type = False
        _search_above_base(base, info, dst_ptr, current_ptr, path_below, use_strcmp, memory)
    info.found_our_static_ptr = saved_our
    info.found_any_static_type = saved_any


def _record_dst_not_leading(info: DynamicCastInfo, current_ptr: Pointer) -> None:
    info.dst_ptr_not_leading_to_static_ptr = current_ptr
    info.number_to_dst_ptr += 1
    if info.number_to_static_ptr == 1 and info.path_dst_ptr_to_static_ptr == Path.NOT_PUBLIC:
        info.search_done = True


def search_below_dst(
    type_info: ClassTypeInfo,
    info: DynamicCastInfo,
    current_ptr: Pointer,
    path_below: Path,
    use_strcmp: bool = False,
    memory: Optional[Memory] = None,
) -> None:
    """Search from the complete object for the static subobject and destination nodes."""
    type_info = _require_class(type_info)
    if is_equal(type_info, info.static_type, use_strcmp):
        process_static_type_below_dst(info, current_ptr, path_below)
    elif is_equal(type_info, info.dst_type, use_strcmp):
        _reach_dst(type_info, info, current_ptr, path_below, use_strcmp, memory)
    elif isinstance(type_info, VmiClassTypeInfo):
        _vmi_search_below(type_info, info, current_ptr, path_below, use_strcmp, memory)
    elif isinstance(type_info, SiClassTypeInfo):
        search_below_dst(type_info.base_type, info, current_ptr, path_below, use_strcmp, memory)


def _reach_dst(type_info, info, current_ptr, path_below, use_strcmp, memory):
    if current_ptr in (info.dst_ptr_leading_to_static_ptr, info.dst_ptr_not_leading_to_static_ptr):
        if path_below == Path.PUBLIC:
            info.path_dynamic_ptr_to_dst_ptr = Path.PUBLIC
        return
    info.path_dynamic_ptr_to_dst_ptr = path_below
    if isinstance(type_info, VmiClassTypeInfo):
        bases = type_info.base_info
    elif isinstance(type_info, SiClassTypeInfo):
        bases = None
    else:
        _record_dst_not_leading(info, current_ptr)
        info.is_dst_type_derived_from_static_type = Derivation.NO
        return
    if info.is_dst_type_derived_from_static_type == Derivation.NO:
        return

    derived = False
    points_to_ours = False
    if bases is None:
        info.found_our_static_ptr = False
        info.found_any_static_type = False
        search_above_dst(
            type_info.base_type, info, current_ptr, current_ptr, Path.PUBLIC, use_strcmp, memory
        )
        if info.found_any_static_type:
            derived = True
            points_to_ours = info.found_our_static_ptr
    else:
        for base in bases:
            info.found_our_static_ptr = False
            info.found_any_static_type = False
            _search_above_base(
                base, info, current_ptr, current_ptr, Path.PUBLIC, use_strcmp, memory
            )
            if info.search_done:
                break
            if not info.found_any_static_type:
                continue
            derived = True
            if info.found_our_static_ptr:
                points_to_ours = True
                if info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
                    break
                if not type_info.flags & VmiClassTypeInfo.DIAMOND_SHAPED_MASK:
                    break
            elif not type_info.flags & VmiClassTypeInfo.NON_DIAMOND_REPEAT_MASK:
                break
    if not points_to_ours:
        _record_dst_not_leading(info, current_ptr)
    info.is_dst_type_derived_from_static_type = Derivation.YES if derived else Derivation.NO


def _vmi_search_below(type_info, info, current_ptr, path_below, use_strcmp, memory):
    first, *rest = type_info.base_info
    _search_below_base(first, info, current_ptr, path_below, use_strcmp, memory)
    if not rest:
        return
    flags = type_info.flags
    if flags & VmiClassTypeInfo.DIAMOND_SHAPED_MASK or info.number_to_static_ptr == 1:
        def stop() -> bool:
            return info.search_done
    elif flags & VmiClassTypeInfo.NON_DIAMOND_REPEAT_MASK:
        def stop() -> bool:
            return info.search_done or (
                info.number_to_static_ptr == 1
                and info.path_dst_ptr_to_static_ptr == Path.PUBLIC
            )
    else:
        def stop() -> bool:
            return info.search_done or info.number_to_static_ptr == 1
    for base in rest:
        if stop():
            break
        _search_below_base(base, info, current_ptr, path_below, use_strcmp, memory)