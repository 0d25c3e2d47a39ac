"""Type descriptors and the rules deciding whether a handler catches a thrown type."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .memory import Memory

Pointer = Optional[int]
CatchResult = Tuple[bool, Pointer]


class Path(enum.IntEnum):
    """Access of a path through the inheritance graph."""

    UNKNOWN = 0
    PUBLIC = 1
    NOT_PUBLIC = 2


class Derivation(enum.IntEnum):
    """Whether the destination type is known to derive from the static type."""

    UNKNOWN = 0
    YES = 3
    NO = 4


def is_equal(x: "TypeInfo", y: "TypeInfo", use_strcmp: bool) -> bool:
    """Compare descriptors by identity, or by name when ``use_strcmp`` is set."""
    if not use_strcmp:
        return x is y
    return x.name == y.name


@dataclass(eq=False)
class TypeInfo(ABC):
    """A type descriptor identified by its mangled name."""

    name: str

    @abstractmethod
    def can_catch(
        self, thrown_type: "TypeInfo", adjusted_ptr: Pointer, memory: Optional[Memory] = None
    ) -> CatchResult:
        """Return whether a handler of this type catches ``thrown_type``, and the adjusted pointer."""


@dataclass(eq=False)
class FundamentalTypeInfo(TypeInfo):
    """A built-in type."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        return is_equal(self, thrown_type, False), adjusted_ptr


NULLPTR_TYPE = FundamentalTypeInfo("Dn")
VOID_TYPE = FundamentalTypeInfo("v")


@dataclass(eq=False)
class ArrayTypeInfo(TypeInfo):
    """An array type; thrown arrays decay to pointers, so it never catches."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        return False, adjusted_ptr


@dataclass(eq=False)
class FunctionTypeInfo(TypeInfo):
    """A function type; thrown functions decay to pointers, so it never catches."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        return False, adjusted_ptr


@dataclass(eq=False)
class EnumTypeInfo(TypeInfo):
    """An enumeration type."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        return is_equal(self, thrown_type, False), adjusted_ptr


@dataclass
class DynamicCastInfo:
    """State shared by a walk of the inheritance graph."""

    dst_type: "ClassTypeInfo"
    static_ptr: Pointer
    static_type: "ClassTypeInfo"
    src2dst_offset: int = -1
    dst_ptr_leading_to_static_ptr: Pointer = None
    dst_ptr_not_leading_to_static_ptr: Pointer = None
    path_dst_ptr_to_static_ptr: Path = Path.UNKNOWN
    path_dynamic_ptr_to_static_ptr: Path = Path.UNKNOWN
    path_dynamic_ptr_to_dst_ptr: Path = Path.UNKNOWN
    number_to_static_ptr: int = 0
    number_to_dst_ptr: int = 0
    is_dst_type_derived_from_static_type: Derivation = Derivation.UNKNOWN
    number_of_dst_type: int = 0
    found_our_static_ptr: bool = False
    found_any_static_type: bool = False
    search_done: bool = False


@dataclass(eq=False)
class ClassTypeInfo(TypeInfo):
    """A class with no base classes."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        if is_equal(self, thrown_type, False):
            return True, adjusted_ptr
        if not isinstance(thrown_type, ClassTypeInfo):
            return False, adjusted_ptr
        info = DynamicCastInfo(
            dst_type=thrown_type, static_ptr=None, static_type=self, number_of_dst_type=1
        )
        thrown_type.has_unambiguous_public_base(info, adjusted_ptr, Path.PUBLIC, memory)
        if info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
            return True, info.dst_ptr_leading_to_static_ptr
        return False, adjusted_ptr

    def process_found_base_class(
        self, info: DynamicCastInfo, adjusted_ptr: Pointer, path_below: Path
    ) -> None:
        """Record reaching the searched-for base at ``adjusted_ptr``."""
        if info.dst_ptr_leading_to_static_ptr is None:
            info.dst_ptr_leading_to_static_ptr = adjusted_ptr
            info.path_dst_ptr_to_static_ptr = path_below
            info.number_to_static_ptr = 1
        elif info.dst_ptr_leading_to_static_ptr == adjusted_ptr:
            if info.path_dst_ptr_to_static_ptr == Path.NOT_PUBLIC:
                info.path_dst_ptr_to_static_ptr = path_below
        else:
            info.number_to_static_ptr += 1
            info.path_dst_ptr_to_static_ptr = Path.NOT_PUBLIC
            info.search_done = True

    def has_unambiguous_public_base(
        self,
        info: DynamicCastInfo,
        adjusted_ptr: Pointer,
        path_below: Path,
        memory: Optional[Memory] = None,
    ) -> None:
        """Look for ``info.static_type`` among this class and its bases."""
        if is_equal(self, info.static_type, False):
            self.process_found_base_class(info, adjusted_ptr, path_below)


@dataclass(eq=False)
class SiClassTypeInfo(ClassTypeInfo):
    """A class with one public, non-virtual base at offset zero."""

    base_type: ClassTypeInfo

    def has_unambiguous_public_base(self, info, adjusted_ptr, path_below, memory=None):
        if is_equal(self, info.static_type, False):
            self.process_found_base_class(info, adjusted_ptr, path_below)
        else:
            self.base_type.has_unambiguous_public_base(info, adjusted_ptr, path_below, memory)


@dataclass(eq=False)
class BaseClassTypeInfo:
    """One base of a class: its type, offset and access flags."""

    VIRTUAL_MASK = 0x1
    PUBLIC_MASK = 0x2
    OFFSET_SHIFT = 8

    base_type: ClassTypeInfo
    offset_flags: int

    def base_offset(self, current_ptr: Pointer, memory: Optional[Memory]) -> int:
        """Return the distance from ``current_ptr`` to this base subobject."""
        offset = self.offset_flags >> self.OFFSET_SHIFT
        if self.offset_flags & self.VIRTUAL_MASK:
            if memory is None:
                raise ValueError("a virtual base offset needs object memory")
            offset = memory.vtable_at(current_ptr).entry(offset)
        return offset

    def _path(self, path_below: Path) -> Path:
        return path_below if self.offset_flags & self.PUBLIC_MASK else Path.NOT_PUBLIC

    def has_unambiguous_public_base(self, info, adjusted_ptr, path_below, memory=None):
        """Continue the base search into this base subobject."""
        base_ptr = None
        if adjusted_ptr is not None:
            base_ptr = adjusted_ptr + self.base_offset(adjusted_ptr, memory)
        self.base_type.has_unambiguous_public_base(
            info, base_ptr, self._path(path_below), memory
        )


@dataclass(eq=False)
class VmiClassTypeInfo(ClassTypeInfo):
    """A class with one or more bases, possibly virtual or non-public."""

    NON_DIAMOND_REPEAT_MASK = 0x1
    DIAMOND_SHAPED_MASK = 0x2

    base_info: Tuple[BaseClassTypeInfo, ...]
    flags: int = 0

    def __post_init__(self) -> None:
        self.base_info = tuple(self.base_info)
        if not self.base_info:
            raise ValueError("a class with base-class information needs at least one base")

    def has_unambiguous_public_base(self, info, adjusted_ptr, path_below, memory=None):
        if is_equal(self, info.static_type, False):
            self.process_found_base_class(info, adjusted_ptr, path_below)
            return
        first, *rest = self.base_info
        first.has_unambiguous_public_base(info, adjusted_ptr, path_below, memory)
        for base in rest:
            base.has_unambiguous_public_base(info, adjusted_ptr, path_below, memory)
            if info.search_done:
                break


@dataclass(eq=False)
class PbaseTypeInfo(TypeInfo):
    """Common part of pointer and pointer-to-member types."""

    CONST_MASK = 0x1
    VOLATILE_MASK = 0x2
    RESTRICT_MASK = 0x4
    INCOMPLETE_MASK = 0x8
    INCOMPLETE_CLASS_MASK = 0x10

    pointee: TypeInfo
    flags: int = 0

    def _is_incomplete(self) -> bool:
        return bool(self.flags & (self.INCOMPLETE_CLASS_MASK | self.INCOMPLETE_MASK))

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        if is_equal(thrown_type, NULLPTR_TYPE, False):
            return True, adjusted_ptr
        use_strcmp = self._is_incomplete()
        if not use_strcmp:
            if not isinstance(thrown_type, PbaseTypeInfo):
                return False, adjusted_ptr
            use_strcmp = thrown_type._is_incomplete()
        return is_equal(self, thrown_type, use_strcmp), adjusted_ptr


@dataclass(eq=False)
class PointerTypeInfo(PbaseTypeInfo):
    """A pointer type, with the qualifiers of what it points to in ``flags``."""

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        matched, _ = PbaseTypeInfo.can_catch(self, thrown_type, adjusted_ptr, memory)
        if matched:
            if adjusted_ptr is not None:
                adjusted_ptr = memory.load_pointer(adjusted_ptr)
            return True, adjusted_ptr
        if not isinstance(thrown_type, PointerTypeInfo):
            return False, adjusted_ptr
        if adjusted_ptr is not None:
            adjusted_ptr = memory.load_pointer(adjusted_ptr)
        if thrown_type.flags & ~self.flags:
            return False, adjusted_ptr
        if is_equal(self.pointee, thrown_type.pointee, False):
            return True, adjusted_ptr
        if is_equal(self.pointee, VOID_TYPE, False):
            return not isinstance(thrown_type.pointee, FunctionTypeInfo), adjusted_ptr
        if isinstance(self.pointee, (PointerTypeInfo, PointerToMemberTypeInfo)):
            if not self.flags & self.CONST_MASK:
                return False, adjusted_ptr
            return self.pointee.can_catch_nested(thrown_type.pointee), adjusted_ptr
        if not isinstance(self.pointee, ClassTypeInfo):
            return False, adjusted_ptr
        thrown_class = thrown_type.pointee
        if not isinstance(thrown_class, ClassTypeInfo):
            return False, adjusted_ptr
        info = DynamicCastInfo(
            dst_type=thrown_class,
            static_ptr=None,
            static_type=self.pointee,
            number_of_dst_type=1,
        )
        thrown_class.has_unambiguous_public_base(info, adjusted_ptr, Path.PUBLIC, memory)
        if info.path_dst_ptr_to_static_ptr == Path.PUBLIC:
            if adjusted_ptr is not None:
                adjusted_ptr = info.dst_ptr_leading_to_static_ptr
            return True, adjusted_ptr
        return False, adjusted_ptr

    def can_catch_nested(self, thrown_type: TypeInfo) -> bool:
        """Whether a pointer of ``thrown_type`` converts to this one below an outer pointer."""
        if not isinstance(thrown_type, PointerTypeInfo):
            return False
        if thrown_type.flags & ~self.flags:
            return False
        if is_equal(self.pointee, thrown_type.pointee, False):
            return True
        if not self.flags & self.CONST_MASK:
            return False
        if isinstance(self.pointee, (PointerTypeInfo, PointerToMemberTypeInfo)):
            return self.pointee.can_catch_nested(thrown_type.pointee)
        return False


@dataclass(eq=False, kw_only=True)
class PointerToMemberTypeInfo(PbaseTypeInfo):
    """A pointer to a member of the class ``context``."""

    context: ClassTypeInfo

    def can_catch(self, thrown_type, adjusted_ptr, memory=None):
        matched, _ = PbaseTypeInfo.can_catch(self, thrown_type, adjusted_ptr, memory)
        if matched:
            return True, adjusted_ptr
        if not isinstance(thrown_type, PointerToMemberTypeInfo):
            return False, adjusted_ptr
        if thrown_type.flags & ~self.flags:
            return False, adjusted_ptr
        if not is_equal(self.pointee, thrown_type.pointee, False):
            return False, adjusted_ptr
        return is_equal(self.context, thrown_type.context, False), adjusted_ptr

    def can_catch_nested(self, thrown_type: TypeInfo) -> bool:
        """Whether a member pointer of ``thrown_type`` converts to this one below an outer pointer."""
        if not isinstance(thrown_type, PointerToMemberTypeInfo):
            return False
        if ~self.flags & thrown_type.flags:
            return False
        if not is_equal(self.pointee, thrown_type.pointee, False):
            return False
        return is_equal(self.context, thrown_type.context, False)