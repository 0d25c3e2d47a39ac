"""A small model of object memory: virtual tables and stored pointers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


class InvalidAccess(LookupError):
    """Raised when memory is read where nothing was stored."""


@dataclass(frozen=True)
class VTable:
    """The parts of a virtual table that run-time type lookups read.

    ``offset_to_top`` is the distance from the subobject holding this table
    to the start of the complete object, ``type_info`` is the dynamic type of
    that complete object and ``entries`` holds the virtual-base offsets,
    keyed by their (usually negative) position in the table.
    """

    offset_to_top: int
    type_info: Any
    entries: Mapping[int, int] = field(default_factory=dict)

    def entry(self, offset: int) -> int:
        """Return the value stored at ``offset`` in this table."""
        try:
            return self.entries[offset]
        except KeyError:
            raise InvalidAccess(f"no virtual table entry at offset {offset}") from None


class Memory:
    """Addresses mapped to the virtual tables and pointers stored there."""

    def __init__(self) -> None:
        self._vtables: Dict[int, VTable] = {}
        self._pointers: Dict[int, Optional[int]] = {}

    @staticmethod
    def _check(address: Optional[int]) -> int:
        if address is None:
            raise InvalidAccess("null pointer dereference")
        return address

    def install_vtable(self, address: int, vtable: VTable) -> None:
        """Place ``vtable`` as the virtual table of the object at ``address``."""
        self._vtables[self._check(address)] = vtable

    def vtable_at(self, address: Optional[int]) -> VTable:
        """Return the virtual table of the object at ``address``."""
        try:
            return self._vtables[self._check(address)]
        except KeyError:
            raise InvalidAccess(f"no virtual table at address {address}") from None

    def store_pointer(self, address: int, value: Optional[int]) -> None:
        """Store a pointer value (``None`` for null) at ``address``."""
        self._pointers[self._check(address)] = value

    def load_pointer(self, address: Optional[int]) -> Optional[int]:
        """Read the pointer value stored at ``address``."""
        try:
            return self._pointers[self._check(address)]
        except KeyError:
            raise InvalidAccess(f"no pointer stored at address {address}") from None

    def dynamic_type(self, address: Optional[int]) -> Tuple[int, Any]:
        """Return the complete object's address and type for a polymorphic subobject."""
        vtable = self.vtable_at(address)
        return address + vtable.offset_to_top, vtable.type_info