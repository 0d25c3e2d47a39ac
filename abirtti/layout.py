"""Class hierarchies laid out in modelled memory, together with their type descriptors."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .memory import Memory, VTable
from .typeinfo import (
    BaseClassTypeInfo,
    ClassTypeInfo,
    SiClassTypeInfo,
    VmiClassTypeInfo,
)

_POINTER_SIZE = 8
_FIRST_VBASE_SLOT = -3 * _POINTER_SIZE

Chain = Tuple[str, ...]


@dataclass(frozen=True)
class BaseSpec:
    """A direct base of a class: its name, and whether it is virtual and public."""

    name: str
    virtual: bool = False
    public: bool = True


def _is_subsequence(needle: Iterable[str], haystack: Iterable[str]) -> bool:
    remaining = iter(haystack)
    return all(name in remaining for name in needle)


@dataclass(frozen=True)
class ObjectLayout:
    """A complete object placed in memory, with the address of every subobject.

    ``subobjects`` pairs each chain of class names, from the complete object's
    class down to a base, with the address of the subobject it reaches.
    """

    name: str
    address: int
    size: int
    subobjects: Tuple[Tuple[Chain, int], ...]

    def subobject(self, *path: str) -> int:
        """Return the address of the subobject reached through the classes in ``path``.

        The names must appear in this order along the chain of bases from the
        complete object, and the last one is the subobject's own class.  With
        no names the address of the complete object is returned.
        """
        if not path:
            return self.address
        found = {
            address
            for chain, address in self.subobjects
            if chain[-1] == path[-1] and _is_subsequence(path, chain)
        }
        spelled = "::".join(path)
        if not found:
            raise LookupError(f"{self.name} has no subobject {spelled}")
        if len(found) > 1:
            raise LookupError(f"subobject {spelled} of {self.name} is ambiguous")
        return found.pop()


@dataclass
class _ClassDef:
    name: str
    bases: Tuple[BaseSpec, ...]
    nv_offsets: Dict[str, int]
    nvsize: int
    vbase_offsets: Dict[str, int]
    size: int
    type_info: Optional[ClassTypeInfo] = field(default=None)

    @property
    def vbases(self) -> Tuple[str, ...]:
        return tuple(self.vbase_offsets)


class Hierarchy:
    """A set of classes, their layouts and their type descriptors.

    Non-virtual bases are placed one after another at the start of a class,
    followed by the class's own data; virtual bases of a complete object come
    after that.  Every subobject address of an instantiated object gets a
    virtual table naming the complete object and holding virtual-base offsets.
    """

    def __init__(self) -> None:
        self._classes: Dict[str, _ClassDef] = {}
        self._vbase_slots: Dict[str, int] = {}

    def _class(self, name: str) -> _ClassDef:
        try:
            return self._classes[name]
        except KeyError:
            raise KeyError(f"unknown class {name!r}") from None

    def define(
        self, name: str, bases: Iterable[Union[str, BaseSpec]], size: int
    ) -> ClassTypeInfo:
        """Define class ``name`` with direct ``bases`` and ``size`` bytes of its own data."""
        if name in self._classes:
            raise ValueError(f"class {name!r} is already defined")
        if size < 0:
            raise ValueError(f"class {name!r} cannot have a negative size")
        specs = tuple(BaseSpec(base) if isinstance(base, str) else base for base in bases)
        names = [spec.name for spec in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"class {name!r} names the same direct base twice")
        for spec in specs:
            self._class(spec.name)

        nv_offsets: Dict[str, int] = {}
        cursor = 0
        for spec in specs:
            if not spec.virtual:
                nv_offsets[spec.name] = cursor
                cursor += self._classes[spec.name].nvsize
        nvsize = max(cursor + size, 1)

        vbases: list = []
        for spec in specs:
            for inherited in self._classes[spec.name].vbases:
                if inherited not in vbases:
                    vbases.append(inherited)
            if spec.virtual and spec.name not in vbases:
                vbases.append(spec.name)
        vbase_offsets: Dict[str, int] = {}
        cursor = nvsize
        for vbase in vbases:
            vbase_offsets[vbase] = cursor
            cursor += self._classes[vbase].nvsize

        for spec in specs:
            if spec.virtual and spec.name not in self._vbase_slots:
                slot = _FIRST_VBASE_SLOT - _POINTER_SIZE * len(self._vbase_slots)
                self._vbase_slots[spec.name] = slot

        definition = _ClassDef(
            name=name,
            bases=specs,
            nv_offsets=nv_offsets,
            nvsize=nvsize,
            vbase_offsets=vbase_offsets,
            size=cursor,
        )
        self._classes[name] = definition
        definition.type_info = self._describe(definition)
        return definition.type_info

    def type_info(self, name: str) -> ClassTypeInfo:
        """Return the type descriptor of class ``name``."""
        return self._class(name).type_info

    def _walk(
        self, name: str, address: int, vbase_addresses: Mapping[str, int], chain: Chain
    ) -> Iterator[Tuple[Chain, int]]:
        chain = chain + (name,)
        yield chain, address
        definition = self._classes[name]
        for spec in definition.bases:
            if spec.virtual:
                base_address = vbase_addresses[spec.name]
            else:
                base_address = address + definition.nv_offsets[spec.name]
            yield from self._walk(spec.name, base_address, vbase_addresses, chain)

    def _shape_flags(self, definition: _ClassDef) -> int:
        entries = list(self._walk(definition.name, 0, definition.vbase_offsets, ()))[1:]
        paths_to = Counter((chain[-1], address) for chain, address in entries)
        addresses_of = defaultdict(set)
        for chain, address in entries:
            addresses_of[chain[-1]].add(address)
        flags = 0
        if any(len(addresses) > 1 for addresses in addresses_of.values()):
            flags |= VmiClassTypeInfo.NON_DIAMOND_REPEAT_MASK
        if any(count > 1 for count in paths_to.values()):
            flags |= VmiClassTypeInfo.DIAMOND_SHAPED_MASK
        return flags

    def _describe(self, definition: _ClassDef) -> ClassTypeInfo:
        specs = definition.bases
        if not specs:
            return ClassTypeInfo(name=definition.name)
        if len(specs) == 1 and not specs[0].virtual and specs[0].public:
            return SiClassTypeInfo(
                name=definition.name, base_type=self._classes[specs[0].name].type_info
            )
        base_info = []
        for spec in specs:
            if spec.virtual:
                offset_flags = self._vbase_slots[spec.name] << BaseClassTypeInfo.OFFSET_SHIFT
                offset_flags |= BaseClassTypeInfo.VIRTUAL_MASK
            else:
                offset_flags = definition.nv_offsets[spec.name] << BaseClassTypeInfo.OFFSET_SHIFT
            if spec.public:
                offset_flags |= BaseClassTypeInfo.PUBLIC_MASK
            base_info.append(
                BaseClassTypeInfo(self._classes[spec.name].type_info, offset_flags)
            )
        return VmiClassTypeInfo(
            name=definition.name,
            base_info=tuple(base_info),
            flags=self._shape_flags(definition),
        )

    def instantiate(self, name: str, memory: Memory, address: int) -> ObjectLayout:
        """Place a complete object of class ``name`` at ``address`` in ``memory``."""
        definition = self._class(name)
        vbase_addresses = {
            vbase: address + offset for vbase, offset in definition.vbase_offsets.items()
        }
        subobjects = tuple(self._walk(name, address, vbase_addresses, ()))
        for subobject_address in {found for _, found in subobjects}:
            entries = {
                self._vbase_slots[vbase]: vbase_address - subobject_address
                for vbase, vbase_address in vbase_addresses.items()
            }
            memory.install_vtable(
                subobject_address,
                VTable(
                    offset_to_top=address - subobject_address,
                    type_info=definition.type_info,
                    entries=entries,
                ),
            )
        return ObjectLayout(
            name=name, address=address, size=definition.size, subobjects=subobjects
        )