# abirtti

`abirtti` models the run-time type information of the Itanium C++ ABI in
plain Python. It describes class hierarchies, including multiple, virtual
and non-public inheritance. It places objects in a simulated address space
and answers the two questions a C++ runtime asks of type information:

* **Does a handler catch a thrown object?** Every type descriptor has a
  `can_catch(thrown_type, adjusted_ptr, memory)` method. It returns a pair
  `(matched, pointer)`, where `pointer` is the address the handler would
  receive. The method follows the C++ rules for handler matching:
  * exact matches;
  * unambiguous public base classes;
  * pointer and qualification conversions, including conversion to `void*`
    and multi-level pointers;
  * `nullptr`;
  * pointers to members.
* **What does `dynamic_cast` return?** The graph search walks the subobjects
  below and above the destination type. It returns the address of the
  destination subobject, or `None` when the cast fails, is ambiguous, or is
  reachable only through a non-public path.

## Modules

| Module | What it provides |
| --- | --- |
| `abirtti.memory` | `Memory`: a simulated address space holding stored pointers and virtual tables (`VTable`). Reading an address where nothing was stored, or a null address, raises `InvalidAccess`. |
| `abirtti.typeinfo` | The type descriptors: `TypeInfo` and its subclasses `FundamentalTypeInfo`, `ArrayTypeInfo`, `FunctionTypeInfo`, `EnumTypeInfo`, `ClassTypeInfo`, `SiClassTypeInfo`, `VmiClassTypeInfo` (with `BaseClassTypeInfo` entries), `PbaseTypeInfo`, `PointerTypeInfo` and `PointerToMemberTypeInfo`. Also `is_equal`, the `Path` and `Derivation` enums, and `DynamicCastInfo`. |
| `abirtti.layout` | `Hierarchy` defines classes from base names or `BaseSpec` entries, builds their type descriptors, and lays out complete objects in memory as an `ObjectLayout`. `ObjectLayout.subobject(*names)` finds a subobject's address. |
| `abirtti.handlers` | `catch(handler_type, thrown_type, thrown_ptr, memory)` checks one handler; a `handler_type` of `None` is a catch-all. `find_handler(handlers, ...)` returns the index and adjusted pointer of the first handler that matches, or `None`. |
| `abirtti.search` | The `search_above_dst` / `search_below_dst` walks and the `process_static_type_*` helpers used by the cast. |
| `abirtti.dyncast` | `dynamic_cast`, `dynamic_cast_ref` and `typeid_of`. |
| `abirtti.errors` | The standard exception family: `StdException`, `LogicError` and its subclasses, `RuntimeFailure` and its subclasses, `BadCast` and `BadTypeid`. Each has a `what()` method. |

## Example

```python
from abirtti.dyncast import dynamic_cast
from abirtti.handlers import catch
from abirtti.layout import Hierarchy
from abirtti.memory import Memory
from abirtti.typeinfo import PointerTypeInfo

hierarchy = Hierarchy()
b = hierarchy.define("B", [], size=8)
c = hierarchy.define("C", ["B"], size=8)

memory = Memory()
obj = hierarchy.instantiate("C", memory, 0x1000)

# Cast the B subobject down to C.
assert dynamic_cast(memory, obj.subobject("B"), b, c) == 0x1000

# Throw a C* (stored at 0x2000) and catch it as B*.
memory.store_pointer(0x2000, obj.address)
thrown = PointerTypeInfo(name="P1C", pointee=c)
handler = PointerTypeInfo(name="P1B", pointee=b)
assert catch(handler, thrown, 0x2000, memory) == (True, 0x1000)
```

## Errors

* `dynamic_cast` returns `None` when the cast cannot be made. A null
  `static_ptr` also gives `None`.
* `dynamic_cast_ref` raises `BadCast` in that case, as a reference cast
  does in C++.
* `typeid_of` raises `BadTypeid` when it is given a null pointer.
* Reading memory that holds nothing raises `InvalidAccess`.

## What it does not do

The package works only on the descriptors and simulated memory you give it.
It does not:

* inspect real compiled objects or binaries;
* raise or unwind real exceptions;
* provide a command-line tool.

`dynamic_cast` accepts the `src2dst_offset` hint but does not use it. It
always compares type descriptors by identity.

## Running the tests

```
pip install -e .[test]
pytest
```