import pytest

from abirtti.memory import InvalidAccess, Memory, VTable
from abirtti.typeinfo import (
    NULLPTR_TYPE,
    VOID_TYPE,
    ArrayTypeInfo,
    BaseClassTypeInfo,
    ClassTypeInfo,
    Derivation,
    DynamicCastInfo,
    EnumTypeInfo,
    FunctionTypeInfo,
    FundamentalTypeInfo,
    Path,
    PbaseTypeInfo,
    PointerToMemberTypeInfo,
    PointerTypeInfo,
    SiClassTypeInfo,
    VmiClassTypeInfo,
    is_equal,
)

PUBLIC = BaseClassTypeInfo.PUBLIC_MASK
VIRTUAL = BaseClassTypeInfo.VIRTUAL_MASK
SHIFT = BaseClassTypeInfo.OFFSET_SHIFT
CONST = PbaseTypeInfo.CONST_MASK
EXC = 5000


def thrown_pointer(value):
    memory = Memory()
    memory.store_pointer(EXC, value)
    return memory


# --- equality -----------------------------------------------------------

def test_is_equal_identity():
    a = FundamentalTypeInfo("i")
    twin = FundamentalTypeInfo("i")
    assert is_equal(a, a, False)
    assert not is_equal(a, twin, False)


def test_is_equal_by_name():
    assert is_equal(FundamentalTypeInfo("i"), FundamentalTypeInfo("i"), True)
    assert not is_equal(FundamentalTypeInfo("i"), FundamentalTypeInfo("l"), True)


# --- simple types -------------------------------------------------------

def test_fundamental_catches_same_type_only():
    int_t = FundamentalTypeInfo("i")
    long_t = FundamentalTypeInfo("l")
    assert int_t.can_catch(int_t, 7) == (True, 7)
    assert int_t.can_catch(long_t, 7)[0] is False


def test_enum_catches_same_type_only():
    colour = EnumTypeInfo("6Colour")
    other = EnumTypeInfo("6Colour")
    assert colour.can_catch(colour, 3) == (True, 3)
    assert colour.can_catch(other, 3)[0] is False


@pytest.mark.parametrize("cls", [ArrayTypeInfo, FunctionTypeInfo])
def test_array_and_function_never_catch(cls):
    t = cls("A4_i")
    assert t.can_catch(t, 1)[0] is False


# --- class catches ------------------------------------------------------

def test_class_catches_itself():
    a = ClassTypeInfo("1A")
    assert a.can_catch(a, 100) == (True, 100)


def test_class_rejects_non_class():
    a = ClassTypeInfo("1A")
    assert a.can_catch(FundamentalTypeInfo("i"), 100)[0] is False


def test_single_inheritance_base_catches_derived():
    base = ClassTypeInfo("4Base")
    derived = SiClassTypeInfo("7Derived", base)
    assert base.can_catch(derived, 100) == (True, 100)
    assert derived.can_catch(base, 100)[0] is False


def test_private_base_does_not_catch():
    base = ClassTypeInfo("4Base")
    derived = VmiClassTypeInfo("7Derived", (BaseClassTypeInfo(base, 0),))
    assert base.can_catch(derived, 100)[0] is False


def test_ambiguous_base_does_not_catch():
    base = ClassTypeInfo("4Base")
    left = SiClassTypeInfo("4Left", base)
    right = SiClassTypeInfo("5Right", base)
    bottom = VmiClassTypeInfo(
        "6Bottom",
        (BaseClassTypeInfo(left, PUBLIC), BaseClassTypeInfo(right, (8 << SHIFT) | PUBLIC)),
        VmiClassTypeInfo.NON_DIAMOND_REPEAT_MASK,
    )
    assert base.can_catch(bottom, 100)[0] is False
    assert left.can_catch(bottom, 100) == (True, 100)


def test_virtual_base_offset_read_from_vtable():
    obj, vbase_offset = 300, 16
    vbase = ClassTypeInfo("5vBase")
    vderived = VmiClassTypeInfo(
        "8vDerived", (BaseClassTypeInfo(vbase, (-24 << SHIFT) | VIRTUAL | PUBLIC),)
    )
    memory = Memory()
    memory.install_vtable(obj, VTable(0, vderived, {-24: vbase_offset}))
    assert vbase.can_catch(vderived, obj, memory) == (True, obj + vbase_offset)


def test_virtual_base_without_vtable_raises():
    vbase = ClassTypeInfo("5vBase")
    vderived = VmiClassTypeInfo(
        "8vDerived", (BaseClassTypeInfo(vbase, (-24 << SHIFT) | VIRTUAL | PUBLIC),)
    )
    with pytest.raises(InvalidAccess):
        vbase.can_catch(vderived, 300, Memory())


def test_vmi_requires_bases():
    with pytest.raises(ValueError):
        VmiClassTypeInfo("1X", ())


# --- base-class info ----------------------------------------------------

def test_base_offset_non_virtual():
    base = BaseClassTypeInfo(ClassTypeInfo("1B"), (40 << SHIFT) | PUBLIC)
    assert base.base_offset(1000, None) == 40


def test_base_offset_negative_shift_is_arithmetic():
    base = BaseClassTypeInfo(ClassTypeInfo("1B"), (-24 << SHIFT) | VIRTUAL)
    memory = Memory()
    memory.install_vtable(1000, VTable(0, None, {-24: 56}))
    assert base.base_offset(1000, memory) == 56


# --- process_found_base_class -------------------------------------------

def test_process_found_base_class_sequence():
    a = ClassTypeInfo("1A")
    info = DynamicCastInfo(dst_type=a, static_ptr=None, static_type=a)
    assert info.path_dst_ptr_to_static_ptr == Path.UNKNOWN
    assert info.is_dst_type_derived_from_static_type == Derivation.UNKNOWN

    a.process_found_base_class(info, 100, Path.NOT_PUBLIC)
    assert info.dst_ptr_leading_to_static_ptr == 100
    assert info.number_to_static_ptr == 1
    assert info.path_dst_ptr_to_static_ptr == Path.NOT_PUBLIC

    a.process_found_base_class(info, 100, Path.PUBLIC)
    assert info.path_dst_ptr_to_static_ptr == Path.PUBLIC
    assert not info.search_done

    a.process_found_base_class(info, 200, Path.PUBLIC)
    assert info.number_to_static_ptr == 2
    assert info.path_dst_ptr_to_static_ptr == Path.NOT_PUBLIC
    assert info.search_done


# --- pointer catches (cases from the pointer-catch tests) ----------------

A = ClassTypeInfo("1A")
PTR_A = PointerTypeInfo("P1A", A)
PTR_CONST_A = PointerTypeInfo("PK1A", A, CONST)


def test_const_pointer_catches_pointer():
    assert PTR_CONST_A.can_catch(PTR_A, EXC, thrown_pointer(12)) == (True, 12)


def test_pointer_catches_same_pointer():
    assert PTR_A.can_catch(PTR_A, EXC, thrown_pointer(12)) == (True, 12)


def test_pointer_does_not_catch_const_pointer():
    assert PTR_A.can_catch(PTR_CONST_A, EXC, thrown_pointer(12))[0] is False
    assert PTR_CONST_A.can_catch(PTR_CONST_A, EXC, thrown_pointer(12)) == (True, 12)


def make_multiple():
    base1 = ClassTypeInfo("5base1")
    base2 = ClassTypeInfo("5base2")
    derived = VmiClassTypeInfo(
        "7derived",
        (BaseClassTypeInfo(base1, PUBLIC), BaseClassTypeInfo(base2, (4 << SHIFT) | PUBLIC)),
    )
    return base2, derived


def test_null_derived_pointer_caught_as_null_base():
    base2, derived = make_multiple()
    handler = PointerTypeInfo("P5base2", base2)
    thrown = PointerTypeInfo("P7derived", derived)
    assert handler.can_catch(thrown, EXC, thrown_pointer(None)) == (True, None)


def test_nullptr_caught_by_pointer():
    base2, _ = make_multiple()
    handler = PointerTypeInfo("P5base2", base2)
    assert handler.can_catch(NULLPTR_TYPE, EXC, thrown_pointer(None)) == (True, None)


def test_derived_pointer_adjusted_to_second_base():
    base2, derived = make_multiple()
    handler = PointerTypeInfo("P5base2", base2)
    thrown = PointerTypeInfo("P7derived", derived)
    assert handler.can_catch(thrown, EXC, thrown_pointer(12)) == (True, 12 + 4)


def test_virtual_base_pointer():
    obj = 300
    vbase = ClassTypeInfo("5vBase")
    vderived = VmiClassTypeInfo(
        "8vDerived", (BaseClassTypeInfo(vbase, (-24 << SHIFT) | VIRTUAL | PUBLIC),)
    )
    memory = thrown_pointer(obj)
    memory.install_vtable(obj, VTable(0, vderived, {-24: 8}))
    handler = PointerTypeInfo("P5vBase", vbase)
    thrown = PointerTypeInfo("P8vDerived", vderived)
    matched, ptr = handler.can_catch(thrown, EXC, memory)
    assert matched
    assert ptr == obj + 8
    assert handler.can_catch(thrown, EXC, thrown_pointer(None)) == (True, None)


def test_diamond_public_and_private_paths_to_virtual_base():
    obj, c2_offset, b_offset = 1000, 16, 40
    b = ClassTypeInfo("1B")
    c1 = VmiClassTypeInfo("2C1", (BaseClassTypeInfo(b, (-24 << SHIFT) | VIRTUAL | PUBLIC),))
    c2 = VmiClassTypeInfo("2C2", (BaseClassTypeInfo(b, (-24 << SHIFT) | VIRTUAL),))
    a = VmiClassTypeInfo(
        "1A",
        (BaseClassTypeInfo(c1, PUBLIC), BaseClassTypeInfo(c2, (c2_offset << SHIFT) | PUBLIC)),
        VmiClassTypeInfo.DIAMOND_SHAPED_MASK,
    )
    memory = thrown_pointer(obj)
    memory.install_vtable(obj, VTable(0, a, {-24: b_offset}))
    memory.install_vtable(obj + c2_offset, VTable(-c2_offset, a, {-24: b_offset - c2_offset}))
    thrown = PointerTypeInfo("PK1A", a, CONST)

    assert PointerTypeInfo("PK1B", b, CONST).can_catch(thrown, EXC, memory) == (True, obj + b_offset)
    assert PointerTypeInfo("PK2C2", c2, CONST).can_catch(thrown, EXC, memory) == (
        True,
        obj + c2_offset,
    )
    assert PointerTypeInfo("PK2C1", c1, CONST).can_catch(thrown, EXC, memory) == (True, obj)


def test_void_pointer_catches_object_pointer_but_not_function_pointer():
    void_ptr = PointerTypeInfo("Pv", VOID_TYPE)
    fn_ptr = PointerTypeInfo("PFvvE", FunctionTypeInfo("FvvE"))
    assert void_ptr.can_catch(PTR_A, EXC, thrown_pointer(12)) == (True, 12)
    assert void_ptr.can_catch(fn_ptr, EXC, thrown_pointer(12))[0] is False


def test_pointer_to_pointer_needs_const():
    inner = PointerTypeInfo("P1A", A)
    thrown = PointerTypeInfo("PP1A", inner)
    const_inner = PointerTypeInfo("PK1A", A, CONST)
    good = PointerTypeInfo("PKPK1A", const_inner, CONST)
    bad = PointerTypeInfo("PPK1A", const_inner)
    assert good.can_catch(thrown, EXC, thrown_pointer(12)) == (True, 12)
    assert bad.can_catch(thrown, EXC, thrown_pointer(12))[0] is False


def test_can_catch_nested_rejects_added_qualifier_in_thrown():
    assert PTR_A.can_catch_nested(PTR_CONST_A) is False
    assert PTR_CONST_A.can_catch_nested(PTR_A) is True
    assert PTR_A.can_catch_nested(A) is False


def test_incomplete_pointer_compares_by_name():
    first = PointerTypeInfo("P3Fwd", ClassTypeInfo("3Fwd"), PbaseTypeInfo.INCOMPLETE_MASK)
    second = PointerTypeInfo("P3Fwd", ClassTypeInfo("3Fwd"))
    assert first.can_catch(second, EXC, thrown_pointer(12)) == (True, 12)


def test_pointer_rejects_non_pointer():
    assert PTR_A.can_catch(A, EXC, thrown_pointer(12))[0] is False


# --- pointer to member --------------------------------------------------

def test_member_pointer_same_context():
    int_t = FundamentalTypeInfo("i")
    b = ClassTypeInfo("1B")
    handler = PointerToMemberTypeInfo("M1Ai", int_t, context=A)
    thrown = PointerToMemberTypeInfo("M1Ai_", int_t, context=A)
    other = PointerToMemberTypeInfo("M1Bi", int_t, context=b)
    assert handler.can_catch(thrown, EXC)[0] is True
    assert handler.can_catch(other, EXC)[0] is False


def test_member_pointer_catches_nullptr():
    handler = PointerToMemberTypeInfo("M1Ai", FundamentalTypeInfo("i"), context=A)
    assert handler.can_catch(NULLPTR_TYPE, EXC) == (True, EXC)


def test_member_pointer_nested():
    int_t = FundamentalTypeInfo("i")
    plain = PointerToMemberTypeInfo("M1Ai", int_t, context=A)
    const = PointerToMemberTypeInfo("M1AKi", int_t, CONST, context=A)
    assert const.can_catch_nested(plain) is True
    assert plain.can_catch_nested(const) is False
    assert plain.can_catch_nested(PTR_A) is False