from decimal import Decimal

import pytest
from pikepdf import Dictionary, Name, String

from marginalia import pdf_values
from marginalia.pdf_values import (
    convert_color,
    convert_flags,
    convert_number,
    convert_quadpoints,
    convert_rect,
    convert_text,
    decode_flags,
    format_number,
    get_array,
    get_boolean,
    get_dictionary,
    get_integer,
    get_name,
    get_number,
    get_string,
    ink_gesture,
    normalize_rect,
)


# =============================================================================
# Accessors
# =============================================================================

def test_accessors_enforce_type():
    d = Dictionary(N=3, R=Decimal('1.5'), B=True, S=String("abc"), K=Name.Foo,
                   A=[1, 2], D=Dictionary(X=1))

    assert get_number(d, Name.N) == 3
    assert get_number(d, Name.R) == Decimal('1.5')
    assert get_number(d, Name.S) is None
    assert get_number(d, Name.B) is None

    assert get_integer(d, Name.N) == 3
    assert get_integer(d, Name.R) is None
    assert get_integer(d, Name.B) is None

    assert get_boolean(d, Name.B) is True
    assert get_boolean(d, Name.N) is None

    assert get_string(d, Name.S) == "abc"
    assert get_string(d, Name.K) is None
    assert get_name(d, Name.K) == "Foo"
    assert get_name(d, Name.S) is None

    assert list(get_array(d, Name.A)) == [1, 2]
    assert get_array(d, Name.D) is None
    assert get_dictionary(d, Name.D).get(Name.X) == 1
    assert get_dictionary(d, Name.A) is None


def test_accessors_missing_key_and_missing_dictionary():
    d = Dictionary()
    assert get_number(d, Name.N) is None
    assert get_string(None, Name.S) is None
    assert get_array(None, Name.A) is None


# =============================================================================
# Numbers and text
# =============================================================================

@pytest.mark.parametrize("value,expected", [
    (50, "50"),
    (-3, "-3"),
    (Decimal('2.0'), "2"),
    (Decimal('0.50'), "0.5"),
    (Decimal('123.456'), "123.456"),
    (Decimal('1E-7'), "0.0000001"),
    (0.25, "0.25"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_convert_number_and_text():
    d = Dictionary(CA=Decimal('0.75'), T=String("Jane"), Name=Name.Comment, M=7)
    assert convert_number(d, Name.CA) == "0.75"
    assert convert_number(d, Name.T) is None
    assert convert_text(d, Name.T) == "Jane"
    assert convert_text(d, Name.Name) == "Comment"
    assert convert_text(d, Name.M) is None
    assert convert_text(d, Name.Missing) is None


def test_text_is_not_escaped():
    d = Dictionary(T=String('a < b & "c"'))
    assert convert_text(d, Name.T) == 'a < b & "c"'


# =============================================================================
# Rect
# =============================================================================

@pytest.mark.parametrize("rect,expected", [
    ([100, 200, 50, 10], "50,10,100,200"),
    ([50, 10, 100, 200], "50,10,100,200"),
    ([50, 200, 100, 10], "50,10,100,200"),
    ([Decimal('1.5'), 0, 0, Decimal('2.25')], "0,0,1.5,2.25"),
])
def test_rect_is_normalized(rect, expected):
    assert convert_rect(Dictionary(Rect=rect), Name.Rect) == expected


@pytest.mark.parametrize("rect", [
    [1, 2, 3],
    [1, 2, 3, 4, 5],
    [1, 2, String("x"), 4],
    [1, 2, True, 4],
])
def test_rect_wrong_shape_is_absent(rect):
    assert convert_rect(Dictionary(Rect=rect), Name.Rect) is None


def test_rect_not_an_array():
    assert convert_rect(Dictionary(Rect=String("0 0 1 1")), Name.Rect) is None
    assert normalize_rect(Dictionary(), Name.Rect) is None


def test_normalize_rect_edges():
    assert normalize_rect(Dictionary(Rect=[100, 200, 50, 10])) == (50, 10, 100, 200)


# =============================================================================
# Color
# =============================================================================

@pytest.mark.parametrize("rgb,expected", [
    ([0, 0, 0], "#000000"),
    ([1, 1, 1], "#ffffff"),
    ([Decimal('0.5'), Decimal('0.5'), Decimal('0.5')], "#7f7f7f"),
    ([1, 0, 0], "#ff0000"),
    ([Decimal('0.0'), Decimal('1.0'), Decimal('0.0')], "#00ff00"),
])
def test_color(rgb, expected):
    assert convert_color(Dictionary(C=rgb), Name.C) == expected


@pytest.mark.parametrize("rgb", [
    [0.5],
    [0, 0, 0, 1],
    [],
    [2, 0, 0],
    [-1, 0, 0],
    [0, String("x"), 0],
])
def test_color_unsupported(rgb):
    assert convert_color(Dictionary(C=rgb), Name.C) is None


# =============================================================================
# Flags
# =============================================================================

def test_flags_in_table_order():
    # print (4) set before hidden (2) in the mask arithmetic; output follows the table
    assert convert_flags(Dictionary(F=4 | 2), Name.F) == "hidden,print"


def test_flags_zero_is_empty_not_absent():
    assert convert_flags(Dictionary(F=0), Name.F) == ""
    assert convert_flags(Dictionary(), Name.F) is None


def test_flags_all_and_unknown_bits():
    assert decode_flags(0xFF) == "invisible,hidden,print,nozoom,norotate,noview,readonly,locked"
    # bits beyond the table (ToggleNoView, LockedContents) are ignored
    assert decode_flags(256 | 512 | 128) == "locked"


def test_flags_must_be_integer():
    assert convert_flags(Dictionary(F=Decimal('4.0')), Name.F) is None
    assert convert_flags(Dictionary(F=True), Name.F) is None


# =============================================================================
# QuadPoints
# =============================================================================

def test_quadpoints_two_groups():
    numbers = list(range(16))
    result = convert_quadpoints(Dictionary(QuadPoints=numbers), Name.QuadPoints)
    assert result == ",".join(str(n) for n in range(16))
    assert result.count(",") == 15


def test_quadpoints_keep_corner_order():
    numbers = [10, 20, 30, 20, 10, 5, 30, 5]
    assert convert_quadpoints(Dictionary(QuadPoints=numbers), Name.QuadPoints) == \
        "10,20,30,20,10,5,30,5"


@pytest.mark.parametrize("numbers", [
    list(range(10)),
    list(range(7)),
    [],
    [0, 1, 2, 3, 4, 5, 6, String("7")],
])
def test_quadpoints_invalid(numbers):
    assert convert_quadpoints(Dictionary(QuadPoints=numbers), Name.QuadPoints) is None


# =============================================================================
# Ink
# =============================================================================

def test_ink_gesture():
    d = Dictionary(P=[1, 2, Decimal('3.5'), 4])
    assert ink_gesture(d.get(Name.P)) == "1,2;3.5,4"


def test_ink_gesture_malformed():
    assert ink_gesture(Dictionary(P=[1, 2, 3]).get(Name.P)) is None
    assert ink_gesture(Dictionary(P=[]).get(Name.P)) is None
    assert ink_gesture(None) is None


def test_converter_table_is_closed():
    assert set(pdf_values.CONVERTERS) == {'text', 'number', 'rect', 'color', 'flags', 'quadpoints'}
