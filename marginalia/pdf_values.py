"""
Value conversion for annotation dictionaries.

The input is pikepdf's object model: Name, String, Array and Dictionary
objects, with integers, reals and booleans already converted to Python
int, Decimal and bool. The typed accessors below return None when a key is
missing or holds a value of the wrong type, and every converter turns a
(dictionary, key) pair into the text used in an XFDF attribute, or None.

Requirements:
    pip install pikepdf
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pikepdf import Array, Dictionary, Name, String

Number = Union[int, float, Decimal]
Converter = Callable[[Dictionary, Name], Optional[str]]


# =============================================================================
# TYPED ACCESSORS
# =============================================================================

def get_value(dictionary: Optional[Dictionary], key: Name) -> Any:
    """Return the raw value stored under key, or None."""
    if not isinstance(dictionary, Dictionary):
        return None
    return dictionary.get(key)


def as_number(value: Any) -> Optional[Number]:
    """Return value if it is a finite PDF number (never a boolean)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        value = Decimal(repr(value))
    if isinstance(value, Decimal) and value.is_finite():
        return value
    return None


def as_numbers(values: Any) -> Optional[List[Number]]:
    """Convert an Array to a list of numbers; None if any element is not one."""
    if not isinstance(values, Array):
        return None
    numbers = []
    for item in values:
        number = as_number(item)
        if number is None:
            return None
        numbers.append(number)
    return numbers


def get_number(dictionary: Optional[Dictionary], key: Name) -> Optional[Number]:
    return as_number(get_value(dictionary, key))


def get_integer(dictionary: Optional[Dictionary], key: Name) -> Optional[int]:
    value = get_value(dictionary, key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def get_boolean(dictionary: Optional[Dictionary], key: Name) -> Optional[bool]:
    value = get_value(dictionary, key)
    return value if isinstance(value, bool) else None


def get_string(dictionary: Optional[Dictionary], key: Name) -> Optional[str]:
    value = get_value(dictionary, key)
    return str(value) if isinstance(value, String) else None


def get_name(dictionary: Optional[Dictionary], key: Name) -> Optional[str]:
    """Return a Name value without its leading slash."""
    value = get_value(dictionary, key)
    if isinstance(value, Name):
        return str(value)[1:]
    return None


def get_text(dictionary: Optional[Dictionary], key: Name) -> Optional[str]:
    """Return a String or Name value as text."""
    text = get_string(dictionary, key)
    if text is None:
        text = get_name(dictionary, key)
    return text


def get_array(dictionary: Optional[Dictionary], key: Name) -> Optional[Array]:
    value = get_value(dictionary, key)
    return value if isinstance(value, Array) else None


def get_dictionary(dictionary: Optional[Dictionary], key: Name) -> Optional[Dictionary]:
    value = get_value(dictionary, key)
    return value if isinstance(value, Dictionary) else None


# =============================================================================
# TEXT ENCODINGS
# =============================================================================

def format_number(value: Number) -> str:
    """Plain decimal text: no exponent, no trailing zeros, integral reals as ints."""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        value = Decimal(repr(value))
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), 'f')


def normalize_rect(dictionary: Optional[Dictionary], key: Name = Name.Rect) -> Optional[Tuple[Number, Number, Number, Number]]:
    """
    Read a rectangle as (left, bottom, right, top).

    PDF writers do not agree on corner order, so the two corners are always
    sorted into min/max rather than taken as given.
    """
    numbers = as_numbers(get_value(dictionary, key))
    if numbers is None or len(numbers) != 4:
        return None
    x0, y0, x1, y1 = numbers
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)


def convert_text(dictionary: Dictionary, key: Name) -> Optional[str]:
    return get_text(dictionary, key)


def convert_number(dictionary: Dictionary, key: Name) -> Optional[str]:
    number = get_number(dictionary, key)
    return None if number is None else format_number(number)


def convert_rect(dictionary: Dictionary, key: Name) -> Optional[str]:
    """Rectangle as "left,bottom,right,top"."""
    rect = normalize_rect(dictionary, key)
    if rect is None:
        return None
    return ','.join(format_number(x) for x in rect)


def convert_color(dictionary: Dictionary, key: Name) -> Optional[str]:
    """Convert an RGB array (0-1 range) to "#rrggbb". Gray and CMYK are not handled."""
    rgb = as_numbers(get_value(dictionary, key))
    if rgb is None or len(rgb) != 3:
        return None
    if any(c < 0 or c > 1 for c in rgb):
        return None
    r, g, b = [int(c * 255) for c in rgb]
    return f"#{r:02x}{g:02x}{b:02x}"


# Annotation flag bits, in output order
FLAG_NAMES = (
    ('invisible', 1 << 0),
    ('hidden', 1 << 1),
    ('print', 1 << 2),
    ('nozoom', 1 << 3),
    ('norotate', 1 << 4),
    ('noview', 1 << 5),
    ('readonly', 1 << 6),
    ('locked', 1 << 7),
)


def decode_flags(mask: int) -> str:
    return ','.join(name for name, bit in FLAG_NAMES if mask & bit)


def convert_flags(dictionary: Dictionary, key: Name) -> Optional[str]:
    """
    Decode the /F bitmask to comma-separated flag names.

    An explicit 0 gives an empty string; a missing key gives None.
    """
    mask = get_integer(dictionary, key)
    if mask is None:
        return None
    return decode_flags(mask)


def convert_quadpoints(dictionary: Dictionary, key: Name) -> Optional[str]:
    """
    Flatten /QuadPoints to comma-separated coordinates, 8 per quadrilateral.

    Corner order within each quadrilateral is kept exactly as stored; callers
    that need a particular winding must supply it that way.
    """
    numbers = as_numbers(get_value(dictionary, key))
    if not numbers or len(numbers) % 8:
        return None
    groups = [numbers[i:i + 8] for i in range(0, len(numbers), 8)]
    return ','.join(','.join(format_number(x) for x in group) for group in groups)


def ink_gesture(path: Any) -> Optional[str]:
    """Render one /InkList path as "x,y;x,y;..."."""
    numbers = as_numbers(path)
    if not numbers or len(numbers) % 2:
        return None
    points = zip(numbers[0::2], numbers[1::2])
    return ';'.join(f"{format_number(x)},{format_number(y)}" for x, y in points)


CONVERTERS: Dict[str, Converter] = {
    'text': convert_text,
    'number': convert_number,
    'rect': convert_rect,
    'color': convert_color,
    'flags': convert_flags,
    'quadpoints': convert_quadpoints,
}
