"""
Margin arithmetic for print jobs.

Two views of the same margin choice are produced:
  * a CSS value for the injected ``@page { margin: ... }`` rule, which drives
    layout when printing to a device;
  * a margin kind (plus points for custom margins) for PDF rendering.

Unitless values are pixels in both views. Everything here is pure.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional

SIDES = ('top', 'right', 'bottom', 'left')

# points per unit; 1pt = 1/72in, 96px = 1in
POINTS_PER_UNIT = {
    'pt': 1.0,
    'px': 72 / 96,
    'mm': 2.83465,
    'cm': 28.3465,
    'in': 72.0,
}

_LETTER = re.compile(r'[a-zA-Z]')
_LEADING_NUMBER = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_MAGNITUDE_WITH_UNIT = re.compile(r'^([\d.]+)\s*(px|pt|mm|cm|in)?$')


class MarginKind(IntEnum):
    NONE = 0
    MINIMUM = 1
    DEFAULT = 2
    CUSTOM = 3


@dataclass(frozen=True)
class MarginPoints:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class PdfMarginOptions:
    kind: MarginKind
    points: Optional[MarginPoints] = None


def _leading_number(text: str) -> Optional[float]:
    """Parse the numeric prefix of ``text`` ("12.5abc" -> 12.5), or None."""
    match = _LEADING_NUMBER.match(text.strip())
    if not match:
        return None
    return float(match.group(0))


def _format_number(num: float) -> str:
    if num.is_integer() and abs(num) < 1e21:
        return str(int(num))
    return repr(num)


def _is_blank(value: Any) -> bool:
    return value is None or value == '' or value == 0 or value == '0'


def _margin_fields(margins: Any) -> Optional[Mapping[str, Any]]:
    """Return the margins as a mapping when they describe at least one side."""
    if hasattr(margins, 'model_dump'):
        margins = margins.model_dump()
    if not isinstance(margins, Mapping):
        return None
    if all(margins.get(side) is None for side in SIDES):
        return None
    return margins


def normalize_for_css(value: Any) -> str:
    """
    CSS length for one margin side.

    >>> normalize_for_css('16')
    '16px'
    >>> normalize_for_css('0.5cm')
    '0.5cm'
    """
    if _is_blank(value):
        return '0'
    text = str(value).strip()
    if _LETTER.search(text):
        # already carries a unit
        return text
    num = _leading_number(text)
    if num is None:
        return '0'
    return f'{_format_number(num)}px'


def to_points(value: Any) -> float:
    """
    Convert ``<magnitude><unit>`` to points. Unitless means pixels.

    Input that does not fit the pattern but starts with a number is read as
    pixels; anything else is 0.
    """
    if _is_blank(value):
        return 0.0
    text = str(value).strip().lower()
    match = _MAGNITUDE_WITH_UNIT.match(text)
    if not match:
        num = _leading_number(text)
        if num is None:
            return 0.0
        return num * POINTS_PER_UNIT['px']
    num = _leading_number(match.group(1))
    if num is None:
        return 0.0
    return num * POINTS_PER_UNIT[match.group(2) or 'px']


def css_margin(margin_type: Any, margins: Any = None) -> str:
    """Margin value for the ``@page`` rule."""
    if margin_type == 'none':
        return '0'
    if margin_type == 'minimum':
        return '0.5cm'
    if margin_type == 'custom':
        fields = _margin_fields(margins)
        if fields is not None:
            return ' '.join(normalize_for_css(fields.get(side)) for side in SIDES)
    return '1cm'


def pdf_margin_options(margin_type: Any, margins: Any = None) -> PdfMarginOptions:
    """Margin kind (and points for custom margins) for PDF rendering."""
    if margin_type == 'none':
        return PdfMarginOptions(MarginKind.NONE)
    if margin_type == 'minimum':
        return PdfMarginOptions(MarginKind.MINIMUM)
    if margin_type == 'custom':
        fields = _margin_fields(margins)
        if fields is not None:
            points = MarginPoints(*(to_points(fields.get(side)) for side in SIDES))
            return PdfMarginOptions(MarginKind.CUSTOM, points)
    return PdfMarginOptions(MarginKind.DEFAULT)
