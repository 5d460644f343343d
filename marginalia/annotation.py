"""
Annotation model and XFDF element names.

An Annotation is built once from a resolved annotation dictionary and the
page it was found on. It keeps only converted text, so it can be written
after the source PDF is closed.
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from pikepdf import Dictionary, Name

from marginalia.fields import REGISTRY, FieldRegistry, PageLookup
from marginalia.pdf_values import (
    Number,
    get_array,
    get_boolean,
    get_dictionary,
    get_name,
    get_string,
    ink_gesture,
    normalize_rect,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ELEMENT NAMES
# =============================================================================

# PDF /Subtype -> XFDF element
ELEMENT_NAMES = {
    'Text': 'text',
    'FreeText': 'freetext',
    'Highlight': 'highlight',
    'Underline': 'underline',
    'StrikeOut': 'strikeout',
    'Squiggly': 'squiggly',
    'Ink': 'ink',
    'Line': 'line',
    'Square': 'square',
    'Circle': 'circle',
    'Polygon': 'polygon',
    'PolyLine': 'polyline',
    'Stamp': 'stamp',
    'Caret': 'caret',
    'FileAttachment': 'fileattachment',
    'Sound': 'sound',
    'Popup': 'popup',
    'Link': 'link',
    'Redact': 'redact',
}

FALLBACK_ELEMENT = 'annot'

_XML_NAME = re.compile(r'^[A-Za-z_][\w.-]*$')


def element_name(kind: Optional[str]) -> str:
    """Map an annotation kind to its element name. Never fails."""
    if kind in ELEMENT_NAMES:
        return ELEMENT_NAMES[kind]
    if kind and _XML_NAME.match(kind):
        return kind
    return FALLBACK_ELEMENT


# =============================================================================
# ANNOTATION
# =============================================================================

@dataclass(frozen=True)
class Annotation:
    kind: Optional[str]
    page: int
    fields: Mapping[str, str]
    content: Optional[str] = None
    popup: Optional[Dictionary] = field(default=None, compare=False, repr=False)
    popup_fields: Optional[Mapping[str, str]] = None
    rect: Optional[Tuple[Number, Number, Number, Number]] = None
    ink_paths: Tuple[str, ...] = ()
    issues: Tuple[str, ...] = ()

    @classmethod
    def from_dictionary(
        cls,
        annot: Dictionary,
        page_number: int,
        registry: FieldRegistry = REGISTRY,
        page_of: Optional[PageLookup] = None,
    ) -> 'Annotation':
        """
        Extract an annotation from its PDF dictionary.

        Args:
            annot: Resolved annotation dictionary
            page_number: 1-based number of the page whose /Annots held it
            registry: Fields to evaluate
            page_of: Optional page dictionary -> page number lookup

        Returns:
            The Annotation. Problems that do not prevent output (such as a
            missing /Subtype) are listed in its issues.
        """
        issues = []

        kind = get_name(annot, Name.Subtype)
        if kind is None:
            issues.append("annotation has no /Subtype")
        elif element_name(kind) == FALLBACK_ELEMENT:
            issues.append(f"/Subtype {kind!r} is not a usable element name")

        fields = registry.evaluate(annot, page_number, page_of)
        page = int(fields.get(registry.page_attribute, page_number))

        popup = get_dictionary(annot, Name.Popup)
        popup_fields = None
        if popup is not None:
            values = dict(registry.evaluate(popup, page))
            is_open = get_boolean(popup, Name.Open)
            if is_open is not None:
                values['open'] = 'yes' if is_open else 'no'
            popup_fields = MappingProxyType(values)

        ink_paths = ()
        if kind == 'Ink':
            ink_paths = read_ink_paths(annot)

        for issue in issues:
            logger.warning("Page %d: %s", page, issue)

        return cls(
            kind=kind,
            page=page,
            fields=fields,
            content=get_string(annot, Name.Contents),
            popup=popup,
            popup_fields=popup_fields,
            rect=normalize_rect(annot, Name.Rect),
            ink_paths=ink_paths,
            issues=tuple(issues),
        )

    @property
    def element_name(self) -> str:
        return element_name(self.kind)

    def __str__(self):
        s = f"Page {self.page}: {self.kind or '(no subtype)'}"
        if self.content:
            preview = self.content[:30] + "..." if len(self.content) > 30 else self.content
            s += f" - {preview}"
        return s


def read_ink_paths(annot: Dictionary) -> Tuple[str, ...]:
    """Render each /InkList path as a gesture string, skipping malformed ones."""
    ink_list = get_array(annot, Name.InkList)
    if ink_list is None:
        return ()

    gestures = []
    for index, path in enumerate(ink_list):
        gesture = ink_gesture(path)
        if gesture is None:
            logger.debug("Skipping malformed ink path %d", index)
            continue
        gestures.append(gesture)
    return tuple(gestures)
