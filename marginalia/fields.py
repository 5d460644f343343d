"""
Field registry: which dictionary keys become which XFDF attributes.

Every annotation is evaluated against the same ordered registry. Keys that
an annotation kind does not use simply never resolve, so there is no
per-kind field list to maintain. New attributes are added by appending a
Field to REGISTRY.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping, Optional

from pikepdf import Dictionary, Name

from marginalia.errors import RegistryError
from marginalia.pdf_values import CONVERTERS, get_dictionary, get_integer

logger = logging.getLogger(__name__)

PAGE_ATTRIBUTE = 'page'

PageLookup = Callable[[Dictionary], Optional[int]]


@dataclass(frozen=True)
class Field:
    """One extraction rule: dictionary key -> attribute, through a converter."""
    attribute: str
    key: Name
    converter: str

    def evaluate(self, dictionary: Dictionary) -> Optional[str]:
        return CONVERTERS[self.converter](dictionary, self.key)


class FieldRegistry:
    """Ordered, validated collection of Fields."""

    def __init__(self, fields: Iterable[Field], page_attribute: str = PAGE_ATTRIBUTE):
        self._fields = tuple(fields)
        self.page_attribute = page_attribute

        seen = set()
        for field in self._fields:
            if field.attribute in seen:
                raise RegistryError(f"Duplicate attribute in field registry: {field.attribute!r}")
            if field.converter not in CONVERTERS:
                raise RegistryError(
                    f"Unknown converter {field.converter!r} for attribute {field.attribute!r}"
                )
            seen.add(field.attribute)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def attributes(self):
        return [field.attribute for field in self._fields]

    def evaluate(
        self,
        dictionary: Dictionary,
        page_number: int,
        page_of: Optional[PageLookup] = None,
    ) -> Mapping[str, str]:
        """
        Build the attribute set for one annotation dictionary.

        Args:
            dictionary: The annotation dictionary
            page_number: 1-based page the annotation was found on
            page_of: Optional lookup from a page dictionary to its number,
                used when the annotation carries a /P page reference

        Returns:
            Read-only mapping of attribute name to text, in registry order,
            without the attributes that did not resolve.
        """
        if page_number < 1:
            raise ValueError(f"Page numbers start at 1, got {page_number}")

        values = {}
        for field in self._fields:
            if field.attribute == self.page_attribute:
                value = str(resolve_page(dictionary, field.key, page_number, page_of))
            else:
                try:
                    value = field.evaluate(dictionary)
                except (TypeError, ValueError, ArithmeticError) as e:
                    logger.warning("Could not convert %s for attribute %r: %s",
                                   field.key, field.attribute, e)
                    value = None
            if value is not None:
                values[field.attribute] = value
        return MappingProxyType(values)


def resolve_page(
    dictionary: Dictionary,
    key: Name,
    page_number: int,
    page_of: Optional[PageLookup] = None,
) -> int:
    """Explicit page from the dictionary if it has one, else page_number."""
    explicit = get_integer(dictionary, key)
    if explicit is not None and explicit >= 1:
        return explicit

    page_ref = get_dictionary(dictionary, key)
    if page_ref is not None and page_of is not None:
        found = page_of(page_ref)
        if found is not None and found >= 1:
            return found

    return page_number


REGISTRY = FieldRegistry([
    Field('page', Name.P, 'number'),
    Field('rect', Name.Rect, 'rect'),
    Field('name', Name.NM, 'text'),
    Field('color', Name.C, 'color'),
    Field('interior-color', Name.IC, 'color'),
    Field('opacity', Name.CA, 'number'),
    Field('flags', Name.F, 'flags'),
    Field('date', Name.M, 'text'),
    Field('creationdate', Name.CreationDate, 'text'),
    Field('title', Name.T, 'text'),
    Field('subject', Name.Subj, 'text'),
    Field('icon', Name.Name, 'text'),
    Field('state', Name.State, 'text'),
    Field('statemodel', Name.StateModel, 'text'),
    Field('coords', Name.QuadPoints, 'quadpoints'),
])
