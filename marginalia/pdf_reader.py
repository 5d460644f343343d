"""
Read annotations from a PDF with pikepdf.

Pages are numbered from 1. Annotations come out in page order and, within
a page, in /Annots order; that order is preserved all the way to the XFDF
output.
"""

import logging
from typing import Iterator, List, Optional

import pikepdf
from pikepdf import Array, Dictionary, Name

from marginalia.annotation import Annotation
from marginalia.fields import REGISTRY, FieldRegistry

logger = logging.getLogger(__name__)


def iter_annotations(pdf: pikepdf.Pdf, registry: FieldRegistry = REGISTRY) -> Iterator[Annotation]:
    """Yield an Annotation for every annotation dictionary in the document."""
    page_numbers = {
        page.obj.objgen: page_num
        for page_num, page in enumerate(pdf.pages, start=1)
    }

    def page_of(page_dict: Dictionary) -> Optional[int]:
        if not page_dict.is_indirect:
            return None
        return page_numbers.get(page_dict.objgen)

    for page_num, page in enumerate(pdf.pages, start=1):
        annots = page.obj.get(Name.Annots)
        if not isinstance(annots, Array) or len(annots) == 0:
            continue

        for index, item in enumerate(annots):
            if not isinstance(item, Dictionary):
                logger.debug("Page %d: /Annots entry %d is not a dictionary, skipping",
                             page_num, index)
                continue
            yield Annotation.from_dictionary(item, page_num, registry, page_of)


def read_annotations(pdf: pikepdf.Pdf, registry: FieldRegistry = REGISTRY) -> List[Annotation]:
    """Extract all annotations from a PDF as a list."""
    return list(iter_annotations(pdf, registry))
