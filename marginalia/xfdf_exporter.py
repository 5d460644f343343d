"""
XFDF Exporter

Writes annotations as an XFDF-style document. Output is streamed element
by element; nothing is buffered beyond the current annotation.

The page attribute is 1-based. Standard XFDF, as imported by Acrobat, is
0-based: use page - 1 when handing the output to such a viewer.

Requirements:
    pip install pikepdf

Usage:
    from marginalia.xfdf_exporter import export_pdf_annotations
    export_pdf_annotations("paper.pdf", "paper.xfdf")
"""

import io
import logging
import os
from typing import Iterable, Mapping, Optional

import pikepdf

from marginalia.annotation import Annotation
from marginalia.pdf_reader import iter_annotations
from marginalia.pdf_values import format_number
from marginalia.xml_creator import XfdfWriter, XMLCreator

logger = logging.getLogger(__name__)

XFDF_NS = 'http://ns.adobe.com/xfdf/'
HELPER_NS = 'urn:x-marginalia:helpers'
HELPER_PREFIX = 'm'

# Default namespace first; declared on the root element only
NAMESPACES = {
    '': XFDF_NS,
    HELPER_PREFIX: HELPER_NS,
}


class XfdfExporter:
    """
    Serialize a sequence of Annotations to a SAX sink.

    Annotations are written in the order given. Each element carries the
    annotation's field set as attributes, followed by (when present) the
    ink gestures, the rectangle edges helper, the text contents and, if
    include_popups is set, the popup.
    """

    def __init__(
        self,
        namespaces: Optional[Mapping[str, str]] = None,
        helper_prefix: str = HELPER_PREFIX,
        include_popups: bool = False,
        source: Optional[str] = None,
    ):
        self.namespaces = dict(NAMESPACES if namespaces is None else namespaces)
        if helper_prefix not in self.namespaces:
            raise ValueError(f"Helper prefix {helper_prefix!r} has no namespace")
        self.helper_prefix = helper_prefix
        self.include_popups = include_popups
        self.source = source

    def write(self, annotations: Iterable[Annotation], sink) -> int:
        """
        Write one complete XFDF document.

        Returns:
            Number of annotations written

        Raises:
            SinkError: the sink rejected a write; output is left as is
        """
        xml = XMLCreator(sink, self.namespaces)
        count = 0

        with xml:
            xml.start_document()
            xml.start('', 'xfdf', {'xml:space': 'preserve'})
            if self.source:
                xml.empty('', 'f', {'href': self.source})
            xml.start('', 'annots')

            for annotation in annotations:
                self._write_annotation(xml, annotation)
                count += 1

        return count

    def _write_annotation(self, xml: XMLCreator, annotation: Annotation):
        level = xml.depth
        xml.start('', annotation.element_name, annotation.fields)

        try:
            if annotation.ink_paths:
                xml.start('', 'inklist')
                for gesture in annotation.ink_paths:
                    xml.content('', 'gesture', gesture)
                xml.end()

            if annotation.rect is not None:
                left, bottom, right, top = annotation.rect
                xml.empty(self.helper_prefix, 'rect', {
                    'left': format_number(left),
                    'bottom': format_number(bottom),
                    'right': format_number(right),
                    'top': format_number(top),
                })

            if annotation.content:
                xml.content('', 'contents', annotation.content)

            if self.include_popups and annotation.popup_fields is not None:
                xml.empty('', 'popup', annotation.popup_fields)

        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning("Page %d: could not write %s child elements: %s",
                           annotation.page, annotation.element_name, e)

        # Close back to our own level whatever happened above
        xml.end_to(level)


def write_xfdf(annotations: Iterable[Annotation], out, indent: Optional[str] = '  ', **options) -> int:
    """
    Write annotations as XFDF to a text or binary stream.

    Args:
        annotations: Annotations in document order
        out: Writable stream
        indent: Indentation per level, or None for compact output
        **options: Passed to XfdfExporter

    Returns:
        Number of annotations written
    """
    return XfdfExporter(**options).write(annotations, XfdfWriter(out, indent=indent))


def create_xfdf(annotations: Iterable[Annotation], **options) -> str:
    """Create XFDF XML string from annotations."""
    buffer = io.StringIO()
    write_xfdf(annotations, buffer, **options)
    return buffer.getvalue()


def export_pdf_annotations(pdf_path: str, output_path: str, **options) -> int:
    """
    Export all annotations of a PDF file to an XFDF file.

    Args:
        pdf_path: Path to the PDF file
        output_path: Path of the XFDF file to write
        **options: Passed to write_xfdf

    Returns:
        Number of annotations exported
    """
    options.setdefault('source', os.path.basename(pdf_path))

    with pikepdf.open(pdf_path) as pdf:
        with open(output_path, 'wb') as f:
            count = write_xfdf(iter_annotations(pdf), f, **options)

    logger.info("Exported %d annotation(s) from %s to %s", count, pdf_path, output_path)
    return count
