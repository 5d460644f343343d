"""
marginalia - export PDF annotations as XFDF

Reads annotation dictionaries through pikepdf and streams them out as an
XFDF-style document. Pages are numbered from 1 (standard XFDF uses 0).

Usage:
    from marginalia import export_pdf_annotations
    export_pdf_annotations("paper.pdf", "paper.xfdf")
"""

from marginalia.annotation import Annotation, element_name
from marginalia.errors import RegistryError, SinkError, XfdfError
from marginalia.fields import REGISTRY, Field, FieldRegistry
from marginalia.pdf_reader import iter_annotations, read_annotations
from marginalia.xfdf_exporter import (
    XfdfExporter,
    create_xfdf,
    export_pdf_annotations,
    write_xfdf,
)
from marginalia.xml_creator import XfdfWriter, XMLCreator

__version__ = "0.1.0"

__all__ = [
    'Annotation',
    'Field',
    'FieldRegistry',
    'REGISTRY',
    'RegistryError',
    'SinkError',
    'XMLCreator',
    'XfdfError',
    'XfdfExporter',
    'XfdfWriter',
    'create_xfdf',
    'element_name',
    'export_pdf_annotations',
    'iter_annotations',
    'read_annotations',
    'write_xfdf',
]
