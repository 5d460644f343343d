"""
Streaming XML output.

XMLCreator is a small nesting-aware front end to a SAX ContentHandler.
It is meant for data-oriented XML:
1. No mixed content
2. No processing instructions or entities
3. Namespace prefixes are declared once, on the outermost element
4. Attributes are plain CDATA without namespaces

XfdfWriter is the default sink: an XMLGenerator that indents nested
elements and writes empty elements in short form.
"""

import re
from collections import namedtuple
from typing import Dict, Mapping, Optional
from xml.sax.handler import ContentHandler
from xml.sax.saxutils import XMLGenerator
from xml.sax.xmlreader import AttributesImpl

from marginalia.errors import SinkError

_Element = namedtuple('_Element', 'prefix name qname')

# Characters XML 1.0 does not allow, including lone surrogates
_INVALID_XML_CHARS = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]')


def xml_safe(text: str) -> str:
    """Replace characters that cannot appear in an XML document with U+FFFD."""
    return _INVALID_XML_CHARS.sub('\ufffd', text)


class XMLCreator:
    """
    Emit properly nested elements to a SAX sink.

    Usage:
        xml = XMLCreator(XfdfWriter(out), {'': XFDF_NS})
        xml.start_document()
        xml.start('', 'xfdf')
        xml.content('', 'contents', 'text')
        xml.end_all()
        xml.end_document()
    """

    def __init__(self, sink: ContentHandler, namespaces: Optional[Mapping[str, str]] = None,
                 declare_namespaces: bool = True):
        self.sink = sink
        self.namespaces: Dict[str, str] = dict(namespaces or {})
        self._declare = declare_namespaces and bool(self.namespaces)
        self._elements = []
        self._root_closed = False

    @property
    def depth(self) -> int:
        return len(self._elements)

    def _send(self, method: str, *args):
        try:
            getattr(self.sink, method)(*args)
        except (OSError, ValueError) as e:
            raise SinkError(f"Output sink failed during {method}: {e}") from e

    def start_document(self) -> 'XMLCreator':
        self._send('startDocument')
        return self

    def end_document(self):
        self._send('endDocument')

    def start(self, prefix: str, name: str, attributes: Optional[Mapping[str, str]] = None) -> 'XMLCreator':
        if not self._elements and self._root_closed:
            raise ValueError(f"Document element already closed, cannot start {name!r}")
        if prefix and prefix not in self.namespaces:
            raise ValueError(f"Undeclared namespace prefix: {prefix!r}")
        qname = f"{prefix}:{name}" if prefix else name

        attrs = {}
        if self._declare:
            for ns_prefix, uri in self.namespaces.items():
                attrs['xmlns:' + ns_prefix if ns_prefix else 'xmlns'] = uri
            self._declare = False
        if attributes:
            attrs.update(attributes)

        self._elements.append(_Element(prefix, name, qname))
        self._send('startElement', qname, AttributesImpl(attrs))
        return self

    def content(self, prefix: str, name: str, text: str,
                attributes: Optional[Mapping[str, str]] = None) -> 'XMLCreator':
        self.start(prefix, name, attributes)
        if text:
            self._send('characters', text)
        return self.end()

    def empty(self, prefix: str, name: str,
              attributes: Optional[Mapping[str, str]] = None) -> 'XMLCreator':
        return self.content(prefix, name, '', attributes)

    def end(self) -> 'XMLCreator':
        """Close the innermost open element. Does nothing if none is open."""
        if not self._elements:
            return self
        element = self._elements.pop()
        if not self._elements:
            self._root_closed = True
        self._send('endElement', element.qname)
        return self

    def end_to(self, depth: int) -> 'XMLCreator':
        """Close elements until only depth remain open."""
        while len(self._elements) > depth:
            self.end()
        return self

    def end_all(self) -> 'XMLCreator':
        return self.end_to(0)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # After a failure the caller decides what happens to the output
        if exc_type is None:
            self.end_all()
            self.end_document()
        return False


class XfdfWriter(XMLGenerator):
    """XMLGenerator that indents child elements."""

    def __init__(self, out=None, indent: Optional[str] = '  ', encoding: str = 'utf-8'):
        super().__init__(out, encoding, short_empty_elements=True)
        self._indent = indent
        self._depth = 0
        self._has_children = []

    def _newline(self):
        if self._indent is not None:
            self.ignorableWhitespace('\n' + self._indent * self._depth)

    def startElement(self, name, attrs):
        if self._has_children:
            self._has_children[-1] = True
            self._newline()
        attrs = AttributesImpl({key: xml_safe(value) for key, value in attrs.items()})
        super().startElement(name, attrs)
        self._has_children.append(False)
        self._depth += 1

    def characters(self, content):
        super().characters(xml_safe(content))

    def endElement(self, name):
        self._depth -= 1
        if self._has_children.pop():
            self._newline()
        super().endElement(name)

    def endDocument(self):
        if self._indent is not None:
            self.ignorableWhitespace('\n')
        super().endDocument()
