"""Exceptions raised while exporting annotations."""


class XfdfError(Exception):
    """Base class for export failures."""


class RegistryError(XfdfError, ValueError):
    """The field registry is inconsistent (duplicate attribute, bad converter)."""


class SinkError(XfdfError):
    """The output sink rejected a write. The document is left as written."""
