"""Errors raised while loading and analysing a dataset.

Everything derives from ``LuminaError`` so the upload boundary can catch
one type and turn it into a single message for the user.
"""


class LuminaError(Exception):
    """Base class for user-facing pipeline failures."""


class EmptyDataError(LuminaError):
    """Parsed successfully but produced zero rows."""


class InvalidFormatError(LuminaError):
    """Content does not match its declared format (bad JSON, corrupt workbook)."""


class ReadFailureError(LuminaError):
    """The underlying bytes/text could not be read."""


class ParseFailureError(LuminaError):
    """Structural parse error after a successful read."""


class ImageExtractionError(LuminaError):
    """Gemini could not turn an image into a table."""


class AnalysisError(LuminaError):
    """Gemini returned no usable report."""
