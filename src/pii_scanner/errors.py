"""Exception hierarchy.

Only ConfigError escapes a run; the others are caught at the file,
sheet or request boundary and turned into statuses or empty results.
"""

from __future__ import annotations


class ScannerError(Exception):
    """Base class for pii-scanner errors."""


class ConfigError(ScannerError):
    """Bad caller input: empty file set, no category enabled, bad values."""


class WorkbookError(ScannerError):
    """A workbook could not be opened or a sheet could not be read."""


class NameServiceError(ScannerError):
    """The name-extraction service failed or answered with garbage."""


class ExportError(ScannerError):
    """Results could not be written out."""
