"""csv-to-json exception hierarchy.

Every error carries the HTTP status the API answers with.
"""

from __future__ import annotations


class CsvToJsonError(Exception):
    """Base exception for all csv-to-json errors."""

    status_code = 500


class InputError(CsvToJsonError):
    """The caller supplied no usable input."""

    status_code = 400


class MissingUploadError(InputError):
    """No file was sent under the expected form field."""

    def __init__(self, field: str = "file") -> None:
        self.field = field
        super().__init__(f"No file provided under field '{field}'")


class UnreadableUploadError(InputError):
    """Uploaded bytes could not be decoded as text."""


class UnsupportedFileTypeError(InputError):
    status_code = 422


class InvalidDelimiterError(CsvToJsonError, ValueError):
    """Delimiter is not a single usable character."""

    status_code = 422

    def __init__(self, delimiter: str) -> None:
        self.delimiter = delimiter
        super().__init__(f"Invalid delimiter: {delimiter!r}")


class ConversionError(CsvToJsonError):
    """Unexpected fault while converting text to records."""

    def __init__(self, message: str = "Failed to parse CSV") -> None:
        super().__init__(message)


class StorageError(CsvToJsonError):
    """Upload store operation failed."""


class StoredFileNotFoundError(StorageError):
    status_code = 404

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__("File not found")


class InvalidStoragePathError(StorageError):
    """Resolved path escapes the upload directory."""

    status_code = 400

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__("Invalid path")
