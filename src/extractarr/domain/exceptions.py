"""Extraction pipeline exceptions."""

from __future__ import annotations


class ExtractarrError(Exception):
    """Base class for all extractarr errors."""


class ExtractionError(ExtractarrError):
    """Raised inside an extractor when a site payload cannot be processed.

    Never escapes an extractor: it is caught at the ``extract()`` boundary
    and converted into an empty stream list.
    """


class PatternNotFoundError(ExtractionError):
    """Raised when an expected marker, attribute or script is missing."""


class PayloadDecodeError(ExtractionError):
    """Raised when a payload cannot be decrypted, unpacked or parsed."""


class RegistryError(ExtractarrError):
    """Base class for extractor registry errors."""


class DuplicateExtractorError(RegistryError):
    """Raised when two extractor infos share the same id."""


class UnknownExtractorError(RegistryError):
    """Raised when an extractor id is not known to the registry."""
