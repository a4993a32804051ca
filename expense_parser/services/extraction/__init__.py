"""Remote extraction services package."""

from expense_parser.services.extraction.interface import (
    CredentialSource,
    CredentialUnavailableError,
    EnvCredentialSource,
    ExtractionServiceError,
    ExtractorUnavailableError,
    MalformedResponseError,
    StaticCredentialSource,
    TextExtractor,
)

__all__ = [
    "CredentialSource",
    "CredentialUnavailableError",
    "EnvCredentialSource",
    "ExtractionServiceError",
    "ExtractorUnavailableError",
    "MalformedResponseError",
    "StaticCredentialSource",
    "TextExtractor",
]
