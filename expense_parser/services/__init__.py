"""Services package."""

from expense_parser.services.extraction import (
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
