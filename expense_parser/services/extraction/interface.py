"""
Abstract Extraction Interfaces

Two collaborators sit behind these interfaces:
1. TextExtractor - turns a prompt into raw response text (an LLM)
2. CredentialSource - supplies the API key, queried lazily on every call

The orchestrator only depends on these interfaces, so tests swap in
fakes and a hosting service can plug in any provider.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_parser.config import GeminiSettings


class ExtractionServiceError(Exception):
    """Base exception for remote extraction errors."""
    pass


class CredentialUnavailableError(ExtractionServiceError):
    """No credential is configured."""
    pass


class ExtractorUnavailableError(ExtractionServiceError):
    """The extractor could not be constructed (SDK missing, bad key, ...)."""
    pass


class MalformedResponseError(ExtractionServiceError):
    """The model answered with something that is not a valid payload."""

    def __init__(self, raw_response: str, message: str):
        self.raw_response = raw_response
        super().__init__(message)


class TextExtractor(ABC):
    """
    Abstract interface for the text-understanding capability.
    """

    model_name: str = "unknown"

    @abstractmethod
    async def extract(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            ExtractionServiceError (or any exception) on failure.
        """
        pass


class CredentialSource(ABC):
    """
    Abstract interface for the API credential.

    Queried on every cache miss so a credential that appears after
    start-up is picked up without a restart.
    """

    @abstractmethod
    def get_credential(self) -> str:
        """
        Returns:
            A non-empty credential.

        Raises:
            CredentialUnavailableError: If nothing is configured.
        """
        pass


class EnvCredentialSource(CredentialSource):
    """Reads GEMINI_API_KEY (environment or .env) on every call."""

    def get_credential(self) -> str:
        api_key = GeminiSettings().api_key.strip()
        if not api_key:
            raise CredentialUnavailableError("GEMINI_API_KEY is not set")
        return api_key


class StaticCredentialSource(CredentialSource):
    """A fixed credential, or none. Useful for explicit wiring and tests."""

    def __init__(self, credential: Optional[str] = None):
        self._credential = credential

    def set_credential(self, credential: Optional[str]) -> None:
        self._credential = credential

    def get_credential(self) -> str:
        if not self._credential:
            raise CredentialUnavailableError("No credential configured")
        return self._credential
