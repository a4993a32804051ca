"""
Remote extraction using Google Gemini.

This service handles ONLY the transport:
1. Configuring the Gemini SDK with the current API key
2. Sending the prompt
3. Returning the raw response text

Decoding and validation of the response live in the orchestrator.
Single attempt per call - no retries. A failure here sends the
message to the heuristic parser.
"""

import google.generativeai as genai

from expense_parser.services.extraction.interface import (
    ExtractionServiceError,
    ExtractorUnavailableError,
    TextExtractor,
)


class GeminiTextExtractor(TextExtractor):
    """
    Text extraction capability backed by a Gemini model.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash-lite",
        temperature: float = 0.1,
        max_output_tokens: int = 512,
    ):
        if not api_key:
            raise ExtractorUnavailableError("Gemini API key is empty")

        self.model_name = model_name
        try:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(
                model_name=model_name,
                generation_config={
                    "temperature": temperature,  # Low temperature for consistency
                    "max_output_tokens": max_output_tokens,
                },
            )
        except Exception as e:
            raise ExtractorUnavailableError(
                f"Failed to create Gemini client: {e}"
            ) from e

    async def extract(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            raise ExtractionServiceError(f"Gemini returned no text: {e}") from e
        return text or ""
