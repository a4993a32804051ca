"""
Main Orchestrator for the Expense Parser

Defines the end-to-end flow for turning one message into one record:

    message → cache lookup → (hit) re-resolve date → return
                           → (miss) credential → rate limit → LLM call
                                    → decode → units/dates → cache → return
                             any remote failure → heuristic parser → cache → return

DESIGN DECISION: The orchestrator enforces the boundaries:
- parse() NEVER raises and NEVER returns a partial record
- Remote failures are logged and answered by the fallback parser
- One remote attempt per request, bounded by a deadline
- Every step is audited under one correlation ID
"""

import asyncio
from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

from expense_parser.audit import AuditLogger, create_correlation_id
from expense_parser.audit.storage import AuditStorageInterface
from expense_parser.config import ParserSettings, get_settings
from expense_parser.models.expense import (
    CachedExtraction,
    ExtractionPayload,
    ExtractionRequest,
    ExtractionResult,
    ExtractionSource,
)
from expense_parser.parsing import (
    RateLimiter,
    ResultCache,
    build_extraction_prompt,
    decode_payload,
    fallback_parse,
    is_base_unit,
    normalize_key,
    normalize_unit,
    resolve_date,
)
from expense_parser.services.extraction import (
    CredentialSource,
    CredentialUnavailableError,
    EnvCredentialSource,
    MalformedResponseError,
    TextExtractor,
)
from expense_parser.services.extraction.gemini_service import GeminiTextExtractor

ExtractorFactory = Callable[[str], TextExtractor]


def gemini_extractor_factory(api_key: str) -> TextExtractor:
    """Build a Gemini extractor for api_key using the current Gemini settings."""
    gemini = get_settings().gemini
    return GeminiTextExtractor(
        api_key=api_key,
        model_name=gemini.model_name,
        temperature=gemini.temperature,
        max_output_tokens=gemini.max_tokens,
    )


class ExpenseMessageParser:
    """
    Orchestrates message-to-record extraction.

    Flow:
    1. Normalize → trimmed, lower-cased cache key
    2. Cache → return a hit without touching the limiter or the LLM
    3. Credential → queried lazily; missing means fallback
    4. Rate limit → wait until min interval since the last remote call
    5. Extract → one LLM call under a deadline
    6. Decode → strict payload schema; failure means fallback
    7. Normalize → base units (safety net) and paid date
    8. Cache → remote and fallback results alike

    The cache and rate limiter are injected so each parser instance
    (and each test) owns its own shared state.
    """

    def __init__(
        self,
        extractor_factory: Optional[ExtractorFactory] = None,
        credential_source: Optional[CredentialSource] = None,
        cache: Optional[ResultCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ParserSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._settings = settings or get_settings().parser
        self._extractor_factory = extractor_factory or gemini_extractor_factory
        self._credential_source = credential_source or EnvCredentialSource()
        self._cache = cache if cache is not None else ResultCache(
            max_entries=self._settings.cache_max_entries
        )
        self._rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            min_interval=self._settings.min_call_interval_seconds
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._today = today

        # Rebuilt only when the credential changes
        self._extractor: Optional[TextExtractor] = None
        self._extractor_credential: Optional[str] = None

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def is_remote_available(self) -> bool:
        """Whether a credential is available right now."""
        try:
            return bool(self._credential_source.get_credential())
        except Exception:
            return False

    async def parse_request(self, request: ExtractionRequest) -> ExtractionResult:
        return await self.parse(request.message, request.reference_date)

    async def parse(
        self,
        message: str,
        reference_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """
        Parse a message into an ExtractionResult.

        Args:
            message: Raw message text
            reference_date: "Today" for relative dates (defaults to today)
            correlation_id: Groups the audit events of this call

        Returns:
            A valid ExtractionResult, for every input.
        """
        correlation_id = correlation_id or create_correlation_id()
        reference = reference_date or self._today()
        if isinstance(reference, datetime):
            reference = reference.date()
        text = message if isinstance(message, str) else ("" if message is None else str(message))

        try:
            return await self._parse(text, reference, correlation_id)
        except Exception as e:
            # Last line of defence for the never-fails contract
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"message": text},
                correlation_id=correlation_id,
            )
            return fallback_parse(text, reference, self._settings.fallback_items_placeholder)

    async def _parse(
        self,
        text: str,
        reference: date,
        correlation_id: UUID,
    ) -> ExtractionResult:
        key = normalize_key(text)

        await self._audit_logger.log_parse_requested(
            message=text,
            reference_date=reference.isoformat(),
            correlation_id=correlation_id,
        )

        cached = self._cache.get(key)
        if cached is not None:
            await self._audit_logger.log_cache_hit(key=key, correlation_id=correlation_id)
            paid_date = resolve_date(cached.paid_date_expr, reference, today=self._today)
            return cached.to_result(paid_date)

        result, date_expr = await self._extract_remote(text, reference, correlation_id)

        if result is None:
            result = fallback_parse(text, reference, self._settings.fallback_items_placeholder)
            # Empty expression: a later hit resolves to its own reference date
            date_expr = ""
            await self._audit_logger.log_fallback_used(
                items=result.items,
                amount=result.amount,
                amount_inferred=result.amount_inferred,
                correlation_id=correlation_id,
            )

        self._cache.put(key, CachedExtraction.from_result(result, date_expr))
        await self._audit_logger.log_result_cached(
            key=key,
            source=result.source.value,
            correlation_id=correlation_id,
        )
        return result

    async def _get_extractor(self, correlation_id: UUID) -> Optional[TextExtractor]:
        """Current extractor, or None when the remote path is disabled."""
        try:
            credential = self._credential_source.get_credential()
        except CredentialUnavailableError as e:
            await self._audit_logger.log_remote_unavailable(
                reason=str(e),
                correlation_id=correlation_id,
            )
            return None
        except Exception as e:
            await self._audit_logger.log_remote_unavailable(
                reason=f"Credential source failed: {e}",
                correlation_id=correlation_id,
            )
            return None

        if not credential:
            await self._audit_logger.log_remote_unavailable(
                reason="Empty credential",
                correlation_id=correlation_id,
            )
            return None

        if self._extractor is None or credential != self._extractor_credential:
            try:
                self._extractor = self._extractor_factory(credential)
                self._extractor_credential = credential
            except Exception as e:
                self._extractor = None
                self._extractor_credential = None
                await self._audit_logger.log_remote_unavailable(
                    reason=f"Failed to create extractor: {e}",
                    correlation_id=correlation_id,
                )
                return None

        return self._extractor

    async def _extract_remote(
        self,
        text: str,
        reference: date,
        correlation_id: UUID,
    ) -> tuple[Optional[ExtractionResult], str]:
        """
        One remote attempt.

        Returns:
            (result, paid_date_expression), or (None, "") on any failure.
        """
        extractor = await self._get_extractor(correlation_id)
        if extractor is None:
            return None, ""

        prompt = build_extraction_prompt(text, reference)

        waited = await self._rate_limiter.wait()
        if waited > 0:
            await self._audit_logger.log_rate_limited(
                waited_seconds=waited,
                correlation_id=correlation_id,
            )

        model_name = getattr(extractor, "model_name", "unknown")
        await self._audit_logger.log_remote_call_started(
            model_name=model_name,
            correlation_id=correlation_id,
        )

        timeout = self._settings.request_timeout_seconds
        try:
            raw_response = await asyncio.wait_for(extractor.extract(prompt), timeout=timeout)
        except asyncio.TimeoutError:
            await self._audit_logger.log_external_service_error(
                service=model_name,
                error_message=f"Timed out after {timeout}s",
                correlation_id=correlation_id,
            )
            return None, ""
        except Exception as e:
            await self._audit_logger.log_external_service_error(
                service=model_name,
                error_message=f"{type(e).__name__}: {e}",
                correlation_id=correlation_id,
            )
            return None, ""

        try:
            if not isinstance(raw_response, str):
                raise MalformedResponseError(
                    repr(raw_response),
                    f"Expected text, got {type(raw_response).__name__}",
                )
            payload = decode_payload(raw_response)
        except MalformedResponseError as e:
            await self._audit_logger.log_malformed_response(
                raw_response=e.raw_response,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return None, ""

        result = self._compose(payload, text, reference)
        await self._audit_logger.log_remote_call_succeeded(
            items=result.items,
            amount=result.amount,
            correlation_id=correlation_id,
        )
        return result, payload.paid_date

    def _compose(
        self,
        payload: ExtractionPayload,
        text: str,
        reference: date,
    ) -> ExtractionResult:
        """Build the final record from a decoded payload."""
        # Canonical base fields from the model are kept as-is;
        # otherwise derive them from the stated unit.
        if is_base_unit(payload.base_unit) and payload.base_quantity:
            base_quantity, base_unit = payload.base_quantity, payload.base_unit
        elif payload.unit:
            base_quantity, base_unit = normalize_unit(payload.quantity, payload.unit)
        else:
            base_quantity, base_unit = "", ""

        return ExtractionResult(
            items=payload.items,
            amount=payload.amount,
            quantity=payload.quantity,
            unit=payload.unit,
            base_quantity=base_quantity,
            base_unit=base_unit,
            original_message=text,
            paid_date=resolve_date(payload.paid_date, reference, today=self._today),
            amount_inferred=True,
            source=ExtractionSource.REMOTE,
        )


def create_parser(
    audit_storage: Optional[AuditStorageInterface] = None,
) -> ExpenseMessageParser:
    """
    Factory function to create a fully wired parser.

    Uses Gemini with the key from GEMINI_API_KEY (read on every cache
    miss), and cache/limiter settings from PARSER_* variables.

    Args:
        audit_storage: Optional sink for audit events.
                      If None, events are only logged locally.
    """
    parser_settings = get_settings().parser

    return ExpenseMessageParser(
        extractor_factory=gemini_extractor_factory,
        credential_source=EnvCredentialSource(),
        cache=ResultCache(max_entries=parser_settings.cache_max_entries),
        rate_limiter=RateLimiter(min_interval=parser_settings.min_call_interval_seconds),
        audit_logger=AuditLogger(audit_storage),
        settings=parser_settings,
    )
