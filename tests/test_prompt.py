"""Tests for prompt building and response decoding."""

from datetime import date

import pytest

from expense_parser.parsing.prompt import (
    build_extraction_prompt,
    decode_payload,
    strip_code_fence,
)
from expense_parser.services.extraction import MalformedResponseError

REF = date(2026, 1, 20)


class TestBuildPrompt:
    def test_contains_reference_and_message(self):
        prompt = build_extraction_prompt("ăn trưa 150k", REF)
        assert "2026-01-20" in prompt
        assert 'Message: "ăn trưa 150k"' in prompt

    def test_relative_dates_are_precomputed(self):
        """Test relative phrases are written in as concrete ISO dates."""
        prompt = build_extraction_prompt("x", REF)
        assert '"hôm qua" = 2026-01-19' in prompt
        assert '"hôm kia" = 2026-01-18' in prompt
        assert '"tuần trước" = 2026-01-13' in prompt
        assert '"tháng trước" = 2025-12-21' in prompt

    def test_lists_base_units(self):
        prompt = build_extraction_prompt("x", REF)
        for unit in ("kg", "L", "m", "pcs"):
            assert unit in prompt

    def test_quotes_in_message_do_not_break_prompt(self):
        prompt = build_extraction_prompt('mua "bánh" 20k', REF)
        assert "mua 'bánh' 20k" in prompt

    def test_braces_in_message(self):
        prompt = build_extraction_prompt("{x} 20k", REF)
        assert "{x} 20k" in prompt


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    @pytest.mark.parametrize("tag", ["JSON", "javascript", "json5", ""])
    def test_any_language_tag(self, tag):
        """Test the whole opening fence line goes, whatever its tag."""
        assert strip_code_fence(f'```{tag}\n{{"a": 1}}\n```') == '{"a": 1}'

    def test_single_line_fence(self):
        assert strip_code_fence('```json {"a": 1}```') == '{"a": 1}'


class TestDecodePayload:
    def test_fenced_payload(self):
        payload = decode_payload(
            '```json\n{"items": "Cọc nhà", "amount": 34000000, "paidDate": "2026-01-20"}\n```'
        )
        assert payload.items == "Cọc nhà"
        assert payload.amount == 34000000
        assert payload.paid_date == "2026-01-20"

    def test_not_json(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            decode_payload("Sorry, I cannot help with that.")
        assert exc_info.value.raw_response == "Sorry, I cannot help with that."

    def test_empty(self):
        with pytest.raises(MalformedResponseError):
            decode_payload("```json\n```")

    def test_schema_violation(self):
        """Test a well-formed JSON with a string amount is rejected."""
        with pytest.raises(MalformedResponseError):
            decode_payload('{"items": "x", "amount": "150k"}')

    def test_negative_amount(self):
        with pytest.raises(MalformedResponseError):
            decode_payload('{"items": "x", "amount": -1}')

    def test_json_array(self):
        with pytest.raises(MalformedResponseError):
            decode_payload('[{"items": "x", "amount": 1}]')

    @pytest.mark.parametrize("tag", ["JSON", "javascript", "json5"])
    def test_fenced_payload_with_other_tags(self, tag):
        payload = decode_payload(f'```{tag}\n{{"items": "Ăn trưa", "amount": 150000}}\n```')
        assert payload.items == "Ăn trưa"
        assert payload.amount == 150000
