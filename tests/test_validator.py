"""Tests for pre-save validation of parsed records."""

from datetime import date

import pytest

from expense_parser.config import AppSettings
from expense_parser.models.expense import ExtractionResult
from expense_parser.validation import ExpenseValidator

TODAY = date(2026, 1, 20)


@pytest.fixture
def validator():
    return ExpenseValidator(settings=AppSettings(), today=lambda: TODAY)


def make_result(**overrides) -> ExtractionResult:
    data = dict(items="ăn trưa", amount=150000, paid_date=TODAY)
    data.update(overrides)
    return ExtractionResult(**data)


class TestExpenseValidator:
    """Tests for ExpenseValidator.validate."""

    def test_valid_result(self, validator):
        result = validator.validate(make_result())
        assert result.is_valid
        assert result.issues == []

    def test_zero_amount_is_error(self, validator):
        """Test amount 0 (empty message) cannot be saved."""
        result = validator.validate(make_result(amount=0))
        assert not result.is_valid
        assert result.issues[0].field == "amount"
        assert result.issues[0].issue_type == "invalid_value"

    def test_sentinel_amount_is_error(self, validator):
        """Test the 'could not infer' sentinel needs the user's confirmation."""
        result = validator.validate(make_result(amount=1, amount_inferred=False))
        assert not result.is_valid
        assert result.issues[0].issue_type == "not_inferred"

    def test_huge_amount_is_warning(self, validator):
        result = validator.validate(make_result(amount=50_000_000_000))
        assert result.is_valid
        assert result.warnings[0].issue_type == "suspicious_value"

    def test_threshold_from_settings(self):
        validator = ExpenseValidator(
            settings=AppSettings(max_reasonable_amount_vnd=100_000),
            today=lambda: TODAY,
        )
        result = validator.validate(make_result(amount=150000))
        assert len(result.warnings) == 1

    def test_tomorrow_is_tolerated(self, validator):
        result = validator.validate(make_result(paid_date=date(2026, 1, 21)))
        assert result.issues == []

    def test_future_date_is_warning(self, validator):
        result = validator.validate(make_result(paid_date=date(2026, 3, 1)))
        assert result.is_valid
        assert result.warnings[0].issue_type == "future_date"

    def test_unrecognized_unit_is_info(self, validator):
        result = validator.validate(make_result(quantity="1", unit="hộp"))
        assert result.is_valid
        assert result.issues[0].severity == "info"
        assert result.issues[0].issue_type == "unrecognized_unit"

    def test_recognized_unit(self, validator):
        result = validator.validate(
            make_result(quantity="500", unit="g", base_quantity="0.5", base_unit="kg")
        )
        assert result.issues == []


class TestUserFriendlySummary:
    def test_no_issues(self, validator):
        summary = validator.get_user_friendly_summary(validator.validate(make_result()))
        assert summary == "✅ Looks good"

    def test_error_line_includes_fix(self, validator):
        summary = validator.get_user_friendly_summary(
            validator.validate(make_result(amount=1, amount_inferred=False))
        )
        assert summary.startswith("❌")
        assert "150k" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
