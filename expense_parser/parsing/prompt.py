"""
Extraction prompt and response decoding.

The model is asked for one JSON object. Relative dates are resolved
against the reference date here, before the call, and written into the
prompt as ISO dates so the model only has to copy the right one.
"""

import re
from datetime import date

from pydantic import ValidationError

from expense_parser.models.expense import ExtractionPayload
from expense_parser.parsing.dates import relative_dates
from expense_parser.services.extraction.interface import MalformedResponseError

# Opening fence line with whatever language tag follows it
_OPENING_FENCE = re.compile(r"^```[^\s{\[`]*[ \t]*\n?")

_PROMPT_TEMPLATE = """Parse a Vietnamese expense message to JSON.

Today's date: {reference}

Message: "{message}"

Return ONLY a JSON object, no explanation:
{{"items": "description", "amount": number_in_VND, "quantity": "", "unit": "", "baseQuantity": "", "baseUnit": "", "paidDate": "YYYY-MM-DD"}}

Amount rules:
- "triệu" / "tr" = x1,000,000
- "k" / "nghìn" = x1,000
- "tỷ" = x1,000,000,000
- amount is a whole number of VND

Quantity and unit rules:
- "quantity" is the number of things bought, "unit" the unit as written (e.g. "2", "bao")
- leave quantity and unit as "" when the message states none
- never confuse the quantity with the amount

Base unit rules (baseQuantity / baseUnit):
- g, kg → kg (1000 g = 1 kg)
- ml, L, lít → L (1000 ml = 1 L)
- cm, m → m (100 cm = 1 m)
- cái, lon, chai, bịch, bao, pcs → pcs (1:1)
- any other unit → baseQuantity "" and baseUnit ""

Date rules (paidDate, always YYYY-MM-DD):
{date_rules}
- an explicit date in the message wins
- no date mentioned → {reference}

Remove the amount, quantity, unit and date words from items.

Examples:
"cọc nhà 34 triệu" → {{"items": "Cọc nhà", "amount": 34000000, "quantity": "", "unit": "", "baseQuantity": "", "baseUnit": "", "paidDate": "{reference}"}}
"ăn trưa 150k" → {{"items": "Ăn trưa", "amount": 150000, "quantity": "", "unit": "", "baseQuantity": "", "baseUnit": "", "paidDate": "{reference}"}}
"mua 2 bao gạo 300k hôm qua" → {{"items": "Gạo", "amount": 300000, "quantity": "2", "unit": "bao", "baseQuantity": "2", "baseUnit": "pcs", "paidDate": "{yesterday}"}}
"500g thịt bò 120k" → {{"items": "Thịt bò", "amount": 120000, "quantity": "500", "unit": "g", "baseQuantity": "0.5", "baseUnit": "kg", "paidDate": "{reference}"}}"""


def build_extraction_prompt(message: str, reference_date: date) -> str:
    """Build the extraction prompt for one message."""
    resolved = relative_dates(reference_date)
    date_rules = "\n".join(
        f'- "{phrase}" = {day.isoformat()}' for phrase, day in resolved.items()
    )
    return _PROMPT_TEMPLATE.format(
        reference=reference_date.isoformat(),
        message=message.replace('"', "'"),
        date_rules=date_rules,
        yesterday=resolved["hôm qua"].isoformat(),
    )


def strip_code_fence(text: str) -> str:
    """Remove a ```<lang> ... ``` wrapper (any tag, or none) if present."""
    cleaned = _OPENING_FENCE.sub("", text.strip(), count=1)
    if cleaned.endswith("```"):
        cleaned = cleaned[:-len("```")]
    return cleaned.strip()


def decode_payload(raw_response: str) -> ExtractionPayload:
    """
    Decode a raw model response into an ExtractionPayload.

    Raises:
        MalformedResponseError: If the text is not valid JSON or does
            not match the payload schema.
    """
    cleaned = strip_code_fence(raw_response)
    if not cleaned:
        raise MalformedResponseError(raw_response, "Empty response")
    try:
        return ExtractionPayload.model_validate_json(cleaned)
    except ValidationError as e:
        raise MalformedResponseError(
            raw_response,
            f"Response does not match payload schema: {e.error_count()} error(s)",
        ) from e
