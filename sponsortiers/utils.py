"""Amount, date and display helpers shared by the classifier and the reports"""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Union

RECURRING_TIER_MARKERS = ("a month", "/month", "monthly")

# Timestamp layouts seen in GitHub sponsorship exports, tried after ISO-8601
TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S UTC",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)

COUNTRY_NAMES = {
    "USA": "United States",
    "United States of America": "United States",
    "GBR": "United Kingdom",
    "DEU": "Germany",
    "FRA": "France",
    "BRA": "Brazil",
    "CHN": "China",
    "JPN": "Japan",
    "KOR": "South Korea",
    "CHE": "Switzerland",
    "SWE": "Sweden",
    "POL": "Poland",
    "ARE": "UAE",
    "TZA": "Tanzania",
    "COL": "Colombia",
    "IND": "India",
    "ISR": "Israel",
}

def parse_amount(text: Union[str, int, float, Decimal]) -> Decimal:
    """
    Parse an export currency string such as "$1,250.00" into a Decimal.

    Raises:
        ValueError: If the text is not a finite number once the currency symbol is removed
    """
    if isinstance(text, Decimal):
        amount = text
    else:
        cleaned = str(text).strip()
        if cleaned.startswith('-$'):
            cleaned = '-' + cleaned[2:]
        cleaned = cleaned.lstrip('$').replace(',', '').strip()
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {text!r}")

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {text!r}")
    return amount

def parse_timestamp(text: str) -> datetime:
    """
    Parse an export timestamp into an aware UTC datetime.

    Raises:
        ValueError: If none of the known layouts match
    """
    if isinstance(text, datetime):
        parsed = text
    else:
        value = str(text).strip()
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            parsed = None
            for fmt in TIMESTAMP_FORMATS:
                try:
                    parsed = datetime.strptime(value, fmt)
                    break
                except ValueError:
                    continue
            if parsed is None:
                raise ValueError(f"Invalid timestamp: {text!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def days_since(timestamp: datetime, now: datetime) -> int:
    """Whole days elapsed between timestamp and now (floored)"""
    return int((now - timestamp).total_seconds() // 86400)

def is_recurring_tier_name(name: str) -> bool:
    """Recurring tiers are recognised by their name only; the export has no structured flag"""
    return any(marker in name for marker in RECURRING_TIER_MARKERS)

def format_amount(amount: Union[Decimal, float]) -> str:
    return f"${float(amount):.2f}"

def format_amount_short(amount: Union[Decimal, float]) -> str:
    """Compact amount for tables: $1.2k above a thousand, whole dollars below"""
    value = float(amount)
    if value >= 1000:
        return f"${value / 1000:.1f}k"
    return f"${round(value)}"

def format_since_when(started_on: datetime) -> str:
    return f"since {started_on.strftime('%b')} {started_on.year}"

def country_name(code: str) -> str:
    return COUNTRY_NAMES.get(code, code)
