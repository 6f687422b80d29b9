"""Domain models for sponsorship export data and classified sponsors"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

VALID_STATUSES = frozenset({'settled', 'credit_balance_adjusted'})

GITHUB_URL = "https://github.com"
AVATAR_URL = "https://avatars.githubusercontent.com"

class ExportRecordError(ValueError):
    """Raised when an export record is missing required fields"""
    pass

class SponsorCategory(str, Enum):
    """Lifecycle category assigned to a sponsor"""
    SPECIAL = "special"
    CURRENT = "current"
    PAST = "past"
    BACKER = "backer"

    @property
    def rank(self) -> int:
        return _CATEGORY_RANK[self]

_CATEGORY_RANK = {
    SponsorCategory.SPECIAL: 0,
    SponsorCategory.CURRENT: 1,
    SponsorCategory.PAST: 2,
    SponsorCategory.BACKER: 3,
}

def _require(record: Dict[str, Any], keys: tuple, kind: str) -> None:
    missing = [key for key in keys if key not in record]
    if missing:
        raise ExportRecordError(f"{kind} missing required field(s): {', '.join(missing)}")

def _require_type(record: Dict[str, Any], key: str, types: tuple, kind: str) -> Any:
    value = record[key]
    if not isinstance(value, types) or (bool not in types and isinstance(value, bool)):
        raise ExportRecordError(f"{kind} field '{key}' has invalid type {type(value).__name__}")
    return value

@dataclass(frozen=True)
class Transaction:
    """One payment event as exported (amounts and dates still in export text form)"""
    tier_name: str
    tier_monthly_amount: str
    processed_amount: str
    status: str
    transaction_date: str
    billing_country: str = ""
    transaction_id: Optional[str] = None
    is_prorated: bool = False
    billing_region: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status in VALID_STATUSES

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Transaction':
        if not isinstance(record, dict):
            raise ExportRecordError(f"Expected a transaction object, got {type(record).__name__}")
        _require(record, ('tier_name', 'tier_monthly_amount', 'processed_amount',
                          'status', 'transaction_date'), 'transaction')
        return cls(
            tier_name=_require_type(record, 'tier_name', (str, type(None)), 'transaction') or "",
            tier_monthly_amount=str(record['tier_monthly_amount']),
            processed_amount=str(record['processed_amount']),
            status=_require_type(record, 'status', (str,), 'transaction'),
            transaction_date=_require_type(record, 'transaction_date', (str,), 'transaction'),
            billing_country=record.get('billing_country') or "",
            transaction_id=record.get('transaction_id'),
            is_prorated=bool(record.get('is_prorated', False)),
            billing_region=record.get('billing_region')
        )

@dataclass(frozen=True)
class RawSponsor:
    """A sponsor entity exactly as found in the GitHub sponsorship export"""
    handle: str
    is_public: bool
    is_yearly: bool
    sponsorship_started_on: str
    transactions: List[Transaction] = field(default_factory=list)
    display_name: Optional[str] = None
    payment_source: Optional[str] = None

    @property
    def valid_transactions(self) -> List[Transaction]:
        return [tx for tx in self.transactions if tx.is_valid]

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'RawSponsor':
        """Build a sponsor from one export record

        Raises:
            ExportRecordError: If the record or one of its transactions is missing fields
                or holds a value of the wrong type
        """
        if not isinstance(record, dict):
            raise ExportRecordError(f"Expected an object, got {type(record).__name__}")
        _require(record, ('sponsor_handle', 'is_public', 'is_yearly',
                          'sponsorship_started_on', 'transactions'), 'sponsor')
        transactions = record['transactions']
        if not isinstance(transactions, list):
            raise ExportRecordError("sponsor field 'transactions' must be a list")

        return cls(
            handle=_require_type(record, 'sponsor_handle', (str,), 'sponsor'),
            is_public=_require_type(record, 'is_public', (bool,), 'sponsor'),
            is_yearly=_require_type(record, 'is_yearly', (bool,), 'sponsor'),
            sponsorship_started_on=_require_type(record, 'sponsorship_started_on', (str,), 'sponsor'),
            transactions=[Transaction.from_dict(tx) for tx in transactions],
            display_name=record.get('sponsor_profile_name'),
            payment_source=record.get('payment_source')
        )

@dataclass(frozen=True)
class SponsorProfile:
    """Public profile details returned by the enrichment lookup"""
    login: str
    name: Optional[str]
    avatar_url: str
    profile_url: str
    website_url: Optional[str] = None
    entity_type: str = "User"

    @classmethod
    def default_for(cls, login: str, name: Optional[str] = None) -> 'SponsorProfile':
        """Profile built from the export alone, used when no lookup is available"""
        return cls(
            login=login,
            name=name or login,
            avatar_url=f"{AVATAR_URL}/{login}",
            profile_url=f"{GITHUB_URL}/{login}"
        )

@dataclass(frozen=True)
class ClassifiedSponsor:
    """A public sponsor with its derived amounts, activity flags and category"""
    handle: str
    name: str
    avatar_url: str
    profile_url: str
    website_url: Optional[str]
    entity_type: str
    is_yearly: bool
    sponsorship_started_on: datetime
    payment_source: Optional[str]

    total_lifetime_amount: Decimal
    highest_tier_amount: Decimal
    has_recurring_tiers: bool
    recurring_tier_amount: Decimal
    current_monthly_amount: Decimal
    is_one_time: bool

    is_currently_active: bool
    latest_transaction_date: datetime
    days_since_last_transaction: int
    days_since_last_recurring_transaction: Optional[int]
    days_since_last_one_time_transaction: Optional[int]

    category: SponsorCategory
    primary_tier_name: str
    transaction_count: int
    all_tier_names: FrozenSet[str]
    countries: FrozenSet[str]

    def with_profile(self, profile: Optional[SponsorProfile]) -> 'ClassifiedSponsor':
        """Return a copy carrying the looked-up profile; the export name wins when the profile has none"""
        if profile is None:
            return self
        return replace(
            self,
            name=profile.name or self.name,
            avatar_url=profile.avatar_url or self.avatar_url,
            profile_url=profile.profile_url or self.profile_url,
            website_url=profile.website_url or None,
            entity_type=profile.entity_type or self.entity_type
        )
