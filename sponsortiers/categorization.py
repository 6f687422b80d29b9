"""Sponsor categorization: transaction history to lifecycle category"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from sponsortiers.models.sponsor import (
    ClassifiedSponsor,
    RawSponsor,
    SponsorCategory,
    SponsorProfile,
    Transaction,
)
from sponsortiers.utils import (
    country_name,
    days_since,
    is_recurring_tier_name,
    parse_amount,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

MONTHLY_ACTIVE_DAYS = 45
YEARLY_ACTIVE_DAYS = 400
ONE_TIME_ACTIVE_DAYS = 30
SPECIAL_AMOUNT = Decimal(100)
SPECIAL_WINDOW_DAYS_PER_100 = 30
SPONSOR_MIN_AMOUNT = Decimal(5)

ProfileLookup = Callable[[str], Optional[SponsorProfile]]

class SponsorParseError(ValueError):
    """Raised when a sponsor's amounts or dates cannot be parsed"""

    def __init__(self, handle: str, reason: str):
        super().__init__(f"Sponsor {handle}: {reason}")
        self.handle = handle
        self.reason = reason

@dataclass(frozen=True)
class _ParsedTransaction:
    """A valid transaction with its amounts and date parsed"""
    tier_name: str
    tier_amount: Decimal
    processed_amount: Decimal
    date: datetime
    country: str
    is_recurring: bool

@dataclass
class ClassificationBatch:
    """Result of classifying a whole export"""
    sponsors: List[ClassifiedSponsor] = field(default_factory=list)
    excluded_private: int = 0
    excluded_without_transactions: int = 0
    parse_errors: List[SponsorParseError] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return len(self.parse_errors)

class SponsorClassifier:
    """Assigns a category and display attributes to a single sponsor"""

    def active_threshold_days(self, is_yearly: bool) -> int:
        """Days a recurring payment keeps a sponsor active"""
        return YEARLY_ACTIVE_DAYS if is_yearly else MONTHLY_ACTIVE_DAYS

    def special_window_days(self, amount: Decimal) -> int:
        """Days a large one-time payment keeps a sponsor special: 30 per full $100"""
        return max(1, int(amount // SPECIAL_AMOUNT)) * SPECIAL_WINDOW_DAYS_PER_100

    def recurring_category(self, monthly_amount: Decimal, is_active: bool) -> SponsorCategory:
        """Category for a sponsor with at least one recurring payment"""
        if monthly_amount >= SPONSOR_MIN_AMOUNT:
            return SponsorCategory.CURRENT if is_active else SponsorCategory.PAST
        elif monthly_amount > 0:
            return SponsorCategory.BACKER
        return SponsorCategory.PAST

    def one_time_category(self, amount: Decimal, days: int) -> SponsorCategory:
        """Category for a sponsor who only ever paid one-time tiers"""
        if amount >= SPONSOR_MIN_AMOUNT:
            return SponsorCategory.CURRENT if days <= ONE_TIME_ACTIVE_DAYS else SponsorCategory.PAST
        elif amount > 0:
            return SponsorCategory.BACKER
        return SponsorCategory.PAST

    def _parse_transactions(self, sponsor: RawSponsor) -> List[_ParsedTransaction]:
        """Parse valid transactions, newest first (export order breaks ties)"""
        parsed = []
        for tx in sponsor.valid_transactions:
            try:
                parsed.append(_ParsedTransaction(
                    tier_name=tx.tier_name,
                    tier_amount=parse_amount(tx.tier_monthly_amount),
                    processed_amount=parse_amount(tx.processed_amount),
                    date=parse_timestamp(tx.transaction_date),
                    country=country_name(tx.billing_country),
                    is_recurring=is_recurring_tier_name(tx.tier_name)
                ))
            except (ValueError, TypeError) as e:
                raise SponsorParseError(sponsor.handle, str(e)) from e
        return sorted(parsed, key=lambda tx: tx.date, reverse=True)

    def _special_one_time(self, one_time: List[_ParsedTransaction],
                          now: datetime) -> Tuple[Optional[_ParsedTransaction], bool]:
        """Most recent one-time payment of $100+ and whether its window is still open"""
        qualifying = [tx for tx in one_time if tx.tier_amount >= SPECIAL_AMOUNT]
        if not qualifying:
            return None, False
        latest = qualifying[0]
        return latest, days_since(latest.date, now) <= self.special_window_days(latest.tier_amount)

    def classify(self, sponsor: RawSponsor, now: datetime) -> Optional[ClassifiedSponsor]:
        """
        Classify one sponsor as of `now`.

        Returns:
            The classified sponsor, or None when the sponsor is private or has no
            settled transactions

        Raises:
            SponsorParseError: If an amount or date in the sponsor record is malformed
        """
        if sponsor.is_public is not True:
            return None

        transactions = self._parse_transactions(sponsor)
        if not transactions:
            return None

        try:
            started_on = parse_timestamp(sponsor.sponsorship_started_on)
        except (ValueError, TypeError) as e:
            raise SponsorParseError(sponsor.handle, str(e)) from e

        recurring = [tx for tx in transactions if tx.is_recurring]
        one_time = [tx for tx in transactions if not tx.is_recurring]

        latest = transactions[0]
        latest_recurring = recurring[0] if recurring else None
        latest_one_time = one_time[0] if one_time else None

        current_monthly = latest_recurring.tier_amount if latest_recurring else Decimal(0)
        days_since_recurring = days_since(latest_recurring.date, now) if latest_recurring else None
        days_since_one_time = days_since(latest_one_time.date, now) if latest_one_time else None

        is_active = (
            latest_recurring is not None
            and days_since_recurring <= self.active_threshold_days(sponsor.is_yearly)
        )
        special_tx, within_special_window = self._special_one_time(one_time, now)

        if (is_active and current_monthly >= SPECIAL_AMOUNT) or within_special_window:
            category = SponsorCategory.SPECIAL
        elif recurring:
            category = self.recurring_category(current_monthly, is_active)
        else:
            category = self.one_time_category(latest_one_time.tier_amount, days_since_one_time)

        if within_special_window:
            primary = special_tx
        elif is_active:
            primary = latest_recurring
        elif latest_one_time:
            primary = latest_one_time
        else:
            primary = max(transactions, key=lambda tx: tx.tier_amount)

        profile = SponsorProfile.default_for(sponsor.handle, sponsor.display_name)

        return ClassifiedSponsor(
            handle=sponsor.handle,
            name=profile.name,
            avatar_url=profile.avatar_url,
            profile_url=profile.profile_url,
            website_url=profile.website_url,
            entity_type=profile.entity_type,
            is_yearly=sponsor.is_yearly,
            sponsorship_started_on=started_on,
            payment_source=sponsor.payment_source,
            total_lifetime_amount=sum((tx.processed_amount for tx in transactions), Decimal(0)),
            highest_tier_amount=max(tx.tier_amount for tx in transactions),
            has_recurring_tiers=bool(recurring),
            recurring_tier_amount=max((tx.tier_amount for tx in recurring), default=Decimal(0)),
            current_monthly_amount=current_monthly,
            is_one_time=len(recurring) < len(transactions) / 2,
            is_currently_active=is_active,
            latest_transaction_date=latest.date,
            days_since_last_transaction=days_since(latest.date, now),
            days_since_last_recurring_transaction=days_since_recurring,
            days_since_last_one_time_transaction=days_since_one_time,
            category=category,
            primary_tier_name=primary.tier_name or "Unknown",
            transaction_count=len(transactions),
            all_tier_names=frozenset(tx.tier_name for tx in transactions),
            countries=frozenset(tx.country for tx in transactions if tx.country)
        )

def classify_sponsors(sponsors: Iterable[RawSponsor], now: datetime,
                      profile_lookup: Optional[ProfileLookup] = None,
                      classifier: Optional[SponsorClassifier] = None) -> ClassificationBatch:
    """
    Classify every sponsor in an export.

    Malformed sponsors are logged and skipped; they never abort the batch.
    Profiles are only looked up for sponsors that made it into the output.
    """
    classifier = classifier or SponsorClassifier()
    batch = ClassificationBatch()

    for sponsor in sponsors:
        if sponsor.is_public is not True:
            batch.excluded_private += 1
            continue

        try:
            classified = classifier.classify(sponsor, now)
        except SponsorParseError as e:
            logger.warning(f"Skipping sponsor: {e}")
            batch.parse_errors.append(e)
            continue

        if classified is None:
            batch.excluded_without_transactions += 1
            continue

        if profile_lookup:
            classified = classified.with_profile(profile_lookup(sponsor.handle))
        batch.sponsors.append(classified)

    logger.info(
        f"Classified {len(batch.sponsors)} sponsors "
        f"({batch.excluded_private} private, {batch.excluded_without_transactions} without "
        f"settled transactions, {batch.warning_count} skipped on errors)"
    )
    return batch
