"""
Shared fixtures for sponsor classification tests.

Every test works against a fixed reference time so day deltas are exact.
"""

from datetime import datetime, timedelta, timezone

import pytest

from sponsortiers.categorization import SponsorClassifier
from sponsortiers.models.sponsor import RawSponsor, Transaction

NOW = datetime(2025, 7, 1, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> str:
    return (NOW - timedelta(days=days)).isoformat()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_transaction():
    def _make(tier_name="$10 one time", amount="$10", days=0, status="settled",
              processed=None, country="USA"):
        return Transaction(
            tier_name=tier_name,
            tier_monthly_amount=amount,
            processed_amount=processed if processed is not None else amount,
            status=status,
            transaction_date=days_ago(days),
            billing_country=country,
        )
    return _make


@pytest.fixture
def make_sponsor():
    def _make(handle="octocat", transactions=(), is_public=True, is_yearly=False,
              started_days_ago=365, display_name=None):
        return RawSponsor(
            handle=handle,
            is_public=is_public,
            is_yearly=is_yearly,
            sponsorship_started_on=days_ago(started_days_ago),
            transactions=list(transactions),
            display_name=display_name,
            payment_source="GitHub",
        )
    return _make


@pytest.fixture
def classify(now):
    classifier = SponsorClassifier()

    def _classify(sponsor):
        return classifier.classify(sponsor, now)
    return _classify


def export_record(handle, transactions, is_public=True, is_yearly=False, started_days_ago=365):
    """A sponsor record in the raw export layout"""
    return {
        "sponsor_handle": handle,
        "sponsor_profile_name": handle.title(),
        "sponsor_public_email": None,
        "sponsorship_started_on": days_ago(started_days_ago),
        "is_public": is_public,
        "is_yearly": is_yearly,
        "payment_source": "GitHub",
        "metadata": {},
        "transactions": [
            {
                "transaction_id": f"{handle}-{i}",
                "tier_name": tier_name,
                "tier_monthly_amount": amount,
                "processed_amount": amount,
                "is_prorated": False,
                "status": "settled",
                "transaction_date": days_ago(days),
                "billing_country": "USA",
                "billing_region": None,
                "vat": None,
            }
            for i, (tier_name, amount, days) in enumerate(transactions)
        ],
    }
