"""
Tests for `sponsortiers/categorization.py`.

Covers:
- Private sponsors and sponsors without settled transactions are excluded.
- Recurring activity windows (45 days monthly, 400 days yearly).
- One-time special windows (30 days per full $100) and their boundaries.
- Category priority and primary tier selection.
- Malformed records are skipped by the batch without aborting it.
"""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import Mock

import pytest

from sponsortiers.categorization import SponsorClassifier, SponsorParseError, classify_sponsors
from sponsortiers.models.sponsor import SponsorCategory, SponsorProfile


# -- Exclusions ----------------------------------------------------------------


def test_private_sponsor_is_excluded(make_sponsor, make_transaction, classify):
    sponsor = make_sponsor(is_public=False, transactions=[make_transaction("$500 a month", "$500")])

    assert classify(sponsor) is None


def test_sponsor_without_valid_transactions_is_excluded(make_sponsor, make_transaction, classify):
    sponsor = make_sponsor(transactions=[
        make_transaction("$50 one time", "$50", status="refunded"),
        make_transaction("$10 a month", "$10", status="pending"),
    ])

    assert classify(sponsor) is None


def test_invalid_transactions_do_not_count(make_sponsor, make_transaction, classify):
    sponsor = make_sponsor(transactions=[
        make_transaction("$10 one time", "$10", days=5),
        make_transaction("$900 one time", "$900", days=1, status="refunded"),
    ])

    result = classify(sponsor)

    assert result.category == SponsorCategory.CURRENT
    assert result.transaction_count == 1
    assert result.highest_tier_amount == Decimal("10")


# -- End-to-end scenarios ----------------------------------------------------------


def test_recurring_100_paid_today_is_special(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$100 a month", "$100", days=0)]))

    assert result.category == SponsorCategory.SPECIAL
    assert result.is_currently_active is True
    assert result.current_monthly_amount == Decimal("100")


def test_large_recent_one_time_is_special(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$421 one time", "$421", days=10)]))

    assert result.category == SponsorCategory.SPECIAL
    assert result.primary_tier_name == "$421 one time"
    assert result.is_currently_active is False


def test_small_old_one_time_is_past(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$10 one time", "$10", days=100)]))

    assert result.category == SponsorCategory.PAST


def test_lapsed_monthly_sponsor_is_past(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$20 a month", "$20", days=50)]))

    assert result.is_currently_active is False
    assert result.category == SponsorCategory.PAST
    assert result.days_since_last_recurring_transaction == 50


# -- Activity windows --------------------------------------------------------------


@pytest.mark.parametrize(
    "days, is_yearly, expected_active",
    [
        (45, False, True),
        (46, False, False),
        (300, True, True),
        (400, True, True),
        (401, True, False),
    ],
)
def test_recurring_activity_threshold(make_sponsor, make_transaction, classify,
                                      days, is_yearly, expected_active):
    result = classify(make_sponsor(
        is_yearly=is_yearly,
        transactions=[make_transaction("$20 a month", "$20", days=days)],
    ))

    assert result.is_currently_active is expected_active
    assert result.category == (SponsorCategory.CURRENT if expected_active else SponsorCategory.PAST)


def test_inactive_large_recurring_sponsor_is_past(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$100 a month", "$100", days=60)]))

    assert result.category == SponsorCategory.PAST


def test_current_monthly_amount_follows_latest_recurring_payment(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$50 a month", "$50", days=40),
        make_transaction("$10 a month", "$10", days=10),
    ]))

    assert result.current_monthly_amount == Decimal("10")
    assert result.recurring_tier_amount == Decimal("50")
    assert result.highest_tier_amount == Decimal("50")
    assert result.category == SponsorCategory.CURRENT


# -- One-time special windows -------------------------------------------------------


@pytest.mark.parametrize(
    "amount, days, expected",
    [
        ("$100", 30, SponsorCategory.SPECIAL),
        ("$100", 31, SponsorCategory.PAST),
        ("$99", 30, SponsorCategory.CURRENT),
        ("$99", 31, SponsorCategory.PAST),
        ("$250", 60, SponsorCategory.SPECIAL),
        ("$250", 61, SponsorCategory.PAST),
        ("$421", 120, SponsorCategory.SPECIAL),
    ],
)
def test_one_time_special_window_boundaries(make_sponsor, make_transaction, classify,
                                            amount, days, expected):
    result = classify(make_sponsor(transactions=[make_transaction("Custom one time", amount, days=days)]))

    assert result.category == expected


def test_special_window_uses_most_recent_qualifying_payment(make_sponsor, make_transaction, classify):
    # $1000 long ago would still be open (300 days) if it were the one considered
    result = classify(make_sponsor(transactions=[
        make_transaction("$1000 one time", "$1000", days=200),
        make_transaction("$100 one time", "$100", days=40),
    ]))

    assert result.category == SponsorCategory.PAST


def test_threshold_is_per_transaction_not_cumulative(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$60 one time", "$60", days=5),
        make_transaction("$60 one time", "$60", days=3),
    ]))

    assert result.total_lifetime_amount == Decimal("120")
    assert result.category == SponsorCategory.CURRENT


@pytest.mark.parametrize("amount", ["$50", "$99.99"])
def test_raising_one_time_amount_past_100_moves_towards_special(make_sponsor, make_transaction,
                                                                classify, amount):
    before = classify(make_sponsor(transactions=[make_transaction("Custom one time", amount, days=10)]))
    after = classify(make_sponsor(transactions=[make_transaction("Custom one time", "$150", days=10)]))

    assert before.category != SponsorCategory.SPECIAL
    assert after.category == SponsorCategory.SPECIAL


def test_special_window_overrides_lapsed_recurring(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$20 a month", "$20", days=90),
        make_transaction("$200 one time", "$200", days=10),
    ]))

    assert result.category == SponsorCategory.SPECIAL
    assert result.primary_tier_name == "$200 one time"


# -- Backers and zero amounts ---------------------------------------------------------


def test_small_recurring_sponsor_is_backer(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$2 a month", "$2", days=5)]))

    assert result.category == SponsorCategory.BACKER
    assert result.is_currently_active is True


def test_small_one_time_sponsor_is_backer(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$3 one time", "$3", days=200)]))

    assert result.category == SponsorCategory.BACKER


@pytest.mark.parametrize("tier_name", ["$0 a month", "Free one time"])
def test_zero_amount_sponsor_falls_back_to_past(make_sponsor, make_transaction, classify, tier_name):
    result = classify(make_sponsor(transactions=[make_transaction(tier_name, "$0", days=1)]))

    assert result.category == SponsorCategory.PAST


# -- Derived amounts and attributes ------------------------------------------------------


def test_lifetime_amount_is_exact_sum_of_processed_amounts(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$10 a month", "$10", days=70, processed="$9.50"),
        make_transaction("$10 a month", "$10", days=40, processed="$10.25"),
        make_transaction("$10 a month", "$10", days=10, processed="$0.10"),
        make_transaction("$10 a month", "$10", days=5, processed="$100.00", status="refunded"),
    ]))

    assert result.total_lifetime_amount == Decimal("19.85")
    assert result.transaction_count == 3


def test_sets_and_flags(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$10 a month", "$10", days=10, country="USA"),
        make_transaction("$10 a month", "$10", days=40, country="United States of America"),
        make_transaction("$25 one time", "$25", days=100, country="DEU"),
    ]))

    assert result.all_tier_names == frozenset({"$10 a month", "$25 one time"})
    assert result.countries == frozenset({"United States", "Germany"})
    assert result.has_recurring_tiers is True
    assert result.is_one_time is False
    assert result.days_since_last_transaction == 10
    assert result.days_since_last_one_time_transaction == 100


def test_one_time_only_sponsor_has_no_recurring_days(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[make_transaction("$10 one time", "$10", days=3)]))

    assert result.days_since_last_recurring_transaction is None
    assert result.current_monthly_amount == Decimal("0")
    assert result.is_one_time is True


def test_default_profile_comes_from_export(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(handle="mona", display_name="Mona Lisa",
                                   transactions=[make_transaction()]))

    assert result.name == "Mona Lisa"
    assert result.avatar_url == "https://avatars.githubusercontent.com/mona"
    assert result.profile_url == "https://github.com/mona"
    assert result.website_url is None


def test_name_falls_back_to_handle(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(handle="mona", transactions=[make_transaction()]))

    assert result.name == "mona"


# -- Primary tier ------------------------------------------------------------------------


def test_primary_tier_is_latest_recurring_when_active(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$50 one time", "$50", days=2),
        make_transaction("$10 a month", "$10", days=5),
        make_transaction("$5 a month", "$5", days=35),
    ]))

    assert result.primary_tier_name == "$10 a month"


def test_primary_tier_is_latest_one_time_when_not_active(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$25 a month", "$25", days=90),
        make_transaction("$15 one time", "$15", days=200),
        make_transaction("$40 one time", "$40", days=120),
    ]))

    assert result.primary_tier_name == "$40 one time"


def test_primary_tier_falls_back_to_highest_tier(make_sponsor, make_transaction, classify):
    result = classify(make_sponsor(transactions=[
        make_transaction("$5 a month", "$5", days=60),
        make_transaction("$30 a month", "$30", days=120),
    ]))

    assert result.primary_tier_name == "$30 a month"


# -- Determinism and errors --------------------------------------------------------------------


def test_classification_is_deterministic(make_sponsor, make_transaction, classify):
    sponsor = make_sponsor(transactions=[
        make_transaction("$10 a month", "$10", days=10),
        make_transaction("$150 one time", "$150", days=20),
    ])

    assert classify(sponsor) == classify(sponsor)


def test_malformed_amount_raises_parse_error(make_sponsor, make_transaction, classify):
    sponsor = make_sponsor(handle="broken", transactions=[make_transaction("$10 one time", "ten dollars")])

    with pytest.raises(SponsorParseError) as exc_info:
        classify(sponsor)
    assert exc_info.value.handle == "broken"


def test_malformed_start_date_raises_parse_error(make_sponsor, make_transaction, now):
    sponsor = make_sponsor(transactions=[make_transaction()])
    sponsor = replace(sponsor, sponsorship_started_on="someday")

    with pytest.raises(SponsorParseError):
        SponsorClassifier().classify(sponsor, now)


# -- Batch -------------------------------------------------------------------------------------


def test_batch_skips_bad_records_and_counts_exclusions(make_sponsor, make_transaction, now):
    sponsors = [
        make_sponsor(handle="good", transactions=[make_transaction()]),
        make_sponsor(handle="hidden", is_public=False, transactions=[make_transaction()]),
        make_sponsor(handle="refunded", transactions=[make_transaction(status="refunded")]),
        make_sponsor(handle="broken", transactions=[make_transaction(amount="$1O")]),
    ]

    batch = classify_sponsors(sponsors, now)

    assert [s.handle for s in batch.sponsors] == ["good"]
    assert batch.excluded_private == 1
    assert batch.excluded_without_transactions == 1
    assert batch.warning_count == 1
    assert batch.parse_errors[0].handle == "broken"


def test_batch_skips_non_text_tier_name(make_sponsor, make_transaction, now):
    bad_tier = replace(make_transaction(), tier_name=10)
    sponsors = [
        make_sponsor(handle="odd-tier", transactions=[bad_tier]),
        make_sponsor(handle="good", transactions=[make_transaction()]),
    ]

    batch = classify_sponsors(sponsors, now)

    assert [s.handle for s in batch.sponsors] == ["good"]
    assert [e.handle for e in batch.parse_errors] == ["odd-tier"]


def test_non_boolean_visibility_is_treated_as_private(make_sponsor, make_transaction, now):
    sponsor = replace(make_sponsor(handle="secret", transactions=[make_transaction()]), is_public="false")

    batch = classify_sponsors([sponsor], now)

    assert batch.sponsors == []
    assert batch.excluded_private == 1


def test_batch_merges_profiles_only_for_classified_sponsors(make_sponsor, make_transaction, now):
    profile = SponsorProfile(
        login="good",
        name="Good Corp",
        avatar_url="https://avatars.example/good.png",
        profile_url="https://github.com/good",
        website_url="https://good.example",
        entity_type="Organization",
    )
    lookup = Mock(return_value=profile)
    sponsors = [
        make_sponsor(handle="good", transactions=[make_transaction()]),
        make_sponsor(handle="hidden", is_public=False, transactions=[make_transaction()]),
    ]

    batch = classify_sponsors(sponsors, now, profile_lookup=lookup)

    lookup.assert_called_once_with("good")
    sponsor = batch.sponsors[0]
    assert sponsor.name == "Good Corp"
    assert sponsor.website_url == "https://good.example"
    assert sponsor.entity_type == "Organization"
    assert sponsor.category == SponsorCategory.CURRENT


def test_missing_profile_keeps_export_defaults(make_sponsor, make_transaction, now):
    batch = classify_sponsors(
        [make_sponsor(handle="mona", transactions=[make_transaction()])],
        now,
        profile_lookup=lambda login: None,
    )

    assert batch.sponsors[0].avatar_url == "https://avatars.githubusercontent.com/mona"
