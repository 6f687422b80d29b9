"""Bucketing, totals and the UI document built from classified sponsors"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List

from sponsortiers.models.document import SponsorsDocument, SummaryStats, TopSponsor, UISponsor
from sponsortiers.models.sponsor import ClassifiedSponsor, SponsorCategory
from sponsortiers.utils import format_amount, format_since_when

logger = logging.getLogger(__name__)

def sort_key(sponsor: ClassifiedSponsor):
    """Category rank, then lifetime amount, highest tier and start date, all descending"""
    return (
        sponsor.category.rank,
        -sponsor.total_lifetime_amount,
        -sponsor.highest_tier_amount,
        -sponsor.sponsorship_started_on.timestamp(),
    )

def sort_sponsors(sponsors: Iterable[ClassifiedSponsor]) -> List[ClassifiedSponsor]:
    return sorted(sponsors, key=sort_key)

def bucket_sponsors(sponsors: Iterable[ClassifiedSponsor]) -> Dict[SponsorCategory, List[ClassifiedSponsor]]:
    """Group sponsors by category, each bucket sorted"""
    buckets = {category: [] for category in SponsorCategory}
    for sponsor in sort_sponsors(sponsors):
        buckets[sponsor.category].append(sponsor)
    return buckets

def total_lifetime_amount(sponsors: Iterable[ClassifiedSponsor]) -> Decimal:
    return sum((s.total_lifetime_amount for s in sponsors), Decimal(0))

def total_current_monthly(sponsors: Iterable[ClassifiedSponsor]) -> Decimal:
    """Monthly amount of every currently active sponsor, whatever its category"""
    return sum((s.current_monthly_amount for s in sponsors if s.is_currently_active), Decimal(0))

def format_sponsor_for_ui(sponsor: ClassifiedSponsor, always_show_lifetime: bool = False) -> UISponsor:
    """Map a classified sponsor to the fields the website needs"""
    fields = dict(
        name=sponsor.name,
        githubId=sponsor.handle,
        avatarUrl=sponsor.avatar_url,
        websiteUrl=sponsor.website_url or None,
        githubUrl=sponsor.profile_url,
        tierName=sponsor.primary_tier_name,
        sinceWhen=format_since_when(sponsor.sponsorship_started_on),
        transactionCount=sponsor.transaction_count
    )
    if always_show_lifetime or sponsor.transaction_count > 1:
        fields['totalProcessedAmount'] = float(sponsor.total_lifetime_amount)
        fields['formattedAmount'] = format_amount(sponsor.total_lifetime_amount)
    return UISponsor(**fields)

def summarize(sponsors: Iterable[ClassifiedSponsor], now: datetime,
              always_show_lifetime: bool = False) -> SponsorsDocument:
    """Build the sponsors.json document"""
    ordered = sort_sponsors(sponsors)
    buckets = bucket_sponsors(ordered)

    top_sponsor = None
    if ordered:
        top_sponsor = TopSponsor(name=ordered[0].name, amount=float(ordered[0].total_lifetime_amount))

    summary = SummaryStats(
        total_sponsors=len(ordered),
        total_lifetime_amount=float(total_lifetime_amount(ordered)),
        total_current_monthly=float(total_current_monthly(ordered)),
        special_sponsors=len(buckets[SponsorCategory.SPECIAL]),
        current_sponsors=len(buckets[SponsorCategory.CURRENT]),
        past_sponsors=len(buckets[SponsorCategory.PAST]),
        backers=len(buckets[SponsorCategory.BACKER]),
        top_sponsor=top_sponsor
    )

    def ui(category: SponsorCategory) -> List[UISponsor]:
        return [format_sponsor_for_ui(s, always_show_lifetime) for s in buckets[category]]

    return SponsorsDocument(
        generated_at=now.isoformat(),
        summary=summary,
        specialSponsors=ui(SponsorCategory.SPECIAL),
        sponsors=ui(SponsorCategory.CURRENT),
        pastSponsors=ui(SponsorCategory.PAST),
        backers=ui(SponsorCategory.BACKER)
    )

def log_summary(document: SponsorsDocument, sponsors: List[ClassifiedSponsor]) -> None:
    """Log the run summary and a few multi-transaction sponsors"""
    summary = document.summary
    logger.info(f"Generated sponsors.json with {summary.total_sponsors} sponsors")
    logger.info(f"  Special sponsors: {summary.special_sponsors}")
    logger.info(f"  Current sponsors: {summary.current_sponsors}")
    logger.info(f"  Past sponsors: {summary.past_sponsors}")
    logger.info(f"  Backers: {summary.backers}")
    logger.info(f"  Total lifetime amount: {format_amount(summary.total_lifetime_amount)}")
    logger.info(f"  Current monthly recurring: {format_amount(summary.total_current_monthly)}")
    if summary.top_sponsor:
        logger.info(f"  Top sponsor: {summary.top_sponsor.name} "
                    f"({format_amount(summary.top_sponsor.amount)} lifetime)")

    repeat_sponsors = [s for s in sort_sponsors(sponsors) if s.transaction_count > 1]
    if repeat_sponsors:
        logger.info(f"Sponsors with multiple transactions: {len(repeat_sponsors)}")
        for sponsor in repeat_sponsors[:3]:
            logger.info(f"  {sponsor.name}: {sponsor.transaction_count} transactions, "
                        f"{format_amount(sponsor.total_lifetime_amount)} total")
