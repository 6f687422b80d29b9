"""Change and overview reports over generated sponsors.json documents"""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from sponsortiers.models.document import SponsorsDocument, UISponsor
from sponsortiers.utils import format_amount

BUCKETS = (
    ('specialSponsors', 'special'),
    ('sponsors', 'current'),
    ('pastSponsors', 'past'),
    ('backers', 'backer'),
)

@dataclass
class SponsorChange:
    """Differences for a sponsor present in both documents"""
    github_id: str
    name: str
    old_category: str
    new_category: str
    old_tier: str
    new_tier: str
    old_amount: float
    new_amount: float

@dataclass
class SponsorChanges:
    added: List[Tuple[str, UISponsor]] = field(default_factory=list)
    removed: List[Tuple[str, UISponsor]] = field(default_factory=list)
    changed: List[SponsorChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)

@dataclass
class SupportTotals:
    sponsor_count: int
    monthly_total: float
    lifetime_total: float

def index_sponsors(document: SponsorsDocument) -> Dict[str, Tuple[str, UISponsor]]:
    """Map githubId to (category, sponsor) across all buckets"""
    index = {}
    for attr, category in BUCKETS:
        for sponsor in getattr(document, attr):
            index[sponsor.githubId] = (category, sponsor)
    return index

def _amount(sponsor: UISponsor) -> float:
    return sponsor.totalProcessedAmount or 0.0

def compare_documents(old: SponsorsDocument, new: SponsorsDocument) -> SponsorChanges:
    """Sponsors added, removed, or changed (category, tier or lifetime amount) between two runs"""
    old_index = index_sponsors(old)
    new_index = index_sponsors(new)
    changes = SponsorChanges()

    for github_id, (category, sponsor) in new_index.items():
        if github_id not in old_index:
            changes.added.append((category, sponsor))
            continue
        old_category, old_sponsor = old_index[github_id]
        if (old_category != category or old_sponsor.tierName != sponsor.tierName
                or _amount(old_sponsor) != _amount(sponsor)):
            changes.changed.append(SponsorChange(
                github_id=github_id,
                name=sponsor.name,
                old_category=old_category,
                new_category=category,
                old_tier=old_sponsor.tierName,
                new_tier=sponsor.tierName,
                old_amount=_amount(old_sponsor),
                new_amount=_amount(sponsor)
            ))

    for github_id, (category, sponsor) in old_index.items():
        if github_id not in new_index:
            changes.removed.append((category, sponsor))

    return changes

def support_totals(document: SponsorsDocument) -> SupportTotals:
    return SupportTotals(
        sponsor_count=len(document.all_sponsors()),
        monthly_total=document.summary.total_current_monthly,
        lifetime_total=document.summary.total_lifetime_amount
    )

def _describe(category: str, sponsor: UISponsor) -> str:
    return f"  {sponsor.name} (@{sponsor.githubId}) - {sponsor.tierName} ({category})"

def format_changes(old: SponsorsDocument, new: SponsorsDocument) -> List[str]:
    """Human-readable change summary between two documents"""
    changes = compare_documents(old, new)
    old_totals = support_totals(old)
    new_totals = support_totals(new)

    lines = ["=" * 60, "SPONSOR CHANGES SUMMARY", "=" * 60,
             f"Total sponsors: {old_totals.sponsor_count} -> {new_totals.sponsor_count}"]

    if changes.added:
        lines.append(f"New sponsors ({len(changes.added)}):")
        lines.extend(_describe(category, sponsor) for category, sponsor in changes.added)
    if changes.removed:
        lines.append(f"Removed sponsors ({len(changes.removed)}):")
        lines.extend(_describe(category, sponsor) for category, sponsor in changes.removed)
    if changes.changed:
        lines.append(f"Updated sponsors ({len(changes.changed)}):")
        for change in changes.changed:
            lines.append(f"  {change.name} (@{change.github_id}):")
            if change.old_category != change.new_category:
                lines.append(f"    Category: {change.old_category} -> {change.new_category}")
            if change.old_tier != change.new_tier:
                lines.append(f"    Tier: {change.old_tier} -> {change.new_tier}")
            if change.old_amount != change.new_amount:
                lines.append(f"    Lifetime: {format_amount(change.old_amount)} -> "
                             f"{format_amount(change.new_amount)}")
    if not changes.has_changes:
        lines.append("No changes detected in sponsor data")

    monthly_delta = new_totals.monthly_total - old_totals.monthly_total
    lines.append(f"Monthly: {format_amount(old_totals.monthly_total)} -> "
                 f"{format_amount(new_totals.monthly_total)} ({monthly_delta:+.2f})")
    lines.append(f"Lifetime: {format_amount(old_totals.lifetime_total)} -> "
                 f"{format_amount(new_totals.lifetime_total)}")
    lines.append("=" * 60)
    return lines

def format_overview(document: SponsorsDocument, rate: float, currency: str = "INR") -> List[str]:
    """Table of every sponsor with its lifetime amount in USD and a second currency"""
    lines = [f"SPONSORS OVERVIEW (Exchange Rate: 1 USD = {rate} {currency})", "=" * 90,
             "Name".ljust(25) + "Username".ljust(20) + "USD".ljust(12) + currency.ljust(14) + "Since",
             "-" * 90]

    for category, sponsors in ((category, getattr(document, attr)) for attr, category in BUCKETS):
        if not sponsors:
            continue
        lines.append(f"[{category}]")
        for sponsor in sponsors:
            amount = _amount(sponsor)
            lines.append(
                sponsor.name[:24].ljust(25)
                + f"@{sponsor.githubId}"[:19].ljust(20)
                + format_amount(amount).ljust(12)
                + f"{round(amount * rate)}".ljust(14)
                + sponsor.sinceWhen
            )

    totals = support_totals(document)
    lines.extend([
        "=" * 90,
        f"Total Sponsors: {totals.sponsor_count}",
        f"Monthly Support: {format_amount(totals.monthly_total)}/month "
        f"({round(totals.monthly_total * rate)} {currency}/month)",
        f"Lifetime Support: {format_amount(totals.lifetime_total)} "
        f"({round(totals.lifetime_total * rate)} {currency})",
        f"Annual Value: {format_amount(totals.monthly_total * 12)} "
        f"({round(totals.monthly_total * 12 * rate)} {currency})",
    ])
    return lines
