"""Output document models written to sponsors.json"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

class UISponsor(BaseModel):
    """
    A sponsor as consumed by the website and the banner renderer.

    totalProcessedAmount and formattedAmount are only set when the lifetime
    total is worth showing; unset fields are left out of the serialized output.
    """
    name: str
    githubId: str
    avatarUrl: str
    websiteUrl: Optional[str] = None
    githubUrl: str
    tierName: str
    sinceWhen: str
    transactionCount: int
    totalProcessedAmount: Optional[float] = None
    formattedAmount: Optional[str] = None

class TopSponsor(BaseModel):
    name: str
    amount: float

class SummaryStats(BaseModel):
    """Aggregate numbers across every public sponsor"""
    total_sponsors: int = 0
    total_lifetime_amount: float = 0.0
    total_current_monthly: float = 0.0
    special_sponsors: int = 0
    current_sponsors: int = 0
    past_sponsors: int = 0
    backers: int = 0
    top_sponsor: Optional[TopSponsor] = None

class SponsorsDocument(BaseModel):
    """The complete sponsors.json document"""
    generated_at: str
    summary: SummaryStats
    specialSponsors: List[UISponsor] = []
    sponsors: List[UISponsor] = []
    pastSponsors: List[UISponsor] = []
    backers: List[UISponsor] = []

    def all_sponsors(self) -> List[UISponsor]:
        return self.specialSponsors + self.sponsors + self.pastSponsors + self.backers

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize, dropping optional sponsor fields that were never set"""
        return self.model_dump(exclude_unset=True)
