"""
Quality service - lead quality at submission and scout reputation.

Lead quality (0-10) is a weighted blend of five factors scored 0-100.
Scout reputation (0-10) blends conversion, approval and average lead
quality. Badges follow leads sold and never go down.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Dict, Any

from leadscout.config import Settings
from leadscout.models.scout import Badges


def round_score(value: float) -> float:
    """One decimal, half up."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass
class LeadQualityFactors:
    description_length: int
    has_contact_email: bool
    has_contact_phone: bool
    has_website: bool
    has_budget: bool
    photo_count: int
    scout_reputation: float  # 0-10


@dataclass
class QualityBreakdown:
    description_length: float
    contact_completeness: float
    budget_accuracy: float
    photo_count: float
    scout_reputation: float

    def as_dict(self) -> Dict[str, float]:
        return {key: round(value, 2) for key, value in asdict(self).items()}


@dataclass
class ScoutStats:
    total_leads_submitted: int
    total_leads_approved: int
    total_leads_sold: int
    total_leads_rejected: int = 0
    average_lead_quality: Optional[float] = None


class QualityEngine:
    """Scoring rules, configured from Settings."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.min_description = settings.QUALITY_MIN_DESCRIPTION_LENGTH
        self.excellent_description = settings.QUALITY_EXCELLENT_DESCRIPTION_LENGTH
        self.thresholds = settings.badge_thresholds()

    # ----- Lead quality -----

    def description_score(self, length: int) -> float:
        if length < self.min_description:
            score = min(50.0, length / self.min_description * 50)
        elif length >= self.excellent_description:
            score = 100.0
        else:
            progress = (length - self.min_description) / (self.excellent_description - self.min_description)
            score = 50 + progress * 50
        return max(0.0, min(100.0, score))

    @staticmethod
    def contact_score(factors: LeadQualityFactors) -> float:
        score = 0.0
        if factors.has_contact_email:
            score += 40
        if factors.has_contact_phone:
            score += 30
        if factors.has_website:
            score += 30
        return score

    @staticmethod
    def photo_score(count: int) -> float:
        if count <= 0:
            return 0.0
        if count == 1:
            return 30.0
        if count == 2:
            return 60.0
        return 100.0

    def breakdown(self, factors: LeadQualityFactors) -> QualityBreakdown:
        reputation = max(0.0, min(10.0, factors.scout_reputation or 0.0))
        return QualityBreakdown(
            description_length=self.description_score(factors.description_length),
            contact_completeness=self.contact_score(factors),
            budget_accuracy=100.0 if factors.has_budget else 0.0,
            photo_count=self.photo_score(factors.photo_count),
            scout_reputation=reputation * 10,
        )

    def lead_quality(self, factors: LeadQualityFactors) -> float:
        """Overall lead quality, 0-10 with one decimal."""
        s = self.settings
        b = self.breakdown(factors)
        weighted = (
            b.description_length * s.LEAD_QUALITY_DESCRIPTION_WEIGHT
            + b.contact_completeness * s.LEAD_QUALITY_CONTACT_WEIGHT
            + b.budget_accuracy * s.LEAD_QUALITY_BUDGET_WEIGHT
            + b.photo_count * s.LEAD_QUALITY_PHOTOS_WEIGHT
            + b.scout_reputation * s.LEAD_QUALITY_REPUTATION_WEIGHT
        )
        return round_score(weighted / 10)

    def factors_for(self, lead, scout_reputation: float) -> LeadQualityFactors:
        """Extract quality factors from a lead (model or schema)."""
        return LeadQualityFactors(
            description_length=len(lead.description or ""),
            has_contact_email=bool(lead.contact_email),
            has_contact_phone=bool(lead.contact_phone),
            has_website=bool(lead.company_website),
            has_budget=lead.estimated_budget is not None and lead.estimated_budget > 0,
            photo_count=len(lead.photos or []),
            scout_reputation=scout_reputation,
        )

    def meets_threshold(self, score: float) -> bool:
        return score >= self.settings.MINIMUM_QUALITY_THRESHOLD

    @staticmethod
    def lead_label(score: float) -> str:
        if score >= 8.0:
            return "Excellent"
        if score >= 6.5:
            return "Very Good"
        if score >= 5.0:
            return "Good"
        if score >= 3.5:
            return "Fair"
        return "Needs Improvement"

    # ----- Scout reputation -----

    def conversion_score(self, stats: ScoutStats) -> float:
        if stats.total_leads_submitted <= 0:
            return 0.0
        rate = stats.total_leads_sold / stats.total_leads_submitted
        return min(10.0, rate / self.settings.TARGET_CONVERSION_RATE * 10)

    def approval_score(self, stats: ScoutStats) -> float:
        if stats.total_leads_submitted <= 0:
            return 0.0
        rate = stats.total_leads_approved / stats.total_leads_submitted
        return min(10.0, rate / self.settings.TARGET_APPROVAL_RATE * 10)

    def scout_reputation(self, stats: ScoutStats) -> float:
        """Scout quality score, 0-10 with one decimal."""
        s = self.settings
        average_quality = stats.average_lead_quality
        if average_quality is None:
            average_quality = s.DEFAULT_AVERAGE_LEAD_QUALITY

        total_weight = s.QUALITY_SCORE_SOLD_WEIGHT + s.QUALITY_SCORE_APPROVAL_WEIGHT + s.QUALITY_SCORE_FEEDBACK_WEIGHT
        weighted = (
            self.conversion_score(stats) * s.QUALITY_SCORE_SOLD_WEIGHT
            + self.approval_score(stats) * s.QUALITY_SCORE_APPROVAL_WEIGHT
            + average_quality * s.QUALITY_SCORE_FEEDBACK_WEIGHT
        ) / total_weight
        return round_score(max(0.0, min(10.0, weighted)))

    @staticmethod
    def scout_label(score: float) -> str:
        if score >= 9.0:
            return "Top Performer"
        if score >= 8.0:
            return "Excellent"
        if score >= 7.0:
            return "High Quality"
        if score >= 6.0:
            return "Good"
        if score >= 5.0:
            return "Developing"
        return "Needs Improvement"

    # ----- Badges -----

    def badge_for(self, leads_sold: int, current: Optional[str] = None) -> str:
        """
        Badge for a sales count. With current given, the result is never
        lower than current.
        """
        computed = Badges.BRONZE
        for badge in Badges.ORDER:
            if leads_sold >= self.thresholds[badge]:
                computed = badge
        if current in Badges.ORDER and Badges.ORDER.index(current) > Badges.ORDER.index(computed):
            return current
        return computed

    def next_badge_milestone(self, leads_sold: int) -> Optional[Dict[str, Any]]:
        """Next badge and how many sales it takes; None at the top."""
        for badge in Badges.ORDER[1:]:
            threshold = self.thresholds[badge]
            if leads_sold < threshold:
                return {
                    "next_badge": badge,
                    "leads_needed": threshold - leads_sold,
                    "next_badge_threshold": threshold,
                }
        return None

    @staticmethod
    def percentile(score: float, all_scores: List[float]) -> int:
        """Share of scouts (0-100) with a strictly lower score."""
        if not all_scores:
            return 0
        better_than = len([s for s in all_scores if s < score])
        return int(Decimal(better_than * 100) / Decimal(len(all_scores)) + Decimal("0.5"))
