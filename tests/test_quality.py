"""
Tests for lead quality, scout reputation and badges.
"""
import pytest

from leadscout.models.scout import Badges
from leadscout.services.quality import QualityEngine, LeadQualityFactors, ScoutStats, round_score


@pytest.fixture
def quality(settings) -> QualityEngine:
    return QualityEngine(settings)


def _factors(**overrides) -> LeadQualityFactors:
    values = dict(
        description_length=500,
        has_contact_email=True,
        has_contact_phone=True,
        has_website=True,
        has_budget=True,
        photo_count=3,
        scout_reputation=10.0,
    )
    values.update(overrides)
    return LeadQualityFactors(**values)


class TestLeadQuality:
    def test_perfect_lead(self, quality):
        assert quality.lead_quality(_factors()) == 10.0

    def test_empty_lead(self, quality):
        factors = _factors(
            description_length=0, has_contact_email=False, has_contact_phone=False,
            has_website=False, has_budget=False, photo_count=0, scout_reputation=0.0,
        )
        assert quality.lead_quality(factors) == 0.0

    def test_score_stays_in_range(self, quality):
        for length in (0, 50, 100, 300, 499, 5000):
            for photos in (0, 1, 2, 7):
                score = quality.lead_quality(_factors(description_length=length, photo_count=photos))
                assert 0.0 <= score <= 10.0

    def test_description_score_bands(self, quality):
        assert quality.description_score(50) == 25.0
        assert quality.description_score(100) == 50.0
        assert quality.description_score(300) == 75.0
        assert quality.description_score(800) == 100.0

    def test_photo_score_steps(self, quality):
        assert [quality.photo_score(n) for n in (0, 1, 2, 3, 10)] == [0.0, 30.0, 60.0, 100.0, 100.0]

    def test_contact_score(self, quality):
        assert quality.contact_score(_factors(has_website=False)) == 70.0

    def test_reputation_clamped(self, quality):
        assert quality.breakdown(_factors(scout_reputation=42)).scout_reputation == 100.0

    def test_threshold_and_labels(self, quality):
        assert quality.meets_threshold(5.0)
        assert not quality.meets_threshold(4.9)
        assert quality.lead_label(8.2) == "Excellent"
        assert quality.lead_label(3.0) == "Needs Improvement"


class TestScoutReputation:
    def test_strong_scout(self, quality):
        stats = ScoutStats(
            total_leads_submitted=10, total_leads_approved=9,
            total_leads_sold=6, average_lead_quality=8.0,
        )
        assert quality.scout_reputation(stats) == 9.4

    def test_new_scout_uses_default_average_quality(self, quality):
        stats = ScoutStats(total_leads_submitted=0, total_leads_approved=0, total_leads_sold=0)
        assert quality.scout_reputation(stats) == 1.5

    def test_rates_capped_at_ten(self, quality):
        stats = ScoutStats(total_leads_submitted=2, total_leads_approved=2, total_leads_sold=2)
        assert quality.conversion_score(stats) == 10.0
        assert quality.approval_score(stats) == 10.0

    def test_labels(self, quality):
        assert quality.scout_label(9.1) == "Top Performer"
        assert quality.scout_label(6.0) == "Good"


class TestBadges:
    @pytest.mark.parametrize("sold,badge", [
        (0, Badges.BRONZE),
        (19, Badges.BRONZE),
        (20, Badges.SILVER),
        (49, Badges.SILVER),
        (50, Badges.GOLD),
        (100, Badges.PLATINUM),
    ])
    def test_badge_for_sales(self, quality, sold, badge):
        assert quality.badge_for(sold) == badge

    def test_badge_never_downgrades(self, quality):
        assert quality.badge_for(5, current=Badges.GOLD) == Badges.GOLD

    def test_next_milestone(self, quality):
        assert quality.next_badge_milestone(15) == {
            "next_badge": Badges.SILVER, "leads_needed": 5, "next_badge_threshold": 20,
        }
        assert quality.next_badge_milestone(150) is None


class TestHelpers:
    def test_round_score_half_up(self):
        assert round_score(7.25) == 7.3
        assert round_score(7.24) == 7.2

    def test_percentile(self, quality):
        assert quality.percentile(7.0, [5.0, 6.0, 7.0, 8.0]) == 50
        assert quality.percentile(7.0, []) == 0
