"""
Tests for lead submission validation and sanitization.
"""
import pytest

from leadscout.core.exceptions import ValidationError
from leadscout.services.validation import (
    LeadValidator, validate_email, validate_phone, validate_website,
    sanitize_input, check_duplicate
)

from conftest import lead_payload


@pytest.fixture
def validator(settings) -> LeadValidator:
    return LeadValidator(settings)


def _fields(errors):
    return {error["field"] for error in errors}


class TestFieldChecks:
    def test_email(self):
        assert validate_email("marie@acme.lu") is None
        assert validate_email("") == "Email is required"
        assert validate_email("not-an-email") is not None
        assert validate_email("a@b..lu") == "Email contains invalid characters"
        assert validate_email("x@-bad-.com") == "Invalid email format (e.g., user@example.com)"
        assert validate_email("marie@acme") is not None

    def test_phone(self):
        assert validate_phone("+352 621 123 45") is None
        assert validate_phone("0612345678") is None
        assert validate_phone("+3526211234567") is not None
        assert validate_phone("12-34") is not None
        assert validate_phone(None) == "Phone number is required"

    def test_website_is_optional(self):
        assert validate_website(None) is None
        assert validate_website("acme.lu") is None
        assert validate_website("https://www.acme.lu/about") is None
        assert validate_website("localhost") == "Website must include a domain (e.g., example.com)"
        assert validate_website("https://acme .lu") == "Invalid website URL format"

    def test_sanitize_strips_markup(self):
        assert sanitize_input("<b>Hi</b> javascript:alert(1) onclick=x") == "Hi alert(1) x"
        assert sanitize_input(None) == ""

    def test_duplicate_company_name_is_case_insensitive(self):
        assert check_duplicate(" acme logistics ", ["ACME Logistics"]) is not None
        assert check_duplicate("Other Co", ["ACME Logistics"]) is None


class TestLeadValidator:
    def test_valid_lead_passes(self, validator):
        assert validator.errors_for(lead_payload()) == []
        validator.validate(lead_payload())

    def test_collects_every_error(self, validator):
        data = lead_payload(
            title="short",
            description="too short",
            category="Astrology",
            contact_email="nope",
            estimated_budget=50,
        )
        errors = validator.errors_for(data)
        assert _fields(errors) == {"title", "description", "category", "contact_email", "estimated_budget"}

    def test_budget_upper_bound(self, validator):
        errors = validator.errors_for(lead_payload(estimated_budget=20_000_000))
        assert _fields(errors) == {"estimated_budget"}

    def test_validate_raises_with_errors(self, validator):
        with pytest.raises(ValidationError) as exc:
            validator.validate(lead_payload(), existing_company_names=["Acme Logistics"])
        assert exc.value.errors == [{
            "field": "company_name",
            "message": "You've already submitted a lead for Acme Logistics",
        }]

    def test_sanitize_only_touches_text_fields(self, validator):
        data = validator.sanitize(lead_payload(title="<i>Network</i> refresh", contact_email="<x>@y.lu"))
        assert data["title"] == "Network refresh"
        assert data["contact_email"] == "<x>@y.lu"
