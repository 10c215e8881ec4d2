"""
Lead submission validation.
Collects field errors instead of stopping at the first one.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any
from pydantic import EmailStr, HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from leadscout.config import Settings
from leadscout.core.exceptions import ValidationError

EMAIL_ADAPTER = TypeAdapter(EmailStr)
URL_ADAPTER = TypeAdapter(HttpUrl)
PHONE_STRIP_REGEX = re.compile(r"[\s\-()]")
TAG_REGEX = re.compile(r"<[^>]*>")
SCRIPT_SCHEME_REGEX = re.compile(r"javascript:", re.IGNORECASE)
EVENT_HANDLER_REGEX = re.compile(r"on\w+=", re.IGNORECASE)

TEXT_FIELDS = ("title", "description", "company_name", "contact_name", "timeline")


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email or not email.strip():
        return "Email is required"
    if ".." in email.rpartition("@")[2]:
        return "Email contains invalid characters"
    try:
        EMAIL_ADAPTER.validate_python(email.strip())
    except PydanticValidationError:
        return "Invalid email format (e.g., user@example.com)"
    return None


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """International numbers or 8-15 local digits; +352 numbers are 12 characters."""
    if not phone or not phone.strip():
        return "Phone number is required"

    clean = PHONE_STRIP_REGEX.sub("", phone)
    if not clean.startswith("+") and not re.fullmatch(r"\d{8,15}", clean):
        return "Invalid phone format (use international format: +352...)"
    if clean.startswith("+") and not re.fullmatch(r"\+\d{10,15}", clean):
        return "Invalid international phone format"
    if clean.startswith("+352") and len(clean) != 12:
        return "Luxembourg phone numbers should be +352 followed by 8 digits"
    return None


def validate_website(url: Optional[str]) -> Optional[str]:
    if not url or not url.strip():
        return None

    test_url = url.strip()
    if not test_url.startswith(("http://", "https://")):
        test_url = "https://" + test_url
    if " " in test_url:
        return "Invalid website URL format"
    try:
        hostname = URL_ADAPTER.validate_python(test_url).host
    except PydanticValidationError:
        return "Invalid website URL format"
    if not hostname or "." not in hostname:
        return "Website must include a domain (e.g., example.com)"
    return None


def sanitize_input(value: Optional[str]) -> str:
    """Strip markup and inline script vectors."""
    if not value:
        return ""
    cleaned = TAG_REGEX.sub("", value)
    cleaned = SCRIPT_SCHEME_REGEX.sub("", cleaned)
    cleaned = EVENT_HANDLER_REGEX.sub("", cleaned)
    return cleaned.strip()


def check_duplicate(company_name: str, existing: List[str]) -> Optional[str]:
    normalized = (company_name or "").lower().strip()
    if any((name or "").lower().strip() == normalized for name in existing):
        return f"You've already submitted a lead for {company_name}"
    return None


def format_errors(errors: List[Dict[str, str]]) -> str:
    return "; ".join(error["message"] for error in errors)


class LeadValidator:
    """Submission rules, configured from Settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def errors_for(self, data: Dict[str, Any]) -> List[Dict[str, str]]:
        s = self.settings
        errors: List[Dict[str, str]] = []

        def add(field: str, message: str):
            errors.append({"field": field, "message": message})

        title = data.get("title") or ""
        if len(title.strip()) < s.LEAD_TITLE_MIN_LENGTH:
            add("title", f"Title must be at least {s.LEAD_TITLE_MIN_LENGTH} characters")
        if len(title) > s.LEAD_TITLE_MAX_LENGTH:
            add("title", f"Title must not exceed {s.LEAD_TITLE_MAX_LENGTH} characters")

        description = data.get("description") or ""
        if len(description.strip()) < s.QUALITY_MIN_DESCRIPTION_LENGTH:
            add("description", f"Description must be at least {s.QUALITY_MIN_DESCRIPTION_LENGTH} characters")
        if len(description) > s.LEAD_DESCRIPTION_MAX_LENGTH:
            add("description", f"Description must not exceed {s.LEAD_DESCRIPTION_MAX_LENGTH} characters")

        if data.get("category") not in s.LEAD_CATEGORIES:
            add("category", "Please select a valid category")

        if len((data.get("company_name") or "").strip()) < 2:
            add("company_name", "Company name is required (min 2 characters)")
        if len((data.get("contact_name") or "").strip()) < 2:
            add("contact_name", "Contact name is required (min 2 characters)")

        for field, check in (
            ("contact_email", validate_email),
            ("contact_phone", validate_phone),
            ("company_website", validate_website),
        ):
            message = check(data.get(field))
            if message:
                add(field, message)

        budget = self._as_decimal(data.get("estimated_budget"))
        if budget is None or budget < s.LEAD_BUDGET_MIN:
            add("estimated_budget", f"Budget must be at least {s.LEAD_BUDGET_MIN} euros")
        elif budget > s.LEAD_BUDGET_MAX:
            add("estimated_budget", "Budget seems unrealistic (max 10M euros)")

        return errors

    def validate(self, data: Dict[str, Any], existing_company_names: Optional[List[str]] = None) -> None:
        """Raise ValidationError carrying every field error."""
        errors = self.errors_for(data)
        if existing_company_names and data.get("company_name"):
            message = check_duplicate(data["company_name"], existing_company_names)
            if message:
                errors.append({"field": "company_name", "message": message})
        if errors:
            raise ValidationError(format_errors(errors), errors=errors)

    @staticmethod
    def sanitize(data: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = dict(data)
        for field in TEXT_FIELDS:
            if cleaned.get(field) is not None:
                cleaned[field] = sanitize_input(cleaned[field])
        return cleaned

    @staticmethod
    def _as_decimal(value) -> Optional[Decimal]:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
