"""Registration email policy: major providers, .edu domains and the store's own domain."""
import re

from devsera.core.config import settings

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

ALLOWED_EMAIL_DOMAINS = frozenset(
    {
        "gmail.com",
        "googlemail.com",
        "outlook.com",
        "hotmail.com",
        "live.com",
        "msn.com",
        "yahoo.com",
        "yahoo.co.in",
        "yahoo.co.uk",
        "ymail.com",
        "icloud.com",
        "me.com",
        "mac.com",
        "protonmail.com",
        "proton.me",
        "aol.com",
        "zoho.com",
        "mail.com",
        "gmx.com",
        "gmx.net",
        "rediffmail.com",
    }
)


def looks_like_email(value: str | None) -> bool:
    return bool(EMAIL_RE.match((value or "").strip()))


def email_domain(email: str) -> str:
    return (email or "").strip().rsplit("@", 1)[-1].lower()


def is_allowed_email(email: str | None) -> bool:
    if not looks_like_email(email):
        return False
    domain = email_domain(email)
    if domain in ALLOWED_EMAIL_DOMAINS:
        return True
    if domain.endswith(".edu") or ".edu." in domain:
        return True
    store = settings.store_email_domain
    return bool(store) and domain == store


def email_rejection_reason(email: str | None) -> str | None:
    """None when the address is acceptable, else a message for the customer."""
    if not (email or "").strip():
        return "Please enter your email address."
    if not looks_like_email(email):
        return "Please enter a valid email address."
    if not is_allowed_email(email):
        return "Please use an email from a major provider (Gmail, Outlook, Yahoo, iCloud, Proton) or an .edu address."
    return None
