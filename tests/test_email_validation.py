import pytest

from devsera.services.email_validation import email_rejection_reason, is_allowed_email, looks_like_email


@pytest.mark.parametrize(
    "email",
    ["a.b@gmail.com", "x@outlook.com", "y@yahoo.co.uk", "z@proton.me", "s@mit.edu", "team@devsera.store"],
)
def test_allowed(email):
    assert is_allowed_email(email)


@pytest.mark.parametrize("email", ["user@company.io", "user@mailinator.com", "not-an-email", "a@b"])
def test_rejected(email):
    assert not is_allowed_email(email)


def test_domain_is_case_insensitive():
    assert is_allowed_email("Someone@GMAIL.COM")


def test_rejection_messages():
    assert email_rejection_reason("") == "Please enter your email address."
    assert email_rejection_reason("bad@") == "Please enter a valid email address."
    assert email_rejection_reason("me@gmail.com") is None


def test_looks_like_email():
    assert looks_like_email("first.last+tag@sub.example.org")
    assert not looks_like_email("first last@example.org")
