"""Unit tests for account email composition."""

from __future__ import annotations

import pytest
from authority.services.mail.messages import (
    RESET_SUBJECT,
    VERIFY_SUBJECT,
    AccountMailer,
    render_password_reset,
    render_verification,
    reset_link,
    verification_link,
)


def test_links_trim_trailing_slash():
    assert verification_link("https://a.test/", "tok") == "https://a.test/verify-email/tok"
    assert reset_link("https://a.test", "tok") == "https://a.test/reset-password/tok"


def test_usernames_are_escaped():
    html = render_verification("<script>", "https://a.test/verify-email/t")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_reset_body_escapes_every_value():
    html = render_password_reset(
        "bob", "b&o@example.com", 'https://a.test/reset-password/t"><b>'
    )

    assert "<h1>Reset Your Password</h1>" in html
    assert "b&amp;o@example.com" in html
    assert 'href="https://a.test/reset-password/t&#34;&gt;&lt;b&gt;"' in html


def test_verification_body_uses_shared_layout():
    html = render_verification("alice", "https://a.test/verify-email/t")

    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Verify Your Email Address</title>" in html
    assert '<a href="https://a.test/verify-email/t">Verify email</a>' in html


def test_mailer_sends_both_messages(mailer, outbox):
    mailer.send_verification(email="a@example.com", username="alice", token="abc")
    mailer.send_password_reset(email="a@example.com", username="alice", token="def")

    verify, reset = outbox.outbox
    assert (verify.to, verify.subject) == ("a@example.com", VERIFY_SUBJECT)
    assert "https://app.example.test/verify-email/abc" in verify.html
    assert (reset.to, reset.subject) == ("a@example.com", RESET_SUBJECT)
    assert "https://app.example.test/reset-password/def" in reset.html


def test_send_failures_propagate():
    class FailingSender:
        def send(self, to, subject, html):
            raise ConnectionError("smtp down")

    mailer = AccountMailer(sender=FailingSender(), frontend_url="https://a.test")
    with pytest.raises(ConnectionError):
        mailer.send_verification(email="a@example.com", username="alice", token="abc")
