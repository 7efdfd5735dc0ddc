"""Unit tests for the credential hasher and the logging mail sender."""

from __future__ import annotations

import logging

import pytest
from authority.infra.mail.logging_mail_sender import LoggingMailSender
from authority.infra.security.werkzeug_hasher import WerkzeugCredentialHasher


class TestWerkzeugCredentialHasher:
    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash("s3cret!")
        assert hashed != "s3cret!"
        assert hashed.startswith("scrypt:16:8:1$")
        assert hasher.verify("s3cret!", hashed) is True
        assert hasher.verify("wrong", hashed) is False

    def test_salted(self, hasher):
        assert hasher.hash("same") != hasher.hash("same")

    def test_default_work_factor(self):
        assert WerkzeugCredentialHasher().method == "scrypt:1024:8:1"

    def test_verifies_hashes_from_other_work_factors(self, hasher):
        other = WerkzeugCredentialHasher(work_factor=5).hash("pw")
        assert hasher.verify("pw", other) is True

    @pytest.mark.parametrize("factor", [0, 21, -3])
    def test_rejects_out_of_range_work_factor(self, factor):
        with pytest.raises(ValueError):
            WerkzeugCredentialHasher(work_factor=factor)

    def test_rejects_empty_password(self, hasher):
        with pytest.raises(ValueError):
            hasher.hash("")

    def test_verify_against_empty_hash(self, hasher):
        assert hasher.verify("pw", "") is False


def test_logging_mail_sender_never_logs_body(caplog):
    sender = LoggingMailSender(from_name="Authority", from_address="no-reply@example.com")
    with caplog.at_level(logging.INFO, logger="authority.infra.mail.logging_mail_sender"):
        sender.send("dest@example.com", "Hello", "<p>secret-token-value</p>")

    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert "dest@example.com" in message
    assert "Hello" in message
    assert '"Authority" <no-reply@example.com>' in message
    assert "secret-token-value" not in message
