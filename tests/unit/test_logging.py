"""Unit tests for logging_audit module."""

import logging
import re

import pytest

from saml2_verifier.logging_audit import (
    SensitiveDataRedactingFormatter,
    configure_logging,
    configure_stage_logging,
    get_logger,
    log_audit_event,
    log_response_document,
    set_stage_log_level,
)
from saml2_verifier.logging_audit.logger import LOG_FILE_ENV_VAR, STAGE_LOGGERS


def _record(msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestConfigureLogging:
    """Test logging configuration."""

    def test_configure_logging_creates_file(self, tmp_path):
        """Test logging configuration creates log file."""
        # Arrange
        log_file = tmp_path / "test.log"

        # Act
        configure_logging(level="INFO", log_file=log_file)
        get_logger(__name__).info("Test message")

        # Assert
        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_configure_logging_sets_console_level(self, tmp_path):
        configure_logging(level="WARNING", log_file=tmp_path / "test.log")

        root_logger = logging.getLogger()
        console_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not hasattr(h, "baseFilename")
        ]
        assert console_handlers[-1].level == logging.WARNING

    def test_configure_logging_file_level_debug(self, tmp_path):
        """Test file handler always uses DEBUG level."""
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        logger = get_logger(__name__)
        logger.debug("Debug message")
        logger.info("Info message")

        content = log_file.read_text()
        assert "Debug message" in content
        assert "Info message" in content

    def test_configure_logging_creates_directory(self, tmp_path):
        log_file = tmp_path / "nested" / "dir" / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        get_logger(__name__).info("Test message")

        assert log_file.exists()

    def test_configure_logging_invalid_level_raises_error(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", log_file=tmp_path / "test.log")

    def test_configure_logging_environment_variable(self, tmp_path, monkeypatch):
        """Test SAML2_VERIFIER_LOG_FILE environment variable overrides default."""
        env_log_file = tmp_path / "env.log"
        monkeypatch.setenv(LOG_FILE_ENV_VAR, str(env_log_file))

        configure_logging(level="INFO", log_file=None)
        get_logger(__name__).info("Test message")

        assert "Test message" in env_log_file.read_text()

    def test_configure_logging_explicit_file_overrides_environment(self, tmp_path, monkeypatch):
        env_log_file = tmp_path / "env.log"
        cli_log_file = tmp_path / "cli.log"
        monkeypatch.setenv(LOG_FILE_ENV_VAR, str(env_log_file))

        configure_logging(level="INFO", log_file=cli_log_file)
        get_logger(__name__).info("Test message")

        assert not env_log_file.exists()
        assert "Test message" in cli_log_file.read_text()

    def test_configure_logging_idempotent(self, tmp_path):
        """Test reconfiguring replaces handlers instead of stacking them."""
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        configure_logging(level="DEBUG", log_file=log_file)
        get_logger(__name__).info("Logged once")

        assert log_file.read_text().count("Logged once") == 1

    def test_configure_logging_log_format(self, tmp_path):
        """Test log format: timestamp - module - level - message."""
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file)
        get_logger(__name__).info("Test message")

        pattern = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3} - .+ - INFO - Test message"
        assert re.search(pattern, log_file.read_text())

    def test_configure_logging_rotation_config(self, tmp_path):
        configure_logging(level="INFO", log_file=tmp_path / "test.log")

        file_handler = next(
            h for h in logging.getLogger().handlers if hasattr(h, "maxBytes")
        )
        assert file_handler.maxBytes == 10 * 1024 * 1024
        assert file_handler.backupCount == 5

    def test_configure_logging_redacts_file_output(self, tmp_path):
        log_file = tmp_path / "test.log"

        configure_logging(level="INFO", log_file=log_file, redact_sensitive=True)
        get_logger(__name__).info("Subject NameID user@example.com")

        content = log_file.read_text()
        assert "user@example.com" not in content
        assert "[EMAIL-REDACTED]" in content


class TestStageLogging:
    """Test per-stage log level control."""

    def test_set_stage_log_level(self):
        set_stage_log_level("verify", "debug")
        assert logging.getLogger(STAGE_LOGGERS["verify"]).level == logging.DEBUG

    def test_set_stage_log_level_unknown_stage(self):
        with pytest.raises(ValueError, match="Unknown stage"):
            set_stage_log_level("transport", "DEBUG")

    def test_set_stage_log_level_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            set_stage_log_level("repair", "LOUD")

    def test_configure_stage_logging(self):
        configure_stage_logging({"repair": "WARNING", "parse": "ERROR"})

        assert logging.getLogger(STAGE_LOGGERS["repair"]).level == logging.WARNING
        assert logging.getLogger(STAGE_LOGGERS["parse"]).level == logging.ERROR

    def test_stage_loggers_match_modules(self):
        """Test stage logger names are the pipeline module names."""
        assert STAGE_LOGGERS["verify"] == "saml2_verifier.saml.verifier"
        assert STAGE_LOGGERS["repair"] == "saml2_verifier.saml.repair"


class TestSensitiveDataRedactingFormatter:
    """Test redaction of SAML content."""

    def test_redact_certificate(self):
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)

        result = formatter.format(
            _record("<ds:X509Certificate>MIICpDCCAYwCCQD</ds:X509Certificate>")
        )

        assert "MIICpDCCAYwCCQD" not in result
        assert "<ds:X509Certificate>[CERTIFICATE-REDACTED]</ds:X509Certificate>" in result

    def test_redact_signature_value(self):
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)

        result = formatter.format(_record("<ds:SignatureValue>abc+/=</ds:SignatureValue>"))

        assert "abc+/=" not in result
        assert "[SIGNATURE-REDACTED]" in result

    def test_redact_email(self):
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)

        result = formatter.format(_record("<saml:NameID>user@example.com</saml:NameID>"))

        assert "user@example.com" not in result
        assert "[EMAIL-REDACTED]" in result

    def test_redact_long_base64(self):
        """Test long base64 runs such as encoded responses are redacted."""
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)
        payload = "PHNhbWxwOlJlc3BvbnNl" * 10

        result = formatter.format(_record(f"encoded={payload}"))

        assert payload not in result
        assert "encoded=[BASE64-REDACTED]" in result

    def test_short_tokens_untouched(self):
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)

        result = formatter.format(_record("Verified assertion[0] of _resp-0001"))

        assert "Verified assertion[0] of _resp-0001" in result

    def test_no_redaction_when_disabled(self):
        formatter = SensitiveDataRedactingFormatter(redact_sensitive=False)

        result = formatter.format(_record("<saml:NameID>user@example.com</saml:NameID>"))

        assert "user@example.com" in result
        assert "[EMAIL-REDACTED]" not in result


class TestLogAuditEvent:
    """Test audit trail logging."""

    def test_log_audit_event_success(self, tmp_path):
        """Test audit event logging for a verified response."""
        # Arrange
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        # Act
        log_audit_event(
            "SAML2_VERIFIED",
            {
                "status": "success",
                "response_id": "_resp-0001",
                "signature_count": 2,
                "duration": 0.25,
            },
        )

        # Assert
        content = log_file.read_text()
        assert "AUDIT [SAML2_VERIFIED] | status=success | response_id=_resp-0001" in content
        assert "signature_count=2" in content
        assert "duration=0.25s" in content
        assert " - INFO - AUDIT" in content

    def test_log_audit_event_failure_logged_as_error(self, tmp_path):
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)

        log_audit_event(
            "SAML2_REJECTED",
            {"status": "failure", "error_message": "signature validation failed"},
        )

        content = log_file.read_text()
        assert " - ERROR - AUDIT [SAML2_REJECTED]" in content
        assert "error_message=signature validation failed" in content

    def test_log_audit_event_adds_correlation_id(self, caplog):
        with caplog.at_level(logging.INFO):
            log_audit_event("SAML2_VERIFIED", {"status": "success"})

        assert "correlation_id=" in caplog.text

    def test_log_audit_event_preserves_custom_correlation_id(self, caplog):
        with caplog.at_level(logging.INFO):
            log_audit_event("SAML2_VERIFIED", {"status": "success", "correlation_id": "abc-1"})

        assert "correlation_id=abc-1" in caplog.text

    def test_log_audit_event_extra_fields_follow_known_fields(self, caplog):
        with caplog.at_level(logging.INFO):
            log_audit_event("SAML2_VERIFIED", {"issuer": "https://idp", "status": "success"})

        message = caplog.records[-1].getMessage()
        assert message.index("status=success") < message.index("issuer=https://idp")

    def test_log_audit_event_does_not_mutate_details(self):
        details = {"status": "success"}

        log_audit_event("SAML2_VERIFIED", details)

        assert details == {"status": "success"}


class TestLogResponseDocument:
    """Test DEBUG logging of received documents."""

    def test_log_response_document(self, caplog):
        with caplog.at_level(logging.DEBUG):
            log_response_document("ZW5j", "<samlp:Response/>", "success", "abc-1")

        assert "RESPONSE [success] | correlation_id=abc-1" in caplog.text
        assert "encoded_size=4 chars" in caplog.text
        assert "<samlp:Response/>" in caplog.text

    def test_log_response_document_without_decoded(self, caplog):
        with caplog.at_level(logging.DEBUG):
            log_response_document("!!!", None, "failure")

        assert "decoded_size=0 chars" in caplog.text
        assert "RESPONSE DOCUMENT" not in caplog.text
