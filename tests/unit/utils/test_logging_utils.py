"""Tests for structured logging utilities."""

import json
import logging

from protracker.config.logging_config import (
    LoggingConfig,
    configure_logging,
    reset_logging,
)
from protracker.utils.logging_utils import (
    LogContext,
    generate_run_id,
    get_log_context,
    log_function_call,
    sanitize_sensitive_data,
)


def json_logging(tmp_path):
    log_file = tmp_path / "test.log"
    configure_logging(
        LoggingConfig(
            log_format="json",
            log_file=str(log_file),
            log_level="DEBUG",
        )
    )
    return log_file


def read_entries(log_file):
    for handler in logging.getLogger().handlers:
        handler.flush()
    return [json.loads(line) for line in log_file.read_text().splitlines()]


class TestRunId:
    """Test run identifiers."""

    def test_format(self):
        run_id = generate_run_id()
        assert len(run_id) == 12
        int(run_id, 16)

    def test_uniqueness(self):
        assert len({generate_run_id() for _ in range(100)}) == 100


class TestLogContext:
    """Test LogContext context manager."""

    def teardown_method(self):
        reset_logging()

    def test_context_adds_fields_to_logs(self, tmp_path):
        log_file = json_logging(tmp_path)

        with LogContext(command="create-invoice", client_id="c1"):
            logging.getLogger("protracker.test").info("Creating invoice")

        entry = read_entries(log_file)[0]
        assert entry["command"] == "create-invoice"
        assert entry["client_id"] == "c1"

    def test_context_nesting_and_cleanup(self, tmp_path):
        log_file = json_logging(tmp_path)
        logger = logging.getLogger("protracker.test")

        with LogContext(command="import-data"):
            with LogContext(mode="merge"):
                assert get_log_context() == {"command": "import-data", "mode": "merge"}
                logger.info("Nested")
            assert get_log_context() == {"command": "import-data"}
        logger.info("Outside")

        nested, outside = read_entries(log_file)
        assert nested["mode"] == "merge"
        assert "command" not in outside
        assert get_log_context() == {}


class TestSanitizeSensitiveData:
    """Test redaction of personal and secret values."""

    def test_redacts_personal_fields(self):
        data = {"name": "Acme", "contact_email": "ap@acme.test", "phone": "555"}
        sanitized = sanitize_sensitive_data(data)

        assert sanitized["name"] == "Acme"
        assert sanitized["contact_email"] == "***REDACTED***"
        assert sanitized["phone"] == "***REDACTED***"
        assert data["contact_email"] == "ap@acme.test"

    def test_nested_dict(self):
        data = {"client": {"billing_address": "1 Main St", "id": "c1"}}
        sanitized = sanitize_sensitive_data(data)
        assert sanitized["client"] == {"billing_address": "***REDACTED***", "id": "c1"}

    def test_empty_values_kept(self):
        assert sanitize_sensitive_data({"api_key": ""}) == {"api_key": ""}

    def test_non_dict_passthrough(self):
        assert sanitize_sensitive_data(None) is None


class TestLogFunctionCall:
    """Test the log_function_call decorator."""

    def teardown_method(self):
        reset_logging()

    def test_logs_entry_and_exit(self, tmp_path):
        log_file = json_logging(tmp_path)

        @log_function_call
        def add(x, y):
            return x + y

        assert add(2, 3) == 5
        messages = [e["message"] for e in read_entries(log_file)]
        assert messages == ["Entering add", "Exiting add"]

    def test_includes_args(self, tmp_path):
        log_file = json_logging(tmp_path)

        @log_function_call(include_args=True, level="INFO")
        def greet(name, punctuation="!"):
            return f"hi {name}{punctuation}"

        greet("Ada", punctuation="?")
        first = read_entries(log_file)[0]
        assert first["level"] == "INFO"
        assert "'Ada'" in first["message"]
        assert "punctuation='?'" in first["message"]

    def test_sensitive_kwargs_redacted(self, tmp_path):
        log_file = json_logging(tmp_path)

        @log_function_call(include_args=True)
        def connect(host, api_key=None, contact_email=None):
            return host

        connect("rates.example", api_key="k-123", contact_email="ada@example.com")
        message = read_entries(log_file)[0]["message"]
        assert "'rates.example'" in message
        assert "api_key='***REDACTED***'" in message
        assert "contact_email='***REDACTED***'" in message
        assert "k-123" not in message
        assert "ada@example.com" not in message

    def test_logs_and_reraises_exceptions(self, tmp_path):
        log_file = json_logging(tmp_path)

        @log_function_call
        def fail():
            raise ValueError("boom")

        try:
            fail()
        except ValueError:
            pass
        else:
            raise AssertionError("ValueError not raised")

        last = read_entries(log_file)[-1]
        assert last["level"] == "ERROR"
        assert "ValueError: boom" in last["message"]
