"""
Logging Tests
-------------
Tests for centralized logging and scope_id propagation.
"""

import json
import logging
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from infra.logging import (
    AccessScope, JSONFormatter, ScopeIdFilter, configure_logging,
    generate_scope_id, get_logger, get_scope_id
)
from memory.store import Store
from core.errors import PermissionDenied


class TestScope:
    """Access scope propagation."""

    def test_no_scope_by_default(self):
        assert get_scope_id() is None

    def test_scope_sets_and_resets(self):
        with AccessScope() as scope_id:
            assert scope_id.startswith("scope_")
            assert get_scope_id() == scope_id
        assert get_scope_id() is None

    def test_explicit_and_nested_scopes(self):
        with AccessScope("outer"):
            with AccessScope("inner"):
                assert get_scope_id() == "inner"
            assert get_scope_id() == "outer"

    def test_generated_ids_unique(self):
        assert len({generate_scope_id() for _ in range(100)}) == 100


class TestFormatting:
    """Filters and formatters."""

    def _record(self, **extra):
        record = logging.LogRecord(
            "strongbox.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_filter_uses_context(self):
        record = self._record()
        with AccessScope("scope_abc"):
            assert ScopeIdFilter().filter(record)
        assert record.scope_id == "scope_abc"

    def test_filter_placeholder_outside_scope(self):
        record = self._record()
        ScopeIdFilter().filter(record)
        assert record.scope_id == "-"

    def test_filter_keeps_explicit_scope(self):
        record = self._record(scope_id="given")
        with AccessScope("other"):
            ScopeIdFilter().filter(record)
        assert record.scope_id == "given"

    def test_json_formatter(self):
        record = self._record(scope_id="s1", path="a:b", operation="write", policy="r")
        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "hello world"
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "strongbox.test"
        assert entry["scope_id"] == "s1"
        assert entry["path"] == "a:b"
        assert entry["operation"] == "write"
        assert entry["policy"] == "r"


class TestConfigureLogging:
    """configure_logging() and get_logger()."""

    def test_get_logger_prefix(self):
        assert get_logger("memory.store").name == "strongbox.memory.store"
        assert get_logger("strongbox.security").name == "strongbox.security"
        assert get_logger("strongbox").name == "strongbox"
        assert get_logger("strongboxer").name == "strongbox.strongboxer"

    def test_file_output_carries_scope(self, tmp_path, reset_logging):
        configure_logging(level="DEBUG", log_dir=str(tmp_path), console=False, file=True)
        store = Store(default_policy="r")

        with AccessScope("scope_test"):
            with pytest.raises(PermissionDenied):
                store.write("locked:key", 1)

        lines = (tmp_path / "strongbox.log").read_text().splitlines()
        entries = [json.loads(line) for line in lines]
        denial = next(e for e in entries if e["level"] == "WARNING")

        assert denial["scope_id"] == "scope_test"
        assert denial["path"] == "locked:key"
        assert denial["operation"] == "write"
        assert denial["policy"] == "r"

    def test_idempotent_unless_forced(self, tmp_path, reset_logging):
        configure_logging(level=logging.WARNING, console=False)
        configure_logging(level=logging.DEBUG, console=False)
        assert logging.getLogger("strongbox").level == logging.WARNING

        configure_logging(level=logging.DEBUG, console=False, force=True)
        assert logging.getLogger("strongbox").level == logging.DEBUG

    def test_console_handler_installed(self, reset_logging):
        configure_logging(console=True, file=False)
        handlers = logging.getLogger("strongbox").handlers
        assert len(handlers) == 1
        assert reset_logging.get_log_file_path() is None

    def test_unknown_level(self, reset_logging):
        with pytest.raises(ValueError):
            configure_logging(level="LOUD", console=False)
