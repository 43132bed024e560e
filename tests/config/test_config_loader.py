"""
Tests for YAML configuration loading and schema validation.

Tests cover:
- defaults.yaml parses into a complete InvoicingConfig
- Unknown keys, missing sections and wrong types are rejected
- Section-level invariants (quorum, equity bounds, fee cap)
- DATABASE_URL overrides database.url
- get_active_config caches until reset and honours INVOICING_CONFIG_PATH
"""

import copy

import pytest
import yaml

from invoicing_config import (
    DEFAULT_CONFIG_PATH,
    EquityBounds,
    get_active_config,
    load_config,
    parse_config,
    reset_active_config,
)
from invoicing_config.loader import compute_checksum, load_yaml_file


@pytest.fixture
def raw_defaults() -> dict:
    return load_yaml_file(DEFAULT_CONFIG_PATH)


class TestDefaults:

    def test_defaults_parse(self, test_config):
        assert test_config.approvals.default_required_approval_count == 1
        assert test_config.equity.minimum_percentage == 0
        assert test_config.equity.maximum_percentage == 100
        assert test_config.fees.max_cents >= test_config.fees.base_cents
        assert test_config.numbering.initial_admin_invoice_number == "O-0001"

    def test_checksum_is_stable(self, raw_defaults, test_config):
        assert test_config.checksum == compute_checksum(raw_defaults)
        assert len(test_config.checksum) == 64


class TestValidation:

    def test_missing_section(self, raw_defaults):
        del raw_defaults["fees"]
        with pytest.raises(ValueError, match="Missing config section"):
            parse_config(raw_defaults)

    def test_unknown_key(self, raw_defaults):
        raw_defaults["approvals"]["auto_approve"] = True
        with pytest.raises(ValueError, match="Unknown key"):
            parse_config(raw_defaults)

    def test_section_must_be_mapping(self, raw_defaults):
        raw_defaults["equity"] = [0, 100]
        with pytest.raises(ValueError, match="must be a mapping"):
            parse_config(raw_defaults)

    def test_wrong_type(self, raw_defaults):
        raw_defaults["fees"]["base_cents"] = "fifty"
        with pytest.raises(ValueError, match="must be an integer"):
            parse_config(raw_defaults)

    def test_boolean_is_not_an_integer(self, raw_defaults):
        raw_defaults["approvals"]["default_required_approval_count"] = True
        with pytest.raises(ValueError, match="must be an integer"):
            parse_config(raw_defaults)

    def test_zero_quorum(self, raw_defaults):
        raw_defaults["approvals"]["default_required_approval_count"] = 0
        with pytest.raises(ValueError, match=">= 1"):
            parse_config(raw_defaults)

    def test_inverted_equity_bounds(self, raw_defaults):
        raw_defaults["equity"] = {"minimum_percentage": 60, "maximum_percentage": 40}
        with pytest.raises(ValueError, match="equity bounds"):
            parse_config(raw_defaults)

    def test_fee_cap_below_base(self, raw_defaults):
        raw_defaults["fees"]["max_cents"] = 10
        with pytest.raises(ValueError, match="max_cents"):
            parse_config(raw_defaults)

    def test_initial_number_needs_digits(self, raw_defaults):
        raw_defaults["numbering"]["initial_admin_invoice_number"] = "ADMIN"
        with pytest.raises(ValueError, match="digits"):
            parse_config(raw_defaults)

    def test_equity_bounds_contains(self):
        bounds = EquityBounds(minimum_percentage=10, maximum_percentage=50)
        assert bounds.contains(10)
        assert bounds.contains(50)
        assert not bounds.contains(9)
        assert not bounds.contains(51)


class TestEnvironment:

    def test_database_url_override(self, raw_defaults, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://other/db")
        config = parse_config(copy.deepcopy(raw_defaults))
        assert config.database.url == "postgresql://other/db"
        assert config.database.pool_size == raw_defaults["database"]["pool_size"]

    def test_active_config_is_cached(self):
        first = get_active_config()
        assert get_active_config() is first
        reset_active_config()
        assert get_active_config() is not first

    def test_active_config_path_from_environment(self, raw_defaults, tmp_path, monkeypatch):
        raw_defaults["approvals"]["default_required_approval_count"] = 3
        path = tmp_path / "invoicing.yaml"
        path.write_text(yaml.safe_dump(raw_defaults))
        monkeypatch.setenv("INVOICING_CONFIG_PATH", str(path))

        assert get_active_config().approvals.default_required_approval_count == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")
