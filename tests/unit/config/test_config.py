"""
SMOKE: Test configuration loads correctly.

Validates defaults, derived properties and startup validation.
"""

import pytest
from pydantic import SecretStr, ValidationError

from src.conf.config import Settings, validate_required_settings


def _settings(**overrides) -> Settings:
    values = {"HUBSPOT_PRIVATE_APP_TOKEN": "pat-test", **overrides}
    return Settings(_env_file=None, **values)


@pytest.mark.smoke
class TestConfigLoads:
    """Verify configuration loads and validates correctly."""

    def test_settings_object_exists(self):
        from src.conf.config import get_settings, settings

        assert settings is get_settings()

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        for name in ("PROCESSING_DELAY_MS", "TASK_ASSOCIATION_DELAY_MS", "CONTRACT_OBJECT_TYPE"):
            monkeypatch.delenv(name, raising=False)

        config = _settings()

        assert config.LEADS_OBJECT == "leads"
        assert config.OWNER_ROLE_PROP == "owner_role"
        assert config.REAL_ESTATE_ID_PROP == "real_estate_record_id"
        assert config.PRIMARY_VALUE == "Primary"
        assert config.SECONDARY_VALUE == "Secondary"
        assert config.PROCESSING_DELAY_MS == 2000
        assert config.TASK_ASSOCIATION_DELAY_MS == 1500
        assert config.SEARCH_PAGE_LIMIT == 100
        assert config.PORT == 3000
        assert config.processing_delay_seconds == 2.0
        assert config.task_association_delay_seconds == 1.5
        assert config.contract_object_type is None

    def test_contract_object_type_is_stripped(self):
        assert _settings(CONTRACT_OBJECT_TYPE=" 2-1234567 ").contract_object_type == "2-1234567"

    def test_hubspot_configured(self):
        assert _settings().hubspot_configured
        assert not _settings(HUBSPOT_PRIVATE_APP_TOKEN="").hubspot_configured

    def test_token_is_not_exposed_in_repr(self):
        assert "pat-test" not in repr(_settings())

    def test_markers_must_differ(self):
        with pytest.raises(ValidationError):
            _settings(PRIMARY_VALUE="Primary", SECONDARY_VALUE=" primary ")

    @pytest.mark.parametrize(
        "overrides",
        [{"PROCESSING_DELAY_MS": -1}, {"SEARCH_PAGE_LIMIT": 101}, {"HUBSPOT_TIMEOUT_SECONDS": 0}],
    )
    def test_out_of_range_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            _settings(**overrides)


@pytest.mark.smoke
class TestValidateRequiredSettings:
    def test_missing_token_raises(self):
        config = _settings(HUBSPOT_PRIVATE_APP_TOKEN="")

        with pytest.raises(RuntimeError, match="HUBSPOT_PRIVATE_APP_TOKEN"):
            validate_required_settings(config)

    def test_optional_settings_only_warn(self, caplog):
        config = _settings(HUBSPOT_CLIENT_SECRET=SecretStr(""), CONTRACT_OBJECT_TYPE="")

        validate_required_settings(config)

        assert "HUBSPOT_CLIENT_SECRET not set" in caplog.text
        assert "CONTRACT_OBJECT_TYPE not set" in caplog.text
