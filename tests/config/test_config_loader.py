"""
Unit tests for ConfigLoader class.

This module contains tests for configuration loading,
validation, and error handling.
"""

import json
import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from eventops.config import ConfigLoader
from eventops.exceptions import EventOpsConfigurationError, EventOpsValidationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with shared change tracking settings."""
        return {
            "shared": {
                "change_tracking": {
                    "record_type": "event_request",
                    "debounce_ms": 500,
                    "enable_audit_logging": True,
                    "actor_resolution": {"max_attempts": 3}
                },
                "support_email": "events@example.org"
            },
            "environments": {
                "development": {
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "change_tracking": {"enable_audit_logging": False}
                },
                "production": {
                    "logging": {"level": "INFO", "format": "json"},
                    "change_tracking": {"debounce_ms": 750}
                }
            },
            "validation": {
                "required_environment_variables": ["EVENTOPS_AUDIT_PROJECT"]
            }
        }

    @pytest.fixture
    def valid_field_mapping(self):
        """Valid field mapping configuration for testing."""
        return {
            "value_kinds": ["text", "number", "boolean", "date", "array", "object", "file"],
            "records": {
                "event_request": {
                    "fields": {
                        "name": {"field_name": "name", "label": "Event Name", "value_kind": "text"},
                        "points_to_reward": {
                            "field_name": "pointsToReward",
                            "label": "Points to Reward",
                            "value_kind": "number"
                        }
                    },
                    "collections": {
                        "invoices": {"field_name": "invoices", "id_field": "id"}
                    }
                }
            }
        }

    @pytest.fixture
    def config_loader(self, temp_config_dir):
        """Create ConfigLoader instance with temporary directory."""
        return ConfigLoader(config_dir=str(temp_config_dir))

    def _write(self, directory: Path, name: str, data) -> None:
        with open(directory / name, 'w') as f:
            json.dump(data, f)

    def test_init_default_config_dir(self):
        """Test ConfigLoader initialization with default config directory."""
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")

    def test_init_custom_config_dir(self, temp_config_dir):
        """Test ConfigLoader initialization with custom config directory."""
        loader = ConfigLoader(config_dir=str(temp_config_dir))
        assert loader.config_dir == temp_config_dir

    def test_load_environment_config_success(self, config_loader, temp_config_dir, valid_environment_config):
        """Test loading environment configuration merged with shared settings."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        config = config_loader.load_environment_config("development")

        assert config["logging"]["level"] == "DEBUG"
        assert config["change_tracking"]["enable_audit_logging"] is False  # Environment override
        assert config["change_tracking"]["debounce_ms"] == 500  # From shared
        assert config["support_email"] == "events@example.org"
        assert "_validation" in config

    def test_load_environment_config_shared_override(self, config_loader, temp_config_dir, valid_environment_config):
        """Test that environment-specific change tracking keys override shared ones."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        config = config_loader.load_environment_config("production")

        assert config["change_tracking"]["debounce_ms"] == 750
        assert config["change_tracking"]["enable_audit_logging"] is True
        assert config["change_tracking"]["actor_resolution"] == {"max_attempts": 3}

    def test_load_environment_config_file_not_found(self, config_loader):
        """Test loading environment configuration when file doesn't exist."""
        with pytest.raises(EventOpsConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Environment configuration file not found" in str(exc_info.value)

    def test_load_environment_config_invalid_json(self, config_loader, temp_config_dir):
        """Test loading environment configuration with invalid JSON."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            f.write("{ invalid json }")

        with pytest.raises(EventOpsConfigurationError) as exc_info:
            config_loader.load_environment_config("development")

        assert "Invalid JSON in environment configuration" in str(exc_info.value)

    def test_load_environment_config_missing_environment(self, config_loader, temp_config_dir, valid_environment_config):
        """Test loading non-existent environment configuration."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader.load_environment_config("staging")

        assert "Environment 'staging' not found" in str(exc_info.value)

    def test_get_change_tracking_settings(self, config_loader, temp_config_dir, valid_environment_config):
        """Test retrieval of merged change tracking settings."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        settings = config_loader.get_change_tracking_settings("production")

        assert settings["record_type"] == "event_request"
        assert settings["debounce_ms"] == 750

    def test_load_field_mapping_success(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test successful loading of field mapping configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        mapping = config_loader.load_field_mapping()

        assert "records" in mapping
        assert "event_request" in mapping["records"]
        assert "value_kinds" in mapping

    def test_load_field_mapping_file_not_found(self, config_loader):
        """Test loading field mapping when file doesn't exist."""
        with pytest.raises(EventOpsConfigurationError) as exc_info:
            config_loader.load_field_mapping()

        assert "Field mapping configuration file not found" in str(exc_info.value)

    def test_get_record_config_success(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test successful retrieval of record configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        record_config = config_loader.get_record_config("event_request")

        assert "fields" in record_config
        assert "name" in record_config["fields"]
        assert record_config["collections"]["invoices"]["id_field"] == "id"

    def test_get_record_config_not_found(self, config_loader, temp_config_dir, valid_field_mapping):
        """Test retrieval of non-existent record configuration."""
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        with pytest.raises(EventOpsConfigurationError) as exc_info:
            config_loader.get_record_config("sponsor")

        assert "Record type 'sponsor' not found" in str(exc_info.value)

    @patch.dict(os.environ, {"EVENTOPS_AUDIT_PROJECT": "test"})
    def test_validate_environment_variables_success(self, config_loader, temp_config_dir, valid_environment_config):
        """Test successful validation of environment variables."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        # Should not raise any exception
        config_loader.validate_environment_variables("development")

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_missing(self, config_loader, temp_config_dir, valid_environment_config):
        """Test validation with missing environment variables."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader.validate_environment_variables("development")

        assert "Missing required environment variables" in str(exc_info.value)

    def test_validate_environment_config_missing_environments(self, config_loader):
        """Test validation with missing environments key."""
        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_environment_config({"invalid": "config"}, "development")

        assert "Missing 'environments' key" in str(exc_info.value)

    def test_validate_environment_config_missing_logging(self, config_loader):
        """Test validation with missing logging key."""
        invalid_config = {
            "environments": {"development": {"change_tracking": {}}}
        }

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_environment_config(invalid_config, "development")

        assert "Missing required key 'logging'" in str(exc_info.value)

    def test_validate_environment_config_change_tracking_from_shared(self, config_loader):
        """Test that change tracking settings may come from the shared section only."""
        config = {
            "shared": {"change_tracking": {"debounce_ms": 500}},
            "environments": {"development": {"logging": {"level": "DEBUG"}}}
        }

        # Should not raise any exception
        config_loader._validate_environment_config(config, "development")

    def test_validate_environment_config_missing_change_tracking(self, config_loader):
        """Test validation when change tracking settings are absent everywhere."""
        config = {"environments": {"development": {"logging": {"level": "DEBUG"}}}}

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_environment_config(config, "development")

        assert "change_tracking" in str(exc_info.value)

    def test_validate_field_mapping_missing_records(self, config_loader):
        """Test validation with missing records key."""
        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_field_mapping({"value_kinds": []})

        assert "Missing 'records' key" in str(exc_info.value)

    def test_validate_field_mapping_missing_value_kinds(self, config_loader):
        """Test validation with missing value_kinds key."""
        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_field_mapping({"records": {}})

        assert "Missing 'value_kinds' key" in str(exc_info.value)

    def test_validate_field_mapping_missing_field_key(self, config_loader, valid_field_mapping):
        """Test validation when a field entry lacks its label."""
        del valid_field_mapping["records"]["event_request"]["fields"]["name"]["label"]

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_field_mapping(valid_field_mapping)

        assert "Missing required key 'label' in field 'name'" in str(exc_info.value)

    def test_validate_field_mapping_unknown_value_kind(self, config_loader, valid_field_mapping):
        """Test validation rejects value kinds outside the declared list."""
        valid_field_mapping["records"]["event_request"]["fields"]["name"]["value_kind"] = "currency"

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_field_mapping(valid_field_mapping)

        assert "Unknown value kind 'currency'" in str(exc_info.value)

    def test_validate_field_mapping_collection_without_field_name(self, config_loader, valid_field_mapping):
        """Test validation of collection entries."""
        valid_field_mapping["records"]["event_request"]["collections"]["invoices"] = {"id_field": "id"}

        with pytest.raises(EventOpsValidationError) as exc_info:
            config_loader._validate_field_mapping(valid_field_mapping)

        assert "collection 'invoices'" in str(exc_info.value)

    def test_clear_cache(self, config_loader, temp_config_dir, valid_environment_config, valid_field_mapping):
        """Test cache clearing functionality."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)
        self._write(temp_config_dir, "field_mapping.json", valid_field_mapping)

        config_loader.load_environment_config("development")
        config_loader.load_field_mapping()

        config_loader.clear_cache()

        assert config_loader.load_environment_config.cache_info().currsize == 0
        assert config_loader.load_field_mapping.cache_info().currsize == 0

    def test_configuration_caching(self, config_loader, temp_config_dir, valid_environment_config):
        """Test that configuration is properly cached."""
        self._write(temp_config_dir, "environment_config.json", valid_environment_config)

        config1 = config_loader.load_environment_config("development")
        config2 = config_loader.load_environment_config("development")

        # Should return the same object (cached)
        assert config1 is config2

    def test_repository_configuration_is_valid(self):
        """Test that the shipped configuration files load and validate."""
        repo_config_dir = Path(__file__).resolve().parents[2] / "config"
        loader = ConfigLoader(config_dir=str(repo_config_dir))

        for environment in ("development", "production"):
            settings = loader.get_change_tracking_settings(environment)
            assert settings["record_type"] == "event_request"
            assert settings["debounce_ms"] > 0

        record_config = loader.get_record_config("event_request")
        assert len(record_config["fields"]) == 22
