"""
Configuration loader for the EventOps framework.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from ..exceptions import (
    EventOpsBaseException,
    EventOpsConfigurationError,
    EventOpsValidationError,
)
from ..utils import get_logger


class ConfigLoader:
    """
    Configuration loader and validator for the EventOps tooling.

    This class handles loading environment-specific configuration and the tracked
    field registry from JSON files, validating required fields, and providing
    type-safe access to configuration values.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged with shared config

        Raises:
            EventOpsConfigurationError: If configuration cannot be loaded
            EventOpsValidationError: If configuration structure is invalid
        """
        try:
            env_config_path = self.config_dir / "environment_config.json"

            if not env_config_path.exists():
                raise EventOpsConfigurationError(
                    f"Environment configuration file not found: {env_config_path}"
                )

            with open(env_config_path, 'r') as f:
                config_data = json.load(f)

            self._validate_environment_config(config_data, environment)

            env_config = config_data["environments"][environment].copy()

            # Merge shared configuration with environment-specific configuration
            if "shared" in config_data:
                shared_config = config_data["shared"]

                # Environment-specific change tracking keys override shared ones
                if "change_tracking" in shared_config:
                    merged_tracking = dict(shared_config["change_tracking"])
                    merged_tracking.update(env_config.get("change_tracking", {}))
                    env_config["change_tracking"] = merged_tracking

                for key, value in shared_config.items():
                    if key != "change_tracking" and key not in env_config:
                        env_config[key] = value

            env_config["_validation"] = config_data.get("validation", {})

            self.logger.info(f"Loaded configuration for environment: {environment}")
            return env_config

        except json.JSONDecodeError as e:
            raise EventOpsConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            )
        except EventOpsBaseException:
            raise
        except Exception as e:
            raise EventOpsConfigurationError(
                f"Failed to load environment configuration: {str(e)}"
            )

    @lru_cache(maxsize=1)
    def load_field_mapping(self) -> Dict[str, Any]:
        """
        Load the tracked field registry configuration.

        Returns:
            Dictionary containing field mapping configuration

        Raises:
            EventOpsConfigurationError: If field mapping cannot be loaded
            EventOpsValidationError: If field mapping structure is invalid
        """
        try:
            field_mapping_path = self.config_dir / "field_mapping.json"

            if not field_mapping_path.exists():
                raise EventOpsConfigurationError(
                    f"Field mapping configuration file not found: {field_mapping_path}"
                )

            with open(field_mapping_path, 'r') as f:
                mapping_data = json.load(f)

            self._validate_field_mapping(mapping_data)

            self.logger.info("Loaded field mapping configuration")
            return mapping_data

        except json.JSONDecodeError as e:
            raise EventOpsConfigurationError(
                f"Invalid JSON in field mapping configuration: {str(e)}"
            )
        except EventOpsBaseException:
            raise
        except Exception as e:
            raise EventOpsConfigurationError(
                f"Failed to load field mapping configuration: {str(e)}"
            )

    def get_record_config(self, record_type: str) -> Dict[str, Any]:
        """
        Get the tracked field registry for a record type.

        Args:
            record_type: Name of the record type (e.g. 'event_request')

        Returns:
            Dictionary containing the record's fields, file fields, pending
            uploads and collections

        Raises:
            EventOpsConfigurationError: If the record type is not configured
        """
        field_mapping = self.load_field_mapping()

        if record_type not in field_mapping["records"]:
            raise EventOpsConfigurationError(
                f"Record type '{record_type}' not found in field mapping configuration"
            )

        return field_mapping["records"][record_type]

    def get_change_tracking_settings(self, environment: str) -> Dict[str, Any]:
        """
        Get change tracking settings (debounce window, audit switches) for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary of change tracking settings
        """
        env_config = self.load_environment_config(environment)
        return dict(env_config["change_tracking"])

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            EventOpsValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])

        missing_vars = []
        for var in required_vars:
            if not os.getenv(var):
                missing_vars.append(var)

        if missing_vars:
            raise EventOpsValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate

        Raises:
            EventOpsValidationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise EventOpsValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise EventOpsValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = config_data["environments"][environment]
        shared_config = config_data.get("shared", {})

        if "logging" not in env_config:
            raise EventOpsValidationError(
                f"Missing required key 'logging' in {environment} configuration"
            )

        # change_tracking may live in shared only
        if "change_tracking" not in env_config and "change_tracking" not in shared_config:
            raise EventOpsValidationError(
                f"Missing required key 'change_tracking' in {environment} configuration (including shared)"
            )

    def _validate_field_mapping(self, mapping_data: Dict[str, Any]) -> None:
        """
        Validate field mapping configuration structure.

        Args:
            mapping_data: Field mapping data to validate

        Raises:
            EventOpsValidationError: If field mapping is invalid
        """
        if "records" not in mapping_data:
            raise EventOpsValidationError("Missing 'records' key in field mapping")

        if "value_kinds" not in mapping_data:
            raise EventOpsValidationError("Missing 'value_kinds' key in field mapping")

        value_kinds = set(mapping_data["value_kinds"])

        for record_type, record_config in mapping_data["records"].items():
            if "fields" not in record_config:
                raise EventOpsValidationError(
                    f"Missing 'fields' key in record '{record_type}' configuration"
                )

            for field_key, field_config in record_config["fields"].items():
                for key in ("field_name", "label", "value_kind"):
                    if key not in field_config:
                        raise EventOpsValidationError(
                            f"Missing required key '{key}' in field '{field_key}' "
                            f"of record '{record_type}'"
                        )

                if field_config["value_kind"] not in value_kinds:
                    raise EventOpsValidationError(
                        f"Unknown value kind '{field_config['value_kind']}' in field "
                        f"'{field_key}' of record '{record_type}'"
                    )

            for collection_key, collection_config in record_config.get("collections", {}).items():
                if "field_name" not in collection_config:
                    raise EventOpsValidationError(
                        f"Missing required key 'field_name' in collection '{collection_key}' "
                        f"of record '{record_type}'"
                    )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.load_field_mapping.cache_clear()
        self.logger.info("Configuration cache cleared")
