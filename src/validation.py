"""
Schema Validation - JSON schema validation of declared configuration.

Declared contact points and mute timings are validated against the shape
built from the notifier registry before anything is sent to the backend.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a declared configuration does not match its shape."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def validate_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a schema is itself a valid JSON Schema (Draft 7).

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except Exception as e:
        return False, f"Invalid schema: {str(e)}"


def validate_spec_against_schema(
    spec: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a declared configuration against a JSON schema.

    Args:
        spec: The declared configuration to validate
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema)
        errors = list(validator.iter_errors(spec))

        if not errors:
            return True, None

        # Collect all validation errors
        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            if error.validator == "anyOf" and not error.absolute_path:
                error_messages.append(f"{path}: at least one notifier must be set")
            else:
                error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except ValidationError as e:
        return False, f"Validation error: {str(e)}"


def validate_or_raise(spec: Dict[str, Any], schema: Dict[str, Any], kind: str) -> None:
    """
    Validate a declared configuration, raising on failure.

    Raises:
        ConfigurationError: If the configuration does not match the schema
    """
    is_valid, error = validate_spec_against_schema(spec, schema)
    if not is_valid:
        logger.error(f"Invalid {kind} configuration: {error}")
        raise ConfigurationError(f"Invalid {kind} configuration: {error}")
