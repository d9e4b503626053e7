"""
Notifier Registry - Registration and lookup of notifier codecs.

The registry is an ordered table of notifier codecs, indexed both by the
external configuration field and by the backend type tag. It is built once
at startup from the static list of built-in notifiers.
"""

from typing import Any, Dict, List, Optional, Type

from plugins.base import NotifierDescriptor, logger
from plugins.notifiers import BUILTIN_NOTIFIERS
from plugins.notifiers.base import NotifierCodec


class NotifierRegistry:
    """
    Central registry for notifier codecs.

    Guarantees that no two codecs share an external field or a type tag.
    """

    def __init__(self):
        # Codec instances keyed by external field, in registration order
        self._by_field: Dict[str, NotifierCodec] = {}
        # Mapping from backend type tag to external field
        self._type_tag_to_field: Dict[str, str] = {}

    # Registration methods

    def register_notifier(self, codec_class: Type[NotifierCodec]) -> None:
        """
        Register a notifier codec class.

        Args:
            codec_class: The NotifierCodec subclass to register

        Raises:
            ValueError: If the field or type tag is missing or already claimed
        """
        codec = codec_class()
        descriptor = codec.describe()

        if not descriptor.field or not descriptor.type_tag:
            raise ValueError(
                f"Notifier {codec_class.__name__} must define field and type_tag"
            )

        existing = self._by_field.get(descriptor.field)
        if existing is not None:
            raise ValueError(
                f"Notifier field '{descriptor.field}' is already claimed by "
                f"{type(existing).__name__}. Cannot register {codec_class.__name__}."
            )

        owner = self._type_tag_to_field.get(descriptor.type_tag)
        if owner is not None:
            raise ValueError(
                f"Notifier type '{descriptor.type_tag}' is already claimed by "
                f"field '{owner}'. Cannot register {codec_class.__name__}."
            )

        self._by_field[descriptor.field] = codec
        self._type_tag_to_field[descriptor.type_tag] = descriptor.field
        logger.debug(
            f"Registered notifier: {descriptor.field} (type: {descriptor.type_tag})"
        )

    # Lookup methods

    def lookup_by_field(self, field: str) -> NotifierCodec:
        """
        Get the codec declared under an external field.

        Raises:
            ValueError: If no codec owns the field
        """
        if field not in self._by_field:
            available = ", ".join(self._by_field.keys()) or "none"
            raise ValueError(
                f"Unknown notifier: {field}. Available notifiers: {available}"
            )
        return self._by_field[field]

    def lookup_by_type_tag(self, type_tag: str) -> Optional[NotifierCodec]:
        """Get the codec for a backend type tag, or None if unrecognized."""
        field = self._type_tag_to_field.get(type_tag)
        if field is None:
            return None
        return self._by_field[field]

    def has_field(self, field: str) -> bool:
        """Check if a codec is declared under the given field."""
        return field in self._by_field

    def list_notifiers(self) -> List[NotifierCodec]:
        """All registered codecs, in registration order."""
        return list(self._by_field.values())

    def list_fields(self) -> List[str]:
        """All registered external fields, in registration order."""
        return list(self._by_field.keys())

    def describe_all(self) -> List[NotifierDescriptor]:
        """Descriptors of every registered codec."""
        return [codec.describe() for codec in self._by_field.values()]

    # Configuration shape

    def configuration_shape(self) -> Dict[str, Any]:
        """
        JSON schema of a logical contact point.

        Every notifier contributes an optional array under its field; at
        least one of these arrays must be present and non-empty.
        """
        properties: Dict[str, Any] = {
            "id": {"type": "string", "description": "The ID of the contact point."},
            "org_id": {
                "type": "string",
                "pattern": "^[0-9]*$",
                "description": "The organization of the contact point.",
            },
            "name": {
                "type": "string",
                "minLength": 1,
                "description": "The name of the contact point.",
            },
        }
        for field, codec in self._by_field.items():
            properties[field] = {
                "type": "array",
                "description": codec.description,
                "items": codec.configuration_shape(),
            }

        return {
            "type": "object",
            "required": ["name"],
            "properties": properties,
            "additionalProperties": False,
            "anyOf": [
                {"required": [field], "properties": {field: {"minItems": 1}}}
                for field in self._by_field
            ],
        }


# Global registry instance
_registry: Optional[NotifierRegistry] = None


def get_registry() -> NotifierRegistry:
    """Get the global notifier registry, built with the built-in notifiers."""
    global _registry
    if _registry is None:
        _registry = NotifierRegistry()
        register_builtin_notifiers(_registry)
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def register_builtin_notifiers(registry: NotifierRegistry) -> None:
    """Register every built-in notifier kind."""
    for codec_class in BUILTIN_NOTIFIERS:
        registry.register_notifier(codec_class)
    logger.info(f"Registered {len(BUILTIN_NOTIFIERS)} built-in notifiers")
