"""
Notifier Codec Base - Abstract interface for notifier kinds.

Each notifier kind maps between the backend's flat ``settings`` map and
the external configuration, where well-known settings are exposed as
typed fields and everything else stays in the generic ``settings`` map.
Subclasses declare their field table; quirks are handled by overriding
``unpack_settings()`` / ``pack_settings()``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from models import ContactPoint
from plugins.base import NotifierDescriptor
from settings_normalizer import (
    normalize_settings,
    prune_empty_settings,
    render_setting_value,
)


class FieldKind(Enum):
    """Value types a typed notifier field can hold."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    STRING_LIST = "string_list"
    STRING_MAP = "string_map"


@dataclass(frozen=True)
class NotifierField:
    """One typed field of a notifier and the settings key backing it."""

    name: str
    key: str
    kind: FieldKind = FieldKind.STRING
    description: str = ""
    required: bool = False
    secure: bool = False

    def schema(self) -> Dict[str, Any]:
        """JSON schema fragment for this field."""
        if self.kind == FieldKind.BOOL:
            schema: Dict[str, Any] = {"type": "boolean"}
        elif self.kind == FieldKind.INT:
            schema = {"type": "integer"}
        elif self.kind == FieldKind.STRING_LIST:
            schema = {"type": "array", "items": {"type": "string"}}
            if self.required:
                schema["minItems"] = 1
        elif self.kind == FieldKind.STRING_MAP:
            schema = {"type": "object", "additionalProperties": {"type": "string"}}
        else:
            schema = {"type": "string"}
        if self.description:
            schema["description"] = self.description
        return schema


def _field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    """Shorthand used by the notifier field tables."""
    return NotifierField(name=name, key=key or name, **kwargs)


def string_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.STRING, **kwargs)


def secure_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.STRING, secure=True, **kwargs)


def bool_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.BOOL, **kwargs)


def int_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.INT, **kwargs)


def list_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.STRING_LIST, **kwargs)


def map_field(name: str, key: Optional[str] = None, **kwargs: Any) -> NotifierField:
    return _field(name, key, kind=FieldKind.STRING_MAP, **kwargs)


# Common field helpers


def unpack_common_fields(raw: Dict[str, Any]) -> Tuple[str, bool, Dict[str, Any]]:
    """Extract uid, disable_resolve_message and a copy of the settings map."""
    uid = raw.get("uid") or ""
    disable_resolve_message = raw.get("disable_resolve_message", False)
    settings = raw.get("settings") or {}
    if not isinstance(uid, str):
        raise TypeError(f"uid must be a string, got {type(uid).__name__}")
    if not isinstance(disable_resolve_message, bool):
        raise TypeError("disable_resolve_message must be a boolean")
    if not isinstance(settings, dict):
        raise TypeError(f"settings must be a mapping, got {type(settings).__name__}")
    return uid, disable_resolve_message, dict(settings)


def pack_common_fields(point: ContactPoint) -> Dict[str, Any]:
    return {
        "uid": point.uid,
        "disable_resolve_message": point.disable_resolve_message,
    }


def unpack_notifier_field(
    field: NotifierField, raw: Dict[str, Any], settings: Dict[str, Any]
) -> None:
    """
    Copy a declared typed field into the backend settings map.

    Absent fields and empty strings are omitted rather than sent.

    Raises:
        TypeError: If the declared value has the wrong type
    """
    value = raw.get(field.name)
    if value is None:
        return

    if field.kind == FieldKind.STRING:
        if not isinstance(value, str):
            raise TypeError(f"{field.name} must be a string")
        if value == "":
            return
        settings[field.key] = value
    elif field.kind == FieldKind.BOOL:
        if not isinstance(value, bool):
            raise TypeError(f"{field.name} must be a boolean")
        settings[field.key] = value
    elif field.kind == FieldKind.INT:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{field.name} must be an integer")
        settings[field.key] = value
    elif field.kind == FieldKind.STRING_LIST:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"{field.name} must be a list")
        settings[field.key] = [str(v) for v in value]
    elif field.kind == FieldKind.STRING_MAP:
        if not isinstance(value, dict):
            raise TypeError(f"{field.name} must be a mapping")
        settings[field.key] = dict(value)


def pack_notifier_field(
    field: NotifierField, settings: Dict[str, Any], packed: Dict[str, Any]
) -> None:
    """
    Move a typed field out of the backend settings map into ``packed``.

    The key is removed from ``settings`` whether or not it carried a
    value, so it never shows up again in the residual settings.

    Raises:
        TypeError: If the backend value cannot be read as the field's kind
    """
    if field.key not in settings:
        return
    value = settings.pop(field.key)
    if value is None or value == "":
        return

    if field.kind == FieldKind.STRING:
        packed[field.name] = render_setting_value(value)
    elif field.kind == FieldKind.BOOL:
        packed[field.name] = _as_bool(field.name, value)
    elif field.kind == FieldKind.INT:
        packed[field.name] = _as_int(field.name, value)
    elif field.kind == FieldKind.STRING_LIST:
        if not isinstance(value, list):
            raise TypeError(f"{field.name} must be a list, got {value!r}")
        packed[field.name] = [render_setting_value(v) for v in value]
    elif field.kind == FieldKind.STRING_MAP:
        if not isinstance(value, dict):
            raise TypeError(f"{field.name} must be a mapping, got {value!r}")
        packed[field.name] = normalize_settings(value)


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise TypeError(f"{name} must be a boolean, got {value!r}")


def _as_int(name: str, value: Any) -> int:
    # JSON numbers may come back as floats, older backends send strings
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise TypeError(f"{name} must be an integer, got {value!r}")


def pack_secure_fields(
    packed: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
    secure_fields: Tuple[str, ...],
) -> None:
    """Carry secure field values forward from the prior declared instance."""
    if not prior:
        return
    for name in secure_fields:
        value = prior.get(name)
        if value is not None:
            packed[name] = value


def pack_secure_settings(
    settings: Dict[str, Any],
    prior: Optional[Dict[str, Any]],
    secure_keys: Tuple[str, ...],
) -> None:
    """Carry secure keys declared in the passthrough settings map forward."""
    prior_settings = (prior or {}).get("settings") or {}
    for key in secure_keys:
        value = prior_settings.get(key)
        if value is not None and value != "":
            settings[key] = value


def find_prior_instance(
    prior_state: Optional[Dict[str, Any]], field: str, uid: str
) -> Optional[Dict[str, Any]]:
    """Find the declared instance of a notifier group with the given UID."""
    if not prior_state or not uid:
        return None
    for instance in prior_state.get(field) or []:
        if instance.get("uid") == uid:
            return instance
    return None


class NotifierCodec(ABC):
    """
    Abstract base class for notifier kinds.

    Subclasses set ``field``, ``type_tag`` and ``description`` and declare
    their typed ``fields``.
    """

    field: str = ""
    type_tag: str = ""
    description: str = ""

    @property
    @abstractmethod
    def fields(self) -> Tuple[NotifierField, ...]:
        """Typed fields of this notifier kind."""
        pass

    def describe(self) -> NotifierDescriptor:
        """Static metadata for this notifier kind."""
        return NotifierDescriptor(
            field=self.field,
            type_tag=self.type_tag,
            description=self.description,
            secure_fields=tuple(f.name for f in self.fields if f.secure),
        )

    def configuration_shape(self) -> Dict[str, Any]:
        """JSON schema for one declared instance of this notifier."""
        properties: Dict[str, Any] = {
            "uid": {"type": "string", "description": "The UID of the notifier."},
            "disable_resolve_message": {
                "type": "boolean",
                "default": False,
                "description": "Whether to disable sending resolve messages.",
            },
            "settings": {
                "type": "object",
                "additionalProperties": {"type": "string"},
                "description": "Additional custom properties for the notifier.",
            },
        }
        required: List[str] = []
        for f in self.fields:
            properties[f.name] = f.schema()
            if f.required:
                required.append(f.name)

        shape: Dict[str, Any] = {
            "type": "object",
            "description": self.description,
            "properties": properties,
            "additionalProperties": False,
        }
        if required:
            shape["required"] = required
        return shape

    def unpack(self, raw: Dict[str, Any], name: str) -> ContactPoint:
        """
        Build the backend ContactPoint for a declared instance.

        Args:
            raw: The declared instance
            name: Name of the logical contact point

        Returns:
            A ContactPoint tagged with this notifier's type
        """
        uid, disable_resolve_message, settings = unpack_common_fields(raw)
        self.unpack_settings(raw, settings)
        return ContactPoint(
            uid=uid,
            name=name,
            type=self.type_tag,
            settings=prune_empty_settings(settings),
            disable_resolve_message=disable_resolve_message,
        )

    def pack(
        self, point: ContactPoint, prior_state: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Build the external representation of a backend record.

        Secure fields are never read from the backend response; they are
        taken from the instance in ``prior_state`` with the same UID.

        Args:
            point: The backend record
            prior_state: Previously declared tree, or None

        Returns:
            The packed instance
        """
        packed = pack_common_fields(point)
        settings = dict(point.settings or {})
        self.pack_settings(settings, packed)

        descriptor = self.describe()
        prior = find_prior_instance(prior_state, self.field, point.uid)
        pack_secure_fields(packed, prior, descriptor.secure_fields)

        packed["settings"] = normalize_settings(settings)
        secure_keys = tuple(f.key for f in self.fields if f.secure)
        pack_secure_settings(packed["settings"], prior, secure_keys)
        return packed

    def unpack_settings(self, raw: Dict[str, Any], settings: Dict[str, Any]) -> None:
        """Merge typed fields into the backend settings map."""
        for f in self.fields:
            unpack_notifier_field(f, raw, settings)

    def pack_settings(self, settings: Dict[str, Any], packed: Dict[str, Any]) -> None:
        """Extract typed fields from ``settings``; secure keys are discarded."""
        for f in self.fields:
            if f.secure:
                settings.pop(f.key, None)
                continue
            pack_notifier_field(f, settings, packed)
