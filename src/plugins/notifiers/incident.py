"""
Incident management and paging notifiers.
"""

from typing import Any, Dict, List

from plugins.notifiers.base import (
    NotifierCodec,
    bool_field,
    int_field,
    map_field,
    secure_field,
    string_field,
)
from settings_normalizer import render_setting_value

RESPONDER_KEYS = ("type", "id", "name", "username")


class OnCallNotifier(NotifierCodec):
    field = "oncall"
    type_tag = "oncall"
    description = "A contact point that sends notifications to Grafana On-Call."

    fields = (
        string_field(
            "url",
            required=True,
            description="The URL to send webhook requests to.",
        ),
        string_field(
            "http_method",
            "httpMethod",
            description="The HTTP method to use in the request. Defaults to POST.",
        ),
        string_field(
            "basic_auth_user",
            "username",
            description="The username to use in basic auth headers.",
        ),
        secure_field(
            "basic_auth_password",
            "password",
            description="The password to use in basic auth headers.",
        ),
        string_field(
            "authorization_scheme",
            description="Custom authorization scheme for the Authorization header.",
        ),
        secure_field(
            "authorization_credentials",
            description="Credentials for the custom authorization scheme.",
        ),
        int_field(
            "max_alerts",
            "maxAlerts",
            description="The maximum number of alerts to send in a single request.",
        ),
        string_field("message", description="Custom templated message."),
        string_field("title", description="Templated title of the message."),
    )


class OpsGenieNotifier(NotifierCodec):
    """
    OpsGenie notifier.

    ``responders`` is a list of mappings with ``type`` and one of ``id``,
    ``name`` or ``username``.
    """

    field = "opsgenie"
    type_tag = "opsgenie"
    description = "A contact point that creates alerts in OpsGenie."

    fields = (
        string_field(
            "url",
            "apiUrl",
            description="Allows customization of the OpsGenie API URL.",
        ),
        secure_field(
            "api_key",
            "apiKey",
            required=True,
            description="The OpsGenie API key to use.",
        ),
        string_field("message", description="The templated content of the message."),
        string_field("description", description="A templated high-level description."),
        bool_field(
            "auto_close",
            "autoClose",
            description="Whether to auto-close alerts in OpsGenie when they resolve.",
        ),
        bool_field(
            "override_priority",
            "overridePriority",
            description="Whether og_priority may set the alert priority.",
        ),
        string_field(
            "send_tags_as",
            "sendTagsAs",
            description="Whether to send annotations as tags, details or both.",
        ),
    )

    def configuration_shape(self) -> Dict[str, Any]:
        shape = super().configuration_shape()
        shape["properties"]["responders"] = {
            "type": "array",
            "description": "Teams, users, escalations and schedules to notify.",
            "items": {
                "type": "object",
                "required": ["type"],
                "properties": {key: {"type": "string"} for key in RESPONDER_KEYS},
                "additionalProperties": False,
            },
        }
        return shape

    def unpack_settings(self, raw: Dict[str, Any], settings: Dict[str, Any]) -> None:
        super().unpack_settings(raw, settings)
        responders = raw.get("responders")
        if not responders:
            return
        if not isinstance(responders, list):
            raise TypeError("responders must be a list")
        settings["responders"] = [
            {key: r[key] for key in RESPONDER_KEYS if r.get(key)} for r in responders
        ]

    def pack_settings(self, settings: Dict[str, Any], packed: Dict[str, Any]) -> None:
        super().pack_settings(settings, packed)
        responders = settings.pop("responders", None)
        if responders:
            packed["responders"] = pack_responders(responders)


def pack_responders(responders: Any) -> List[Dict[str, str]]:
    """Read OpsGenie responders from the backend, dropping empty keys."""
    if not isinstance(responders, list):
        raise TypeError(f"responders must be a list, got {responders!r}")
    return [
        {
            key: render_setting_value(r[key])
            for key in RESPONDER_KEYS
            if r.get(key) not in (None, "")
        }
        for r in responders
    ]


class PagerDutyNotifier(NotifierCodec):
    field = "pagerduty"
    type_tag = "pagerduty"
    description = "A contact point that sends notifications to PagerDuty."

    fields = (
        secure_field(
            "integration_key",
            "integrationKey",
            required=True,
            description="The PagerDuty API key.",
        ),
        string_field("severity", description="The PagerDuty event severity level."),
        string_field("class", description="The class or type of the event."),
        string_field("component", description="The component being affected."),
        string_field("group", description="The group to which the alert belongs."),
        string_field("summary", description="The templated summary message."),
        string_field("source", description="The unique location of the source."),
        string_field("client", description="The name of the monitoring client."),
        string_field("client_url", description="The URL of the monitoring client."),
        map_field("details", description="A set of arbitrary key/value pairs."),
    )


class PushoverNotifier(NotifierCodec):
    field = "pushover"
    type_tag = "pushover"
    description = "A contact point that sends notifications to Pushover."

    fields = (
        secure_field(
            "user_key",
            "userKey",
            required=True,
            description="The Pushover user key.",
        ),
        secure_field(
            "api_token",
            "apiToken",
            required=True,
            description="The Pushover API token.",
        ),
        int_field("priority", description="The priority level of the event."),
        int_field(
            "ok_priority",
            "okPriority",
            description="The priority level of the resolved event.",
        ),
        int_field(
            "retry",
            description="How often, in seconds, to retry emergency notifications.",
        ),
        int_field(
            "expire",
            description="How many seconds for which to retry emergency notifications.",
        ),
        string_field(
            "device",
            description="Comma-separated list of devices to send the notification to.",
        ),
        string_field("sound", description="The notification sound."),
        string_field(
            "ok_sound",
            "okSound",
            description="The sound associated with the resolved notification.",
        ),
        string_field("title", description="The templated title of the message."),
        string_field("message", description="The templated notification message."),
        bool_field(
            "upload_image",
            "uploadImage",
            description="Whether to send images in the notification or not.",
        ),
    )


class SensuGoNotifier(NotifierCodec):
    field = "sensugo"
    type_tag = "sensugo"
    description = "A contact point that sends notifications to SensuGo."

    fields = (
        string_field(
            "url",
            required=True,
            description="The SensuGo URL to send requests to.",
        ),
        secure_field(
            "api_key",
            "apikey",
            required=True,
            description="The SensuGo API key.",
        ),
        string_field("entity", description="The entity being monitored."),
        string_field("check", description="The SensuGo check of the event."),
        string_field("namespace", description="The namespace of the check."),
        string_field("handler", description="A custom handler to execute."),
        string_field("message", description="Templated message content."),
    )


class VictorOpsNotifier(NotifierCodec):
    field = "victorops"
    type_tag = "victorops"
    description = "A contact point that sends notifications to VictorOps."

    fields = (
        secure_field(
            "url",
            required=True,
            description="The VictorOps webhook URL.",
        ),
        string_field(
            "message_type",
            "messageType",
            description="The VictorOps alert state, typically 'CRITICAL' or 'WARNING'.",
        ),
        string_field("title", description="Templated title to display."),
        string_field("description", description="Templated description."),
    )
