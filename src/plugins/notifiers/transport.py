"""
Generic delivery notifiers: Alertmanager, email, Kafka and webhook.
"""

import re
from typing import Any, Dict, List

from plugins.notifiers.base import (
    NotifierCodec,
    bool_field,
    int_field,
    list_field,
    secure_field,
    string_field,
)

# Separators the backend accepts between email addresses
ADDRESS_SPLIT_PATTERN = re.compile(r"[;,\n]")


class AlertmanagerNotifier(NotifierCodec):
    field = "alertmanager"
    type_tag = "prometheus-alertmanager"
    description = (
        "A contact point that sends notifications to other Alertmanager instances."
    )

    fields = (
        string_field(
            "url",
            required=True,
            description="The URL of the Alertmanager instance.",
        ),
        string_field(
            "basic_auth_user",
            "basicAuthUser",
            description="The username component of the basic auth credentials.",
        ),
        secure_field(
            "basic_auth_password",
            "basicAuthPassword",
            description="The password component of the basic auth credentials.",
        ),
    )


class EmailNotifier(NotifierCodec):
    """
    Email notifier.

    The backend keeps recipients as one string separated by ``;``; the
    external representation is a list of addresses.
    """

    field = "email"
    type_tag = "email"
    description = "A contact point that sends notifications to an email address."

    fields = (
        list_field(
            "addresses",
            required=True,
            description="The addresses to send emails to.",
        ),
        bool_field(
            "single_email",
            "singleEmail",
            description="Whether to send a single email CC'ing all addresses.",
        ),
        string_field("message", description="The templated content of the email."),
        string_field("subject", description="The templated subject line."),
    )

    def unpack_settings(self, raw: Dict[str, Any], settings: Dict[str, Any]) -> None:
        super().unpack_settings(raw, settings)
        if "addresses" in settings:
            settings["addresses"] = ";".join(settings["addresses"])

    def pack_settings(self, settings: Dict[str, Any], packed: Dict[str, Any]) -> None:
        addresses = settings.pop("addresses", None)
        super().pack_settings(settings, packed)
        if addresses:
            packed["addresses"] = split_addresses(addresses)


def split_addresses(value: Any) -> List[str]:
    """Split a backend address string (or list) into trimmed addresses."""
    if isinstance(value, list):
        items = [str(v) for v in value]
    elif isinstance(value, str):
        items = ADDRESS_SPLIT_PATTERN.split(value)
    else:
        raise TypeError(f"addresses must be a string or list, got {value!r}")
    return [item.strip() for item in items if item.strip()]


class KafkaNotifier(NotifierCodec):
    field = "kafka"
    type_tag = "kafka"
    description = "A contact point that publishes notifications to Apache Kafka topics."

    fields = (
        secure_field(
            "rest_proxy_url",
            "kafkaRestProxy",
            required=True,
            description="The URL of the Kafka REST proxy to send requests to.",
        ),
        string_field(
            "topic",
            "kafkaTopic",
            required=True,
            description="The name of the Kafka topic to publish to.",
        ),
        string_field("description", description="The templated description."),
        string_field("details", description="The templated details of the message."),
        string_field("username", description="User name for the Kafka REST proxy."),
        secure_field("password", description="Password for the Kafka REST proxy."),
        string_field(
            "api_version",
            "apiVersion",
            description="API version of the Kafka REST server, v2 (default) or v3.",
        ),
        string_field(
            "cluster_id",
            "kafkaClusterId",
            description="Cluster ID for the Kafka REST server; needs api_version v3.",
        ),
    )


class WebhookNotifier(NotifierCodec):
    field = "webhook"
    type_tag = "webhook"
    description = (
        "A contact point that sends notifications to an arbitrary webhook, "
        "using the Prometheus webhook format."
    )

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
