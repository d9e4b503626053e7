"""
Notifier plugins package.

Every supported notifier kind is listed in BUILTIN_NOTIFIERS, in the order
used for the configuration shape and for packing.
"""

from plugins.notifiers.base import NotifierCodec, NotifierField
from plugins.notifiers.chat import (
    DingDingNotifier,
    DiscordNotifier,
    GoogleChatNotifier,
    LineNotifier,
    SlackNotifier,
    TeamsNotifier,
    TelegramNotifier,
    ThreemaNotifier,
    WebexNotifier,
    WeComNotifier,
)
from plugins.notifiers.incident import (
    OnCallNotifier,
    OpsGenieNotifier,
    PagerDutyNotifier,
    PushoverNotifier,
    SensuGoNotifier,
    VictorOpsNotifier,
)
from plugins.notifiers.transport import (
    AlertmanagerNotifier,
    EmailNotifier,
    KafkaNotifier,
    WebhookNotifier,
)

BUILTIN_NOTIFIERS = [
    AlertmanagerNotifier,
    DingDingNotifier,
    DiscordNotifier,
    EmailNotifier,
    GoogleChatNotifier,
    KafkaNotifier,
    LineNotifier,
    OnCallNotifier,
    OpsGenieNotifier,
    PagerDutyNotifier,
    PushoverNotifier,
    SensuGoNotifier,
    SlackNotifier,
    TeamsNotifier,
    TelegramNotifier,
    ThreemaNotifier,
    VictorOpsNotifier,
    WebexNotifier,
    WebhookNotifier,
    WeComNotifier,
]

__all__ = ["BUILTIN_NOTIFIERS", "NotifierCodec", "NotifierField"]
