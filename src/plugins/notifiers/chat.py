"""
Chat platform notifiers.
"""

from plugins.notifiers.base import (
    NotifierCodec,
    bool_field,
    secure_field,
    string_field,
)


class DingDingNotifier(NotifierCodec):
    field = "dingding"
    type_tag = "dingding"
    description = "A contact point that sends notifications to DingDing."

    fields = (
        secure_field(
            "url",
            required=True,
            description="The DingDing webhook URL.",
        ),
        string_field(
            "message_type",
            "msgType",
            description="The format of message to send - either 'link' or 'actionCard'",
        ),
        string_field("message", description="The templated content of the message."),
        string_field("title", description="The templated title of the message."),
    )


class DiscordNotifier(NotifierCodec):
    field = "discord"
    type_tag = "discord"
    description = "A contact point that sends notifications as Discord messages."

    fields = (
        secure_field("url", required=True, description="The discord webhook URL."),
        string_field("title", description="The templated content of the title."),
        string_field("message", description="The templated content of the message."),
        string_field("avatar_url", description="The URL of a custom avatar image."),
        bool_field(
            "use_discord_username",
            description="Whether to use the bot account's plain username.",
        ),
    )


class GoogleChatNotifier(NotifierCodec):
    field = "googlechat"
    type_tag = "googlechat"
    description = "A contact point that sends notifications to Google Chat."

    fields = (
        secure_field("url", required=True, description="The Google Chat webhook URL."),
        string_field("title", description="The templated content of the title."),
        string_field("message", description="The templated content of the message."),
    )


class LineNotifier(NotifierCodec):
    field = "line"
    type_tag = "LINE"
    description = "A contact point that sends notifications to LINE.me."

    fields = (
        secure_field("token", required=True, description="The bearer token."),
        string_field("title", description="The templated title of the message."),
        string_field("description", description="The templated description."),
    )


class SlackNotifier(NotifierCodec):
    field = "slack"
    type_tag = "slack"
    description = "A contact point that sends notifications to Slack."

    fields = (
        string_field(
            "endpoint_url",
            "endpointUrl",
            description="Overrides the Slack API endpoint URL requests are sent to.",
        ),
        secure_field(
            "url",
            description="A Slack webhook URL, for sending via the webhook method.",
        ),
        secure_field(
            "token",
            description="A Slack API token, for sending without a webhook.",
        ),
        string_field("recipient", description="Channel, private group, or IM channel."),
        string_field("text", description="Templated content of the message."),
        string_field("title", description="Templated title of the message."),
        string_field("username", description="Username for the bot to use."),
        string_field("icon_emoji", description="The name of a Slack workspace emoji."),
        string_field("icon_url", description="The URL of a custom avatar image."),
        string_field(
            "mention_channel",
            "mentionChannel",
            description="How to ping the channel: '', 'here' or 'channel'.",
        ),
        string_field(
            "mention_users",
            "mentionUsers",
            description="Comma-separated list of users to mention in the message.",
        ),
        string_field(
            "mention_groups",
            "mentionGroups",
            description="Comma-separated list of groups to mention in the message.",
        ),
    )


class TeamsNotifier(NotifierCodec):
    field = "teams"
    type_tag = "teams"
    description = "A contact point that sends notifications to Microsoft Teams."

    fields = (
        secure_field("url", required=True, description="A Teams webhook URL."),
        string_field("message", description="The templated message content."),
        string_field("title", description="The templated title of the message."),
        string_field(
            "section_title",
            "sectiontitle",
            description="The templated subtitle for each message section.",
        ),
    )


class TelegramNotifier(NotifierCodec):
    field = "telegram"
    type_tag = "telegram"
    description = "A contact point that sends notifications to Telegram."

    fields = (
        secure_field(
            "token", "bottoken", required=True, description="The Telegram bot token."
        ),
        string_field(
            "chat_id",
            "chatid",
            required=True,
            description="The chat ID to send messages to.",
        ),
        string_field("message", description="The templated content of the message."),
        string_field(
            "parse_mode",
            description="Mode for parsing entities. Default is 'HTML'.",
        ),
        bool_field(
            "disable_web_page_preview",
            description="When set it disables link previews for links in the message.",
        ),
        bool_field(
            "protect_content",
            description="When set it protects the message from forwarding and saving.",
        ),
        bool_field(
            "disable_notifications",
            description="When set users will receive a notification with no sound.",
        ),
    )


class ThreemaNotifier(NotifierCodec):
    field = "threema"
    type_tag = "threema"
    description = "A contact point that sends notifications to Threema."

    fields = (
        string_field(
            "gateway_id",
            required=True,
            description="The Threema gateway ID.",
        ),
        string_field(
            "recipient_id",
            required=True,
            description="The ID of the recipient of the message.",
        ),
        secure_field(
            "api_secret",
            required=True,
            description="The Threema API key.",
        ),
        string_field("title", description="The templated title of the message."),
        string_field("description", description="The templated description."),
    )


class WebexNotifier(NotifierCodec):
    field = "webex"
    type_tag = "webex"
    description = "A contact point that sends notifications to Cisco Webex."

    fields = (
        secure_field(
            "token",
            "bot_token",
            description="The bearer token used to authorize the client.",
        ),
        string_field("api_url", description="The URL to send webhook requests to."),
        string_field("message", description="The templated message to send."),
        string_field("room_id", description="ID of the Webex room to post to."),
    )


class WeComNotifier(NotifierCodec):
    field = "wecom"
    type_tag = "wecom"
    description = "A contact point that sends notifications to WeCom."

    fields = (
        secure_field("url", description="The WeCom webhook URL."),
        secure_field(
            "secret",
            description="The secret key required to obtain an access token.",
        ),
        string_field("corp_id", description="Corp ID."),
        string_field("agent_id", description="Agent ID."),
        string_field(
            "to_user",
            "touser",
            description="The ID of the user that should receive the message.",
        ),
        string_field("message", description="The templated message to send."),
        string_field("title", description="The templated title of the message."),
        string_field(
            "msg_type",
            "msgtype",
            description="The type of the message. Supported: markdown, text.",
        ),
    )
