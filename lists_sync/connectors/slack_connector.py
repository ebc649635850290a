"""
lists_sync/connectors/slack_connector.py

Slack channel notifications for reload progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from lists_sync.config import SlackSettings, get_slack_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlackMessageRef:
    channel: str
    ts: str


class SlackNotifier:
    """Thin wrapper over Slack WebClient for the channel messages we manage.

    Delivery is best effort: Slack failures are logged and reported through
    the return value, never raised into a reload run.
    """

    def __init__(self, *, settings: SlackSettings, client: WebClient | None = None) -> None:
        self.client = client or WebClient(token=settings.bot_token)
        self.channel_id = settings.channel_id

    def post_message(self, text: str) -> SlackMessageRef | None:
        try:
            resp = self.client.chat_postMessage(channel=self.channel_id, text=text, mrkdwn=True)
        except SlackApiError as e:
            logger.error("Error sending Slack notification error=%s", e.response.get("error", "unknown"))
            return None
        except (SlackClientError, OSError) as e:
            logger.error("Error sending Slack notification error=%s", e)
            return None

        logger.info("Slack notification sent ts=%s", resp.get("ts"))
        return SlackMessageRef(channel=resp.get("channel") or self.channel_id, ts=resp["ts"])

    def update_message(self, ref: SlackMessageRef, text: str) -> bool:
        try:
            self.client.chat_update(channel=ref.channel, ts=ref.ts, text=text)
        except SlackApiError as e:
            logger.error(
                "Error updating Slack message ts=%s error=%s",
                ref.ts,
                e.response.get("error", "unknown"),
            )
            return False
        except (SlackClientError, OSError) as e:
            logger.error("Error updating Slack message ts=%s error=%s", ref.ts, e)
            return False
        return True

    def delete_message(self, ts: str) -> bool:
        try:
            self.client.chat_delete(channel=self.channel_id, ts=ts)
        except SlackApiError as e:
            logger.error("Error deleting Slack message ts=%s error=%s", ts, e.response.get("error", "unknown"))
            return False
        except (SlackClientError, OSError) as e:
            logger.error("Error deleting Slack message ts=%s error=%s", ts, e)
            return False

        logger.info("Slack message deleted ts=%s", ts)
        return True


@lru_cache(maxsize=1)
def get_slack_notifier() -> SlackNotifier:
    return SlackNotifier(settings=get_slack_settings())
