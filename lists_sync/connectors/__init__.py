"""
lists_sync/connectors package marker.
"""

from lists_sync.connectors.auth import TokenCache, get_token_cache
from lists_sync.connectors.github_connector import GitHubContentClient, get_github_content_client
from lists_sync.connectors.lists_api_connector import ListsAPIClient, get_lists_api_client
from lists_sync.connectors.slack_connector import SlackMessageRef, SlackNotifier, get_slack_notifier

__all__ = [
    "TokenCache",
    "get_token_cache",
    "GitHubContentClient",
    "get_github_content_client",
    "ListsAPIClient",
    "get_lists_api_client",
    "SlackMessageRef",
    "SlackNotifier",
    "get_slack_notifier",
]
