"""
Notification adapters package.
"""

from tierscope.adapters.notifications.slack_notifier import SlackNotifier

__all__ = ["SlackNotifier"]
