"""Subscription registry."""

from hookrelay.subscriptions.store import SubscriptionStore

__all__ = ["SubscriptionStore"]
