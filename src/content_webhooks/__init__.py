"""
Content Webhooks: notify frontend applications when content changes.

The dispatch engine matches content changes to webhook subscriptions,
queues signed deliveries, retries failures with backoff and keeps a
bounded delivery log for operators.
"""

__version__ = "0.1.0"
