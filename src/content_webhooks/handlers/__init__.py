"""
Module: handlers
Description: Package initialization for API endpoint handlers.

This package contains FastAPI route handlers for the webhook API:
- webhooks: Subscription management, delivery log and test deliveries
- content_events: Inbound content change notifications

All handlers use dependency injection for the webhook engine.
"""

__all__ = []
