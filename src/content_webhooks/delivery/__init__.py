"""
Package: delivery
Description: Webhook delivery mechanisms.

Provides payload signing, signed push delivery, subscription matching,
the queue worker with retry backoff, and operator test deliveries.
"""
