"""Resilience patterns and implementations.

Contains the exponential backoff policy used by the delivery dispatcher
when retrying failed channel deliveries.
"""

from infrastructure.resilience.backoff import BackoffPolicy

__all__ = [
    "BackoffPolicy",
]
