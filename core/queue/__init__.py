"""Bounded ring buffer used to batch commits for push."""

from .bounded import BoundedQueue, QueueEmptyError

__all__ = ["BoundedQueue", "QueueEmptyError"]
