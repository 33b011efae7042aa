"""Web application entry point for Swipe Triage."""

from .app import create_app
from .rate_limit import SlidingWindowRateLimiter

__all__ = ["SlidingWindowRateLimiter", "create_app"]
