"""
Fixed-window rate limiting for mutating actions.

Counters live in the default Django cache under ``ratelimit:<action>:<user id>``.
The first hit opens a window; hits inside the window are counted up to the
configured maximum, after which requests are rejected until the window expires.
Expired windows are reset lazily on the next hit.
"""

import logging
import math
import time

from django.conf import settings
from django.core.cache import cache
from rest_framework.throttling import BaseThrottle

logger = logging.getLogger(__name__)

CACHE_PREFIX = 'ratelimit'


def _config():
    config = getattr(settings, 'RATE_LIMIT', {})
    return config.get('WINDOW_SECONDS', 60), config.get('MAX_REQUESTS', 30)


def rate_limit(key, limit=None, window=None, now=None):
    """
    Record one hit for ``key`` and report whether it is allowed.

    Args:
        key: Limiter key, e.g. ``offers:create:42``
        limit: Maximum hits per window (defaults to RATE_LIMIT['MAX_REQUESTS'])
        window: Window length in seconds (defaults to RATE_LIMIT['WINDOW_SECONDS'])
        now: Current epoch seconds, injectable for tests

    Returns:
        bool: True if the hit is within the limit, False if it must be rejected
    """
    default_window, default_limit = _config()
    limit = default_limit if limit is None else limit
    window = default_window if window is None else window
    now = time.time() if now is None else now

    cache_key = f'{CACHE_PREFIX}:{key}'
    entry = cache.get(cache_key)

    if entry is None or entry['expires'] <= now:
        cache.set(cache_key, {'count': 1, 'expires': now + window}, timeout=window)
        return True

    if entry['count'] >= limit:
        return False

    entry['count'] += 1
    cache.set(cache_key, entry, timeout=max(1, math.ceil(entry['expires'] - now)))
    return True


def seconds_until_reset(key, now=None):
    entry = cache.get(f'{CACHE_PREFIX}:{key}')
    if entry is None:
        return None
    now = time.time() if now is None else now
    return max(0, entry['expires'] - now)


class ActionRateThrottle(BaseThrottle):
    """
    DRF throttle applying ``rate_limit`` per action and user.

    Views declare the limited actions per HTTP method:

        class OfferListCreateView(APIView):
            throttle_classes = [ActionRateThrottle]
            rate_limit_actions = {'POST': 'offers:create'}

    Anonymous requests are not counted; the view rejects them with 401.
    """

    def get_action(self, request, view):
        actions = getattr(view, 'rate_limit_actions', None) or {}
        return actions.get(request.method)

    def allow_request(self, request, view):
        action = self.get_action(request, view)
        if action is None:
            return True

        user = getattr(request, 'user', None)
        if not user or not user.is_authenticated:
            return True

        self.key = f'{action}:{user.id}'
        allowed = rate_limit(self.key)
        if not allowed:
            logger.warning(
                f"Rate limit exceeded. Action: {action}, User ID: {user.id}"
            )
        return allowed

    def wait(self):
        key = getattr(self, 'key', None)
        if key is None:
            return None
        return seconds_until_reset(key)
