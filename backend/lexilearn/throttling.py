"""
Global request rate limit.
"""
import re

from rest_framework.throttling import SimpleRateThrottle

RATE_PATTERN = re.compile(r'^(?P<num>\d+)/(?P<count>\d*)(?P<unit>[smhd])')
UNIT_SECONDS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}


class RequestRateThrottle(SimpleRateThrottle):
    """
    Limit every client IP to a fixed number of requests per window.

    Accepts DRF rate strings (``100/hour``) as well as windows spanning
    several units, such as ``100/15m``.
    """
    scope = 'requests'

    def get_cache_key(self, request, view):
        return self.cache_format % {
            'scope': self.scope,
            'ident': self.get_ident(request),
        }

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        match = RATE_PATTERN.match(rate)
        if not match:
            raise ValueError(f'Invalid rate limit: {rate!r}')
        count = int(match.group('count') or 1)
        return (int(match.group('num')), count * UNIT_SECONDS[match.group('unit')])
