"""
Throttles with a fixed scope for function based views.

``ScopedRateThrottle`` reads ``throttle_scope`` from the view class, which
``@api_view`` does not forward from the function, so each scoped limit
gets its own ``SimpleRateThrottle`` subclass used with
``@throttle_classes``.
"""
from rest_framework.throttling import SimpleRateThrottle


class IPScopedThrottle(SimpleRateThrottle):
    """Limit by client IP regardless of who is authenticated."""

    def get_cache_key(self, request, view):
        return self.cache_format % {
            'scope': self.scope,
            'ident': self.get_ident(request),
        }


class LoginRateThrottle(IPScopedThrottle):
    scope = 'login'


class PatientPinRateThrottle(IPScopedThrottle):
    scope = 'patient_pin'
