"""信号分发错误类型"""


class SignalRelayError(Exception):
    """Base class for dispatch engine errors"""


class QuoteUnavailable(SignalRelayError):
    """No usable price this pass; the whole pass is skipped."""


class RepositoryUnavailable(SignalRelayError):
    """Active alerts could not be listed; fatal for the pass."""


class PublishFailure(SignalRelayError):
    """Topic provisioning or message submission failed for one alert."""


class PersistFailure(SignalRelayError):
    """Repository write after a successful publish failed.

    The alert stays eligible, so the next pass publishes the same signal
    again. This is the only path that produces a duplicate signal.
    """


class ConcurrentUpdate(PersistFailure):
    """Conditional update matched no row: the alert changed since it was read."""


class InvalidCredential(SignalRelayError):
    """Operator key could not be decoded by any supported format."""


class InvalidAlert(SignalRelayError, ValueError):
    """Alert creation input violates an alert invariant."""
