"""
Circuit breaker for provider API calls.

Uses the pybreaker library. After ESPN_BREAKER_FAIL_MAX consecutive
failures the breaker opens and requests fail fast until
ESPN_BREAKER_RESET_TIMEOUT seconds have passed, then a single trial
request decides whether it closes again.

Circuit Breaker States:
- closed: Requests pass through normally
- open: Requests fail immediately
- half-open: One request allowed to test if the service has recovered
"""
from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

from roster_sync.core.config import settings
from roster_sync.core.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "CircuitBreakerError",
    "espn_api_breaker",
    "create_breaker",
    "get_breaker_state",
    "get_all_breaker_states",
]


class LoggingListener(CircuitBreakerListener):
    """Log breaker state transitions."""

    def state_change(self, cb, old_state, new_state):
        old_name = getattr(old_state, "name", old_state)
        new_name = getattr(new_state, "name", new_state)
        logger.warning(f"Circuit breaker '{cb.name}' changed state: {old_name} -> {new_name}")


def create_breaker(name: str, fail_max: int = None, reset_timeout: int = None) -> CircuitBreaker:
    """Create a breaker with logging and settings-driven thresholds."""
    return CircuitBreaker(
        fail_max=fail_max or settings.ESPN_BREAKER_FAIL_MAX,
        reset_timeout=reset_timeout or settings.ESPN_BREAKER_RESET_TIMEOUT,
        listeners=[LoggingListener()],
        name=name,
    )


espn_api_breaker = create_breaker("espn_api")


def get_breaker_state(breaker: CircuitBreaker) -> str:
    """Current state name: 'closed', 'open' or 'half-open'."""
    return breaker.current_state


def get_all_breaker_states() -> dict[str, str]:
    return {"espn_api": get_breaker_state(espn_api_breaker)}
