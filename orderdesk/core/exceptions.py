from typing import Dict


class OrderDeskError(Exception):
    """Base for service errors that carry a machine-readable error code."""
    error_code = "ORDERDESK_ERROR"

    def __init__(self, message: str, error_code: str = None, details: Dict = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class EffectError(OrderDeskError):
    """A transactional side effect failed; the transition must not commit."""
    error_code = "EFFECT_FAILED"
