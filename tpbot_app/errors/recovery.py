"""
Recovery strategy classifications for error handling.
"""


class RecoverableError(Exception):
    """Mixin for errors that can be recovered from automatically."""

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: int = 3, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True


class ActionTimeoutError(RecoverableError):
    """A bounded polling loop used up its attempt budget."""

    def __init__(self, message: str, loop_name: str, attempts: int,
                 max_attempts: int, **kwargs):
        super().__init__(message, retry_count=attempts, max_retries=max_attempts, **kwargs)
        self.loop_name = loop_name
        self.attempts = attempts
        self.max_attempts = max_attempts
