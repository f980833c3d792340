from typing import List, Optional


class AIError(RuntimeError):
    pass


class ProviderUnavailable(AIError):
    """Raised when a provider client was never initialized (e.g. missing API key)."""

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        super().__init__(message or f"{provider} not available")


class ProviderError(AIError):
    """Raised when a provider call fails at the network or API level."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(message)


class GenerationFailed(AIError):
    """Raised when every provider in the fallback chain failed.

    This is the only AI error that reaches feature services and routes.
    """

    def __init__(self, message: str, attempts: Optional[List] = None):
        self.attempts = attempts or []
        super().__init__(message)
