class RetrievalError(RuntimeError):
    """Raised when every configured provider for a retrieval call fails."""

    def __init__(self, message: str, *, provider_errors=None) -> None:
        super().__init__(message)
        self.provider_errors = list(provider_errors or [])
