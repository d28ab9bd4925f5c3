"""Error types shared across the lookup pipeline."""


class StoreError(RuntimeError):
    """Raised when a backing store read or write fails."""
