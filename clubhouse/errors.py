"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ViewerNotFoundError(NotFoundError):
    """Raised when the feed viewer has no profile document."""

    def __init__(self, viewer_id):
        """Initialize the error."""
        super().__init__(f"User {viewer_id} not found.")
        self.viewer_id = viewer_id


class FeedError(AppError):
    """Base class for failures inside feed assembly."""

    def __init__(self, message="Feed assembly failed.", status_code=500):
        """Initialize the error."""
        super().__init__(message, status_code)


class TierQueryFailed(FeedError):
    """Raised when a feed tier's store query fails."""

    def __init__(self, tier, cause=None):
        """Initialize the error."""
        super().__init__(f"Feed tier '{tier}' query failed: {cause}")
        self.tier = tier
        self.cause = cause


class CacheResolutionFailed(FeedError):
    """Raised when a batched profile or course record lookup partly fails."""

    def __init__(self, kind, failed_ids):
        """Initialize the error."""
        super().__init__(
            f"Could not resolve {len(failed_ids)} {kind} entries: "
            f"{', '.join(sorted(str(i) for i in failed_ids))}"
        )
        self.kind = kind
        self.failed_ids = list(failed_ids)
