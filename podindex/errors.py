"""Exceptions raised by the podindex core."""


class PodIndexError(Exception):
    """Base exception for all podindex errors."""

    pass


class InvalidInputError(PodIndexError):
    """A required argument is missing or malformed."""

    pass


class NotFoundError(PodIndexError):
    """The input was valid but no matching record exists."""

    pass


class StoreError(PodIndexError):
    """The underlying store operation failed."""

    pass


class DuplicateRecordError(StoreError):
    """An insert or update was rejected by a uniqueness constraint."""

    pass


class GuidAssignmentError(StoreError):
    """A feed row was created but its podcast guid record was not persisted.

    The caller can retry with ``FeedIdentityResolver.ensure_guid``.
    """

    def __init__(self, message: str, feed_id: int):
        super().__init__(message)
        self.feed_id = feed_id


class ConflictError(PodIndexError):
    """The requested change collides with a record owned by another feed."""

    def __init__(self, message: str, existing_id=None):
        super().__init__(message)
        self.existing_id = existing_id
