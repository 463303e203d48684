"""Exception types raised inside the MySideline sync pipeline."""


class MySidelineSyncError(Exception):
    """Base class for every pipeline error."""


class PageLoadError(MySidelineSyncError):
    """The browser could not be launched or the search page never loaded."""


class CardExtractionError(MySidelineSyncError):
    """Reading a single card failed; the card is skipped."""


class EventValidationError(MySidelineSyncError):
    """An extracted event is missing its title or date and is dropped."""


class StoreUnavailableError(MySidelineSyncError):
    """The carnival or sync-run store could not be reached."""


class ReconcileError(MySidelineSyncError):
    """Writing a single event to the carnival store failed."""

    def __init__(self, title: str, cause: Exception):
        super().__init__(f"Failed to reconcile '{title}': {cause}")
        self.title = title
        self.cause = cause
