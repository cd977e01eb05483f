class CalendarEngineError(Exception):
    """Base class for calendar engine errors."""


class PersistenceError(CalendarEngineError):
    """The storage backend refused a write."""


class StorageQuotaExceeded(PersistenceError):
    def __init__(self, key: str, size: int, quota: int):
        super().__init__(f"writing {size} bytes to '{key}' exceeds quota of {quota} bytes")
        self.key = key
        self.size = size
        self.quota = quota
