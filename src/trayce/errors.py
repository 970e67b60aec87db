class TrayceError(Exception):
    """Base class for errors raised by trayce."""


class ValidationError(TrayceError, ValueError):
    pass


class ConfigurationError(TrayceError):
    pass


class GenerationError(TrayceError):
    pass


class StorageError(TrayceError):
    pass


class RecordNotFoundError(StorageError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} with id {record_id} not found")
        self.kind = kind
        self.record_id = record_id
