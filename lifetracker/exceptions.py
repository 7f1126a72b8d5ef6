"""
Custom exceptions for the life tracker engine.
Lookups that find nothing are not errors: they return None or False.
"""


class LifeTrackerException(Exception):
    """Base exception for life tracker"""
    pass


class ValidationException(LifeTrackerException):
    """Raised when user input fails validation"""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class StorageException(LifeTrackerException):
    """Raised when reading or writing a domain file fails"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Storage {operation} failed: {details}")


class BackupException(LifeTrackerException):
    """Raised when backup operations fail"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Backup operation failed: {message}")


class SchemaException(LifeTrackerException):
    """Raised when a backup document has an unsupported version or shape"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
