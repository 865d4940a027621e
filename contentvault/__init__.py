from .constants import APP_NAME, VERSION
from .db import ContentVaultStore
from .schema import ContentFields, ContentRecord, SlugConflictError, StorageError, ValidationError
from .server import create_app

__version__ = VERSION

__all__ = [
    "APP_NAME",
    "ContentFields",
    "ContentRecord",
    "ContentVaultStore",
    "SlugConflictError",
    "StorageError",
    "ValidationError",
    "create_app",
]
