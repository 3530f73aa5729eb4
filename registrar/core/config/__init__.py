__all__ = [
    "LoggingSettings",
    "PostgresqlSecrets",
    "PostgresqlSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "TranscriptSettings",
]


from .logging import LoggingSettings
from .secrets import PostgresqlSecrets, Secrets
from .settings import Settings
from .storage import PostgresqlSettings, StorageSettings
from .transcript import TranscriptSettings
