__all__ = [
    "di",
    "RegistrarContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import RegistrarContainer
from .provider import LoggingProvider, TimestampProvider
