__all__ = ["PersistentContainer", "RegistrarContainer", "StorageContainer"]

from .registrar import RegistrarContainer
from .storage import PersistentContainer, StorageContainer
