from .base import Base
from .object_record import ObjectRecord

__all__ = [
    "Base",
    "ObjectRecord",
]
