"""Services: content personalization and the Supermemory gateway."""

from .personalizer import Personalizer, personalize
from .supermemory_client import SupermemoryClient, generate_memory_id

__all__ = [
    "Personalizer",
    "SupermemoryClient",
    "generate_memory_id",
    "personalize",
]
