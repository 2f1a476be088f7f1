"""
Adapters layer - External integrations (hosted reservation database).
"""

from .memory_store import InMemoryReservationStore
from .supabase_store import SupabaseReservationStore

__all__ = ["InMemoryReservationStore", "SupabaseReservationStore"]
