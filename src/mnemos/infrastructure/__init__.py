# Infrastructure Package
from .record_store import RecordStore, load_state, save_state

__all__ = ["RecordStore", "load_state", "save_state"]
