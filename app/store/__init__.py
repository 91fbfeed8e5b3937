from app.store.durable_store import COLLECTIONS, DurableStore, Record

__all__ = ["COLLECTIONS", "DurableStore", "Record"]
