"""Store abstractions for record-carrying outputs and signing keys."""
from tradeline.stores.keys import KeyStore, LocalKeyStore
from tradeline.stores.records import InMemoryRecordStore, LocalRecordStore, RecordStore

__all__ = [
    "InMemoryRecordStore",
    "KeyStore",
    "LocalKeyStore",
    "LocalRecordStore",
    "RecordStore",
]
