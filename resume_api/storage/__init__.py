from .object_store import ObjectStore, S3ObjectStore, get_object_store

__all__ = ["ObjectStore", "S3ObjectStore", "get_object_store"]
