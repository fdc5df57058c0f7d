from .link_store import ConflictError, LinkStore, is_duplicate_key_error

__all__ = ["ConflictError", "LinkStore", "is_duplicate_key_error"]
