from .entity_store import EntityStore
