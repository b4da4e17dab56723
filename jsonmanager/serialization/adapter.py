from abc import ABC, abstractmethod
from typing import Any

class JsonSerializer[T](ABC):
    @abstractmethod
    def serialize(self, obj: T) -> Any:
        """Converts obj into a JSON-compatible value (dict, list, str, int, float, bool or None)."""
        pass

class JsonDeserializer[T](ABC):
    @abstractmethod
    def deserialize(self, data: Any) -> T:
        """Builds an instance of T from an already parsed JSON value."""
        pass

class JsonAdapter[T](JsonSerializer[T], JsonDeserializer[T]):
    '''Handles both directions for a single type'''

def can_serialize(adapter: object) -> bool:
    return callable(getattr(adapter, "serialize", None))

def can_deserialize(adapter: object) -> bool:
    return callable(getattr(adapter, "deserialize", None))
