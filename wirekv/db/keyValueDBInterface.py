from abc import ABC, abstractmethod
from typing import Optional


class KeyValueDBInterface(ABC):
    @abstractmethod
    def set(self, key: bytes, value: bytes) -> None:
        pass

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def delete(self, key: bytes) -> bool:
        pass
