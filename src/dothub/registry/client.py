from abc import ABC, abstractmethod

class RegistryClient(ABC):
    @abstractmethod
    def fetch(self, url: str) -> str:
        """Download the raw hub file text from the given url."""
        pass
