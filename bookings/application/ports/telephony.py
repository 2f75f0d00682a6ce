from abc import ABC, abstractmethod


class TelephonyPort(ABC):
    @abstractmethod
    def send_sms(self, phone: str, message: str) -> None:
        """Send a text message. Raises ExternalServiceError on failure."""
        raise NotImplementedError
