from abc import ABC, abstractmethod

from bookings.application.dto.create_series import CreateSeriesCommand, CreateSeriesResult


class SeriesFunctionPort(ABC):
    @abstractmethod
    def create_series(self, command: CreateSeriesCommand) -> CreateSeriesResult:
        """
        Run series creation in the remote managed function.
        Raises TransportError (or RemoteTimeoutError) for network-level failures and
        the matching BookingError subclass for declared application errors.
        """
        raise NotImplementedError
