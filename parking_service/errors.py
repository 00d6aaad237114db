class ParkingError(Exception):
    """Base class for every failure the booking core reports to its callers."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ParkingError):
    status_code = 404


class LocationNotFound(NotFound):
    pass


class BookingNotActive(NotFound):
    """The booking exists but is already canceled or completed."""


class Forbidden(ParkingError):
    status_code = 403


class NoAvailability(ParkingError):
    status_code = 409


class InvalidInterval(ParkingError):
    status_code = 400


class InvalidRecord(ParkingError):
    status_code = 422


class BookingBusy(ParkingError):
    status_code = 503
