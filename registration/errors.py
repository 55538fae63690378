"""Exceptions raised by landmark registration."""

from typing import Optional


class PhantomRegistrationError(Exception):
    """Base class for all registration failures."""


class InsufficientLandmarksError(PhantomRegistrationError):
    """Fewer correspondences than needed for a 3D similarity transform."""

    def __init__(self, count: int, required: int = 3):
        self.count = count
        self.required = required
        super().__init__(
            f"At least {required} landmark correspondences are required, got {count}"
        )


class MismatchedCorrespondenceCountError(PhantomRegistrationError):
    """Defined and recorded landmark sets do not pair up."""

    def __init__(self, defined_count: int, recorded_count: int,
                 detail: Optional[str] = None):
        self.defined_count = defined_count
        self.recorded_count = recorded_count
        message = (f"Defined landmark count ({defined_count}) does not match "
                   f"recorded landmark count ({recorded_count})")
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DegenerateGeometryError(PhantomRegistrationError):
    """Landmark configuration cannot determine a unique rotation."""


class EmptyCorrespondenceSetError(PhantomRegistrationError):
    """Error computation was requested without any correspondences."""

    def __init__(self):
        super().__init__("Cannot compute registration error without correspondences")


class ConfigurationError(PhantomRegistrationError):
    """Phantom definition is missing or holds no usable landmarks."""
