"""Exception types raised by the growth engine."""


class DomainExhaustedError(LookupError):
    """The domain has handed out every point since its last reset."""


class RootPlacementError(ValueError):
    """No domain point is usable for the mandatory root segment."""


class GrowthStalledError(RuntimeError):
    """Growth exceeded its configured relaxation or retry bound."""


class DomainFileError(ValueError):
    """Malformed domain point-cloud file."""

    def __init__(self, message: str, line_number: int = 0):
        self.line_number = line_number
        if line_number:
            message = f"line {line_number}: {message}"
        super().__init__(message)
