from typing import Optional

from .types import OverrideValidation


class WastageError(ValueError):
    """Base class for reconciliation failures reported back to the caller."""


class ManualWastageError(WastageError):
    def __init__(self, validation: OverrideValidation):
        super().__init__(validation.error or "Invalid manual wastage override")
        self.validation = validation


class UnknownCalculationMethodError(WastageError):
    def __init__(self, method: Optional[object]):
        super().__init__(f"Unknown calculation method: {method!r}")
        self.method = method
