class BillingError(Exception):
    """Base error for billing operations."""
    pass


class BillNotFoundError(BillingError):
    """Raised when a bill ID does not exist (or is soft-deleted)."""

    def __init__(self, bill_id: int):
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id} not found")


class BillStateError(BillingError):
    """Raised when a bill is not in a state that allows the operation."""
    pass


class TemplateConflictError(BillingError):
    """Raised when a template's cycle counter moved under a running clone."""
    pass
