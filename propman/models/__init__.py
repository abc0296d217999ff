from propman.models.bill import Bill, BillStatus

__all__ = ["Bill", "BillStatus"]
