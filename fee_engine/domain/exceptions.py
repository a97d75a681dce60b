"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidFeeStructure(DomainException):
    """Fee structure or scholarship configuration is malformed"""

    pass


class PlanNotSelected(DomainException):
    """Schedule requested before the student chose a payment plan"""

    pass


class InconsistentTransactionTarget(DomainException):
    """Transaction references a schedule line that does not exist"""

    def __init__(self, transaction_id: str, message: str):
        super().__init__(message)
        self.transaction_id = transaction_id


class FeeStructureNotFound(DomainException):
    """Neither a custom nor a cohort fee structure exists"""

    pass


class PaymentPlanLocked(DomainException):
    """Payment plan cannot change once payments have been recorded"""

    pass
