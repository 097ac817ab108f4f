"""Engine exceptions"""

class LedgerError(Exception):
    """Base class for reconciliation engine errors"""

class InvalidPaymentAmount(LedgerError):
    """A payment with a non-positive amount reached the allocator"""

    def __init__(self, payment_id, amount):
        self.payment_id = payment_id
        self.amount = amount
        super().__init__(f'Payment {payment_id} has invalid amount {amount}; amounts must be positive')
