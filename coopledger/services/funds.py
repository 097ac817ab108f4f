"""Cash position of the cooperative and yearly expense totals"""
from decimal import Decimal
from coopledger import db
from coopledger.models import Contribution, Expense, Loan, LoanPayment

# rejected and cancelled loans were never disbursed
DISBURSED_LOAN_STATUSES = ('pending', 'released', 'paid')
EARNING_LOAN_STATUSES = ('released', 'paid')

def _total(column, *criteria):
    value = db.session.query(db.func.coalesce(db.func.sum(column), 0)).filter(*criteria).scalar()
    return Decimal(str(value))

def funds_available():
    """Collections plus loan repayments less the principal lent out, never below zero"""
    collections = _total(Contribution.amount)
    repayments = _total(LoanPayment.amount)
    lent = _total(Loan.principal, Loan.status.in_(DISBURSED_LOAN_STATUSES))
    return {
        'total_collections': collections,
        'total_loan_payments': repayments,
        'total_loan_amount': lent,
        'available_for_loans': max(collections + repayments - lent, Decimal('0')),
    }

def expense_total(year):
    return _total(Expense.amount, Expense.year == year)

def loan_interest_total():
    """Flat interest booked on loans that were released"""
    return _total(Loan.interest, Loan.status.in_(EARNING_LOAN_STATUSES))
