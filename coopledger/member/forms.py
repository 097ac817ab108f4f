"""Member self-service forms"""
from wtforms import DecimalField, IntegerField
from wtforms.validators import NumberRange
from coopledger.utils.forms import ApiForm, Present

class LoanApplicationForm(ApiForm):
    """Loan application submitted by a member; amount limits are checked in the route"""
    principal = DecimalField('Principal', validators=[Present(), NumberRange(min=1)], places=2)
    term_months = IntegerField('Term (Months)', validators=[Present(), NumberRange(min=1, max=60)])
