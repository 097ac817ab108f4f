"""Administration forms"""
from wtforms import StringField, PasswordField, SelectField, DecimalField, IntegerField, BooleanField
from wtforms.validators import DataRequired, Optional, NumberRange, Length, Email, ValidationError
from coopledger.models import EXPENSE_REFERENCE_TYPES, LOAN_STATUSES, PAYMENT_METHODS, PAYOUT_CHANNELS
from coopledger.utils.forms import ApiForm, IntegerListField, IsoDateTimeField, Present

ROLE_CHOICES = [('member', 'Member'), ('admin', 'Administrator')]
METHOD_CHOICES = [(m, m.replace('_', ' ').title()) for m in PAYMENT_METHODS]
CHANNEL_CHOICES = [(c, c.title()) for c in PAYOUT_CHANNELS]
REFERENCE_TYPE_CHOICES = [(t, t.replace('_', ' ').title()) for t in EXPENSE_REFERENCE_TYPES]

class CreateUserForm(ApiForm):
    """New member or administrator"""
    username = StringField('Username', validators=[DataRequired(), Length(min=3, max=80)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[
        DataRequired(),
        Length(min=6, message='Password must be at least 6 characters long')
    ])
    full_name = StringField('Full Name', validators=[DataRequired(), Length(max=200)])
    phone_number = StringField('Phone Number', validators=[Optional(), Length(max=20)])
    role = SelectField('Role', choices=ROLE_CHOICES, default='member')
    share_count = IntegerField('Shares', validators=[Optional(), NumberRange(min=0)], default=0)
    gcash_number = StringField('GCash Number', validators=[Optional(), Length(max=30)])
    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=100)])
    bank_account_number = StringField('Bank Account Number', validators=[Optional(), Length(max=30)])

class UpdateUserForm(ApiForm):
    """Partial update of a member's profile"""
    full_name = StringField('Full Name', validators=[Optional(), Length(min=1, max=200)])
    email = StringField('Email', validators=[Optional(), Email()])
    phone_number = StringField('Phone Number', validators=[Optional(), Length(max=20)])
    share_count = IntegerField('Shares', validators=[Optional(), NumberRange(min=0)])
    gcash_number = StringField('GCash Number', validators=[Optional(), Length(max=30)])
    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=100)])
    bank_account_number = StringField('Bank Account Number', validators=[Optional(), Length(max=30)])
    is_active = BooleanField('Active', validators=[Optional()])

class ResetPasswordForm(ApiForm):
    """New password for a member; generated when left out"""
    password = PasswordField('New Password', validators=[
        Optional(),
        Length(min=6, message='Password must be at least 6 characters long')
    ])

class BulkPasswordForm(ApiForm):
    """Members whose passwords are regenerated"""
    user_ids = IntegerListField('Members')
    exclude_admins = BooleanField('Exclude Administrators')

    def validate_user_ids(self, field):
        if not field.data:
            raise ValidationError('Select at least one member')

class CycleEligibilityForm(ApiForm):
    """Dividend eligibility for one cycle; a reason is required when ineligible"""
    is_eligible = BooleanField('Eligible')
    reason = StringField('Reason', validators=[Length(max=500)])

    def validate_reason(self, field):
        if not self.is_eligible.data and not (field.data or '').strip():
            raise ValidationError('Reason is required when marking ineligible')

class ContributionForm(ApiForm):
    """Share contribution entry"""
    user_id = IntegerField('Member', validators=[Present()])
    amount = DecimalField('Amount', validators=[Present(), NumberRange(min=0.01)], places=2)
    date_paid = IsoDateTimeField('Date Paid', validators=[Present()])
    method = SelectField('Method', choices=METHOD_CHOICES)
    reference_number = StringField('Reference Number', validators=[DataRequired(), Length(min=3, max=100)])

class LoanForm(ApiForm):
    """Loan created and released by an administrator"""
    borrower_type = SelectField('Borrower Type', choices=[
        ('member', 'Member'),
        ('non_member', 'Non-member')
    ], default='member')
    user_id = IntegerField('Member')
    borrower_name = StringField('Borrower Name', validators=[Optional(), Length(max=200)])
    borrower_email = StringField('Borrower Email', validators=[Optional(), Email()])
    borrower_phone = StringField('Borrower Phone', validators=[Optional(), Length(min=5, max=20)])
    principal = DecimalField('Principal', validators=[Present(), NumberRange(min=1)], places=2)
    term_months = IntegerField('Term (Months)', validators=[Present(), NumberRange(min=1, max=60)])
    monthly_rate_bps = IntegerField('Monthly Rate (bps)', validators=[Optional(), NumberRange(min=0, max=10000)])
    co_makers = IntegerListField('Co-makers', default=list)

    def validate_user_id(self, field):
        if self.borrower_type.data == 'member' and not field.data:
            raise ValidationError('user_id is required for member loans')

class LoanStatusForm(ApiForm):
    status = SelectField('Status', choices=[(s, s.title()) for s in LOAN_STATUSES])

class LoanRejectForm(ApiForm):
    reason = StringField('Rejection Reason', validators=[DataRequired(message='Rejection reason is required')])

class LoanPaymentForm(ApiForm):
    """Loan payment"""
    amount = DecimalField('Amount', validators=[Present(), NumberRange(min=0.01)], places=2)
    date_paid = IsoDateTimeField('Date Paid', validators=[Optional()])
    payment_method = SelectField('Payment Method', choices=METHOD_CHOICES, default='CASH')
    reference = StringField('Reference', validators=[Optional(), Length(max=100)])

class SystemConfigForm(ApiForm):
    """Share and loan limits"""
    share_value = DecimalField('Share Value', validators=[Optional(), NumberRange(min=1)], places=2)
    min_shares = IntegerField('Minimum Shares', validators=[Optional(), NumberRange(min=1)])
    max_shares = IntegerField('Maximum Shares', validators=[Optional(), NumberRange(min=1)])
    min_loan_amount = DecimalField('Minimum Loan Amount', validators=[Optional(), NumberRange(min=1)], places=2)
    max_loan_amount = DecimalField('Maximum Loan Amount', validators=[Optional(), NumberRange(min=1)], places=2)
    member_monthly_rate_bps = IntegerField('Member Monthly Rate (bps)', validators=[Optional(), NumberRange(min=0, max=10000)])

class ProfitPoolForm(ApiForm):
    year = IntegerField('Year', validators=[Present(), NumberRange(min=1)])
    amount = DecimalField('Amount', validators=[Present(), NumberRange(min=0)], places=2)

class PayoutForm(ApiForm):
    """Single dividend payout"""
    user_id = IntegerField('Member', validators=[Present()])
    year = IntegerField('Year', validators=[Present(), NumberRange(min=1)])
    per_share = DecimalField('Per Share', validators=[Present(), NumberRange(min=0)], places=4)
    shares_count = IntegerField('Shares', validators=[Present(), NumberRange(min=0)])
    amount = DecimalField('Amount', validators=[Present(), NumberRange(min=0)], places=2)
    channel = SelectField('Channel', choices=CHANNEL_CHOICES)
    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=100)])
    bank_account_number = StringField('Bank Account Number', validators=[Optional(), Length(max=30)])
    gcash_number = StringField('GCash Number', validators=[Optional(), Length(max=30)])
    reference = StringField('Reference', validators=[
        DataRequired(message='Reference number is required for traceability'),
        Length(max=100)
    ])
    deposited_at = IsoDateTimeField('Deposited At', validators=[Present()])

class BulkPayoutForm(ApiForm):
    """Payouts for every qualifying member of a year"""
    year = IntegerField('Year', validators=[Present(), NumberRange(min=1)])
    per_share = DecimalField('Per Share', validators=[Optional(), NumberRange(min=0)], places=4)
    channel = SelectField('Channel', choices=CHANNEL_CHOICES)
    reference = StringField('Reference', validators=[DataRequired(message='Reference number is required'), Length(max=100)])
    deposited_at = IsoDateTimeField('Deposited At', validators=[Present()])

class ExpenseForm(ApiForm):
    """Operating expense"""
    year = IntegerField('Year', validators=[Optional(), NumberRange(min=1)])
    amount = DecimalField('Amount', validators=[Present(), NumberRange(min=0.01)], places=2)
    description = StringField('Description', validators=[DataRequired(), Length(max=255)])
    reference_type = SelectField('Reference Type', choices=REFERENCE_TYPE_CHOICES, default='NONE')
    reference = StringField('Reference', validators=[Optional(), Length(max=100)])

class UpdateExpenseForm(ApiForm):
    """Partial update of an expense"""
    amount = DecimalField('Amount', validators=[Optional(), NumberRange(min=0.01)], places=2)
    description = StringField('Description', validators=[Length(max=255)])
    reference_type = SelectField('Reference Type', choices=REFERENCE_TYPE_CHOICES, default='NONE')
    reference = StringField('Reference', validators=[Optional(), Length(max=100)])

    def validate_description(self, field):
        if field.raw_data and not (field.data or '').strip():
            raise ValidationError('Description cannot be empty')
