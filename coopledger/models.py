"""Database models for CoopLedger"""
from datetime import datetime
from decimal import Decimal
from dateutil.relativedelta import relativedelta
from flask import current_app
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from coopledger import db, login_manager
from coopledger.ledger import (
    CycleEligibility, MemberShares, Payment, bimonthly_share_schedule, flat_amortization,
    flat_interest, loan_amortization_schedule,
)
from coopledger.ledger.schedule import due_instant, month_end

PAYMENT_METHODS = ['GCASH', 'INSTAPAY', 'BANK_TRANSFER', 'CASH']
PAYOUT_CHANNELS = ['GCASH', 'BANK']
LOAN_STATUSES = ['pending', 'released', 'paid', 'rejected', 'cancelled']
EXPENSE_REFERENCE_TYPES = ['NONE', 'GCASH', 'RECEIPT', 'BANK_TRANSFER']

@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))

def _money(value):
    return Decimal(str(value if value is not None else 0))

# User and Authentication Models
class User(UserMixin, db.Model):
    """Cooperative member or administrator"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    phone_number = db.Column(db.String(20))
    role = db.Column(db.String(20), nullable=False, default='member')  # admin, member
    share_count = db.Column(db.Integer, nullable=False, default=0)

    # Payout details
    gcash_number = db.Column(db.String(30))
    bank_name = db.Column(db.String(100))
    bank_account_number = db.Column(db.String(30))

    is_active = db.Column(db.Boolean, default=True)
    force_password_reset = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    contributions = db.relationship('Contribution', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    loans = db.relationship('Loan', backref='user', lazy='dynamic', foreign_keys='Loan.user_id')
    eligibility_records = db.relationship('CycleDividendEligibility', backref='user', lazy='dynamic',
                                          cascade='all, delete-orphan')
    payouts = db.relationship('DividendPayout', backref='user', lazy='dynamic',
                              foreign_keys='DividendPayout.user_id')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def expected_contribution(self, settings=None):
        """Amount due per bi-monthly period: share count x share value"""
        settings = settings or SystemSettings.get_settings()
        return Decimal(self.share_count or 0) * _money(settings.share_value)

    def contribution_payments(self, until=None):
        """Contributions as engine payments, oldest first"""
        query = self.contributions
        if until is not None:
            query = query.filter(Contribution.date_paid <= until)
        return [c.to_payment() for c in query.order_by(Contribution.date_paid.asc(), Contribution.id.asc()).all()]

    def share_schedule(self, years, settings=None):
        """Share-dues periods of ``years``, starting from the member's enrollment day"""
        settings = settings or SystemSettings.get_settings()
        return bimonthly_share_schedule(years, self.share_count, settings.share_value, start=self.created_at)

    def to_shares(self):
        return MemberShares(member_id=self.id, share_count=self.share_count or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.full_name,
            'email': self.email,
            'phone_number': self.phone_number,
            'role': self.role,
            'share_count': self.share_count,
            'gcash_number': self.gcash_number,
            'bank_name': self.bank_name,
            'bank_account_number': self.bank_account_number,
            'is_active': self.is_active,
            'force_password_reset': bool(self.force_password_reset),
        }

    def __repr__(self):
        return f'<User {self.username}>'

# Contribution Models
class Contribution(db.Model):
    """Share contribution paid by a member"""
    __tablename__ = 'contributions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    date_paid = db.Column(db.DateTime, nullable=False, index=True)
    method = db.Column(db.String(20), nullable=False)  # GCASH, INSTAPAY, BANK_TRANSFER, CASH
    reference_number = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(10), nullable=False, default='PARTIAL')  # FULL, PARTIAL (as recorded)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_payment(self):
        return Payment(
            id=self.id,
            amount=_money(self.amount),
            paid_at=self.date_paid,
            method=self.method,
            reference=self.reference_number,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': _money(self.amount),
            'date_paid': self.date_paid,
            'method': self.method,
            'reference_number': self.reference_number,
            'status': self.status,
        }

    def __repr__(self):
        return f'<Contribution {self.id}>'

# Loan Models
class Loan(db.Model):
    """Loan issued to a member or an outside borrower"""
    __tablename__ = 'loans'

    id = db.Column(db.Integer, primary_key=True)
    borrower_type = db.Column(db.String(20), nullable=False, default='member')  # member, non_member
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    borrower_name = db.Column(db.String(200), nullable=False)
    borrower_email = db.Column(db.String(120))
    borrower_phone = db.Column(db.String(20))

    # Amounts
    principal = db.Column(db.Numeric(15, 2), nullable=False)
    interest = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    monthly_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    term_months = db.Column(db.Integer, nullable=False)
    monthly_amortization = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    # Dates
    application_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    released_at = db.Column(db.DateTime)
    due_date = db.Column(db.DateTime)
    settled_at = db.Column(db.DateTime)

    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, released, paid, rejected, cancelled
    rejection_reason = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    payments = db.relationship('LoanPayment', backref='loan', lazy='dynamic', cascade='all, delete-orphan')
    co_makers = db.relationship('LoanCoMaker', backref='loan', cascade='all, delete-orphan',
                                order_by='LoanCoMaker.id')

    def calculate_terms(self):
        """Set flat interest and the rounded monthly amortization"""
        self.interest = flat_interest(self.principal, self.monthly_rate_bps or 0, self.term_months)
        self.monthly_amortization = flat_amortization(self.principal, self.interest, self.term_months)

    def release(self, when=None):
        """Mark released and fix the maturity at the month end ``term_months`` after release"""
        when = when or datetime.now()
        self.status = 'released'
        if not self.released_at:
            self.released_at = when
        maturity = self.released_at + relativedelta(months=self.term_months)
        self.due_date = due_instant(month_end(maturity.year, maturity.month))

    def set_co_makers(self, user_ids):
        """Replace the co-maker list, keeping rows for members still on it"""
        wanted = list(dict.fromkeys(user_ids))
        kept = [c for c in self.co_makers if c.user_id in wanted]
        kept_ids = {c.user_id for c in kept}
        self.co_makers = kept + [LoanCoMaker(user_id=uid) for uid in wanted if uid not in kept_ids]

    @property
    def total_due(self):
        return _money(self.principal) + _money(self.interest)

    def get_total_paid(self):
        return sum((_money(p.amount) for p in self.payments.all()), Decimal('0'))

    @property
    def balance(self):
        return max(self.total_due - self.get_total_paid(), Decimal('0'))

    @property
    def schedule_anchor(self):
        return self.released_at or self.application_date

    def obligation_schedule(self):
        return loan_amortization_schedule(
            self.schedule_anchor,
            self.term_months,
            _money(self.monthly_amortization),
            principal=_money(self.principal),
            interest=_money(self.interest),
            due_date=self.due_date,
        )

    def payment_records(self):
        return [p.to_payment() for p in self.payments.order_by(LoanPayment.date_paid.asc(), LoanPayment.id.asc()).all()]

    def to_dict(self):
        return {
            'id': self.id,
            'borrower_type': self.borrower_type,
            'user_id': self.user_id,
            'borrower_name': self.borrower_name,
            'borrower_email': self.borrower_email,
            'borrower_phone': self.borrower_phone,
            'principal': _money(self.principal),
            'interest': _money(self.interest),
            'monthly_rate_bps': self.monthly_rate_bps,
            'term_months': self.term_months,
            'monthly_amortization': _money(self.monthly_amortization),
            'application_date': self.application_date,
            'released_at': self.released_at,
            'due_date': self.due_date,
            'settled_at': self.settled_at,
            'status': self.status,
            'rejection_reason': self.rejection_reason,
            'co_makers': [c.to_dict() for c in self.co_makers],
        }

    def __repr__(self):
        return f'<Loan {self.id} - {self.borrower_name}>'

class LoanCoMaker(db.Model):
    """Member guaranteeing another borrower's loan"""
    __tablename__ = 'loan_co_makers'
    __table_args__ = (db.UniqueConstraint('loan_id', 'user_id', name='uq_co_maker_loan_user'),)

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loans.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('co_maker_on', lazy='dynamic'))

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'full_name': self.user.full_name if self.user else None,
        }

    def __repr__(self):
        return f'<LoanCoMaker {self.loan_id} {self.user_id}>'

class LoanPayment(db.Model):
    """Loan payment records"""
    __tablename__ = 'loan_payments'

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loans.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    date_paid = db.Column(db.DateTime, nullable=False, index=True)
    payment_method = db.Column(db.String(20), default='CASH')
    reference = db.Column(db.String(100), default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_payment(self):
        return Payment(
            id=self.id,
            amount=_money(self.amount),
            paid_at=self.date_paid,
            method=self.payment_method,
            reference=self.reference,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'loan_id': self.loan_id,
            'amount': _money(self.amount),
            'date_paid': self.date_paid,
            'payment_method': self.payment_method,
            'reference': self.reference,
        }

    def __repr__(self):
        return f'<LoanPayment {self.id}>'

# Dividend Models
class ProfitPool(db.Model):
    """Distributable profit for a year"""
    __tablename__ = 'profit_pools'

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, unique=True, nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {'id': self.id, 'year': self.year, 'amount': _money(self.amount)}

    def __repr__(self):
        return f'<ProfitPool {self.year}>'

class Expense(db.Model):
    """Operating expense charged against a year's income"""
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    reference_type = db.Column(db.String(20), nullable=False, default='NONE')  # NONE, GCASH, RECEIPT, BANK_TRANSFER
    reference = db.Column(db.String(100), default='')
    created_by_user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_by = db.relationship('User', foreign_keys=[created_by_user_id])

    def to_dict(self):
        return {
            'id': self.id,
            'year': self.year,
            'amount': _money(self.amount),
            'description': self.description,
            'reference_type': self.reference_type,
            'reference': self.reference or '',
            'created_by': self.created_by.full_name if self.created_by else None,
            'created_at': self.created_at,
        }

    def __repr__(self):
        return f'<Expense {self.year} {self.description}>'

class CycleDividendEligibility(db.Model):
    """Administrator decision on a member's dividend eligibility for one cycle"""
    __tablename__ = 'cycle_dividend_eligibility'
    __table_args__ = (db.UniqueConstraint('user_id', 'year', 'cycle', name='uq_eligibility_user_year_cycle'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    cycle = db.Column(db.Integer, nullable=False)  # 1 or 2
    is_eligible = db.Column(db.Boolean, nullable=False, default=True)
    reason = db.Column(db.Text, default='')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_entity(self):
        return CycleEligibility(
            member_id=self.user_id,
            year=self.year,
            cycle=self.cycle,
            is_eligible=bool(self.is_eligible),
            reason=self.reason or '',
        )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'year': self.year,
            'cycle': self.cycle,
            'is_eligible': self.is_eligible,
            'reason': self.reason or '',
        }

    def __repr__(self):
        return f'<CycleDividendEligibility {self.user_id} {self.year}/{self.cycle}>'

class DividendPayout(db.Model):
    """Dividend deposited to a member; at most one per member and year"""
    __tablename__ = 'dividend_payouts'
    __table_args__ = (db.UniqueConstraint('user_id', 'year', name='uq_payout_user_year'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    per_share = db.Column(db.Numeric(15, 4), nullable=False)
    shares_count = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    channel = db.Column(db.String(10), nullable=False)  # GCASH, BANK
    bank_name = db.Column(db.String(100), default='')
    bank_account_number = db.Column(db.String(30), default='')
    gcash_number = db.Column(db.String(30), default='')
    reference = db.Column(db.String(100), nullable=False)
    deposited_at = db.Column(db.DateTime, nullable=False)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    created_by = db.relationship('User', foreign_keys=[created_by_user_id])

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'year': self.year,
            'per_share': Decimal(str(self.per_share)),
            'shares_count': self.shares_count,
            'amount': _money(self.amount),
            'channel': self.channel,
            'bank_name': self.bank_name,
            'bank_account_number': self.bank_account_number,
            'gcash_number': self.gcash_number,
            'reference': self.reference,
            'deposited_at': self.deposited_at,
            'created_by_user_id': self.created_by_user_id,
        }

    def __repr__(self):
        return f'<DividendPayout {self.user_id} {self.year}>'

# System Settings Model
class SystemSettings(db.Model):
    """Cooperative-wide settings"""
    __tablename__ = 'system_settings'

    id = db.Column(db.Integer, primary_key=True)

    app_name = db.Column(db.String(100), default='CoopLedger')
    currency = db.Column(db.String(10), default='PHP')
    currency_symbol = db.Column(db.String(10), default='₱')

    # Share Settings
    share_value = db.Column(db.Numeric(15, 2), nullable=False)
    min_shares = db.Column(db.Integer, nullable=False, default=1)
    max_shares = db.Column(db.Integer, nullable=False, default=100)

    # Loan Settings
    min_loan_amount = db.Column(db.Numeric(15, 2), nullable=False)
    max_loan_amount = db.Column(db.Numeric(15, 2), nullable=False)
    member_monthly_rate_bps = db.Column(db.Integer, nullable=False, default=500)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def get_settings():
        """Get system settings, create default if not exists"""
        settings = SystemSettings.query.first()
        if not settings:
            cfg = current_app.config
            settings = SystemSettings(
                app_name=cfg['DEFAULT_APP_NAME'],
                currency=cfg['DEFAULT_CURRENCY'],
                currency_symbol=cfg['DEFAULT_CURRENCY_SYMBOL'],
                share_value=cfg['DEFAULT_SHARE_VALUE'],
                min_shares=cfg['DEFAULT_MIN_SHARES'],
                max_shares=cfg['DEFAULT_MAX_SHARES'],
                min_loan_amount=cfg['DEFAULT_MIN_LOAN_AMOUNT'],
                max_loan_amount=cfg['DEFAULT_MAX_LOAN_AMOUNT'],
                member_monthly_rate_bps=cfg['DEFAULT_MEMBER_MONTHLY_RATE_BPS'],
            )
            db.session.add(settings)
            db.session.commit()
        return settings

    def to_dict(self):
        return {
            'app_name': self.app_name,
            'currency': self.currency,
            'currency_symbol': self.currency_symbol,
            'share_value': _money(self.share_value),
            'min_shares': self.min_shares,
            'max_shares': self.max_shares,
            'min_loan_amount': _money(self.min_loan_amount),
            'max_loan_amount': _money(self.max_loan_amount),
            'member_monthly_rate_bps': self.member_monthly_rate_bps,
        }

    def __repr__(self):
        return f'<SystemSettings {self.app_name}>'

# Activity Log Model
class ActivityLog(db.Model):
    """Activity log for audit trail"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50))  # user, contribution, loan, payout, etc.
    entity_id = db.Column(db.Integer)
    description = db.Column(db.Text)
    ip_address = db.Column(db.String(50))
    user_agent = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<ActivityLog {self.action}>'
