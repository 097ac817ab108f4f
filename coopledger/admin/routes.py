"""Administration routes"""
from datetime import datetime
from decimal import Decimal
from flask import current_app, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
from coopledger import db
from coopledger.admin import admin_bp
from coopledger.admin.forms import (
    BulkPasswordForm, BulkPayoutForm, ContributionForm, CreateUserForm, CycleEligibilityForm, ExpenseForm, LoanForm,
    LoanPaymentForm, LoanRejectForm, LoanStatusForm, PayoutForm, ProfitPoolForm, ResetPasswordForm, SystemConfigForm,
    UpdateExpenseForm, UpdateUserForm,
)
from coopledger.models import (
    Contribution, CycleDividendEligibility, DividendPayout, Expense, Loan, LoanCoMaker, LoanPayment, SystemSettings,
    User,
)
from coopledger.services.dividends import (
    create_bulk_payouts, get_estimated_per_share, get_profit_pool_amount, payout_account_fields,
    set_cycle_eligibility, set_profit_pool,
)
from coopledger.services.funds import expense_total, funds_available, loan_interest_total
from coopledger.services.schedules import (
    current_contribution_status, loan_amortization, loan_payment_status, payment_due_status,
)
from coopledger.utils.decorators import admin_required
from coopledger.utils.helpers import (
    error_response, form_error_response, format_currency, generate_password, log_activity, request_now,
)

def _page(query, serialize):
    page = request.args.get('page', 1, type=int)
    pagination = query.paginate(page=page, per_page=current_app.config['ITEMS_PER_PAGE'], error_out=False)
    return {
        'items': [serialize(item) for item in pagination.items],
        'page': pagination.page,
        'pages': pagination.pages,
        'total': pagination.total,
    }

def _evaluation_time():
    try:
        return request_now(), None
    except ValueError as e:
        return None, error_response(str(e))

# Dashboard

@admin_bp.route('/dashboard')
@login_required
@admin_required
def dashboard():
    """Cooperative totals"""
    year = datetime.now().year
    members = User.query.filter_by(role='member')
    total_shares = db.session.query(db.func.coalesce(db.func.sum(User.share_count), 0)).filter(
        User.role == 'member', User.is_active.is_(True)
    ).scalar()
    funds = funds_available()
    released = Loan.query.filter_by(status='released').all()
    loan_interest = loan_interest_total()
    total_expenses = expense_total(year)

    return jsonify({
        'total_members': members.count(),
        'active_members': members.filter_by(is_active=True).count(),
        'total_shares': int(total_shares),
        'total_contributions': funds['total_collections'],
        'available_for_loans': funds['available_for_loans'],
        'pending_loans': Loan.query.filter_by(status='pending').count(),
        'released_loans': len(released),
        'outstanding_loan_balance': sum((loan.balance for loan in released), Decimal('0')),
        'loan_interest': loan_interest,
        'total_expenses': total_expenses,
        'net_profit': loan_interest - total_expenses,
        'profit_pool': get_profit_pool_amount(year),
        'estimated_dividend_per_share': get_estimated_per_share(year),
        'year': year,
    })

# Members

@admin_bp.route('/users')
@login_required
@admin_required
def list_users():
    """Members with their contribution and loan status"""
    now, error = _evaluation_time()
    if error:
        return error

    settings = SystemSettings.get_settings()
    search = request.args.get('search', '')
    query = User.query.filter_by(role='member')
    if search:
        query = query.filter(
            db.or_(
                User.full_name.ilike(f'%{search}%'),
                User.username.ilike(f'%{search}%'),
                User.email.ilike(f'%{search}%')
            )
        )

    def serialize(user):
        data = user.to_dict()
        data['contribution_status'] = current_contribution_status(user, now, settings)
        data['loan_payment_status'] = loan_payment_status(user.loans.all(), now)
        data['is_co_maker'] = user.co_maker_on.count() > 0
        return data

    return jsonify(_page(query.order_by(User.full_name.asc()), serialize))

@admin_bp.route('/users', methods=['POST'])
@login_required
@admin_required
def create_user():
    """Register a member or administrator"""
    form = CreateUserForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    if User.query.filter_by(username=form.username.data).first():
        return error_response('Username already exists', 409)
    if User.query.filter_by(email=form.email.data).first():
        return error_response('Email already registered', 409)

    user = User(
        username=form.username.data,
        email=form.email.data,
        full_name=form.full_name.data,
        phone_number=form.phone_number.data,
        role=form.role.data,
        share_count=form.share_count.data or 0,
        gcash_number=form.gcash_number.data,
        bank_name=form.bank_name.data,
        bank_account_number=form.bank_account_number.data,
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.flush()

    log_activity('create_user', f'Created {user.role} {user.username}', entity_type='user', entity_id=user.id)
    db.session.commit()

    return jsonify(user.to_dict()), 201

@admin_bp.route('/users/<int:id>')
@login_required
@admin_required
def view_user(id):
    """Member detail with the per-period payment due status"""
    user = db.session.get(User, id)
    if user is None:
        return error_response('User not found', 404)
    now, error = _evaluation_time()
    if error:
        return error

    settings = SystemSettings.get_settings()
    data = user.to_dict()
    data.update({
        'as_of': now,
        'expected_per_period': user.expected_contribution(settings),
        'payment_due_status': payment_due_status(user, now),
        'contributions': [c.to_dict() for c in user.contributions.order_by(Contribution.date_paid.desc()).all()],
        'loans': [loan.to_dict() for loan in user.loans.order_by(Loan.created_at.desc()).all()],
        'eligibility': [
            e.to_dict() for e in user.eligibility_records.order_by(
                CycleDividendEligibility.year.desc(), CycleDividendEligibility.cycle.desc()
            ).all()
        ],
        'payouts': [p.to_dict() for p in user.payouts.order_by(DividendPayout.year.desc()).all()],
        'co_maker_loans': [c.loan.to_dict() for c in user.co_maker_on.order_by(LoanCoMaker.id.desc()).all()],
    })
    return jsonify(data)

@admin_bp.route('/users/<int:id>', methods=['PUT'])
@login_required
@admin_required
def update_user(id):
    """Update the fields present in the request body"""
    user = db.session.get(User, id)
    if user is None:
        return error_response('User not found', 404)

    form = UpdateUserForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    supplied = request.get_json(silent=True) or {}
    if 'email' in supplied and form.email.data != user.email:
        if User.query.filter(User.email == form.email.data, User.id != user.id).first():
            return error_response('Email already registered', 409)

    for name in ('full_name', 'email', 'phone_number', 'share_count', 'gcash_number', 'bank_name',
                 'bank_account_number', 'is_active'):
        if name in supplied:
            setattr(user, name, getattr(form, name).data)

    log_activity('update_user', f'Updated user {user.username}', entity_type='user', entity_id=user.id)
    db.session.commit()

    return jsonify(user.to_dict())

@admin_bp.route('/users/<int:id>/reset-password', methods=['POST'])
@login_required
@admin_required
def reset_password(id):
    """Set a new password, generated unless supplied; the member must change it after logging in"""
    user = db.session.get(User, id)
    if user is None:
        return error_response('User not found', 404)

    form = ResetPasswordForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    password = form.password.data or generate_password()
    user.set_password(password)
    user.force_password_reset = True

    log_activity('reset_password', f'Password reset for {user.username}', entity_type='user', entity_id=user.id)
    db.session.commit()

    return jsonify({'password': password})

@admin_bp.route('/users/bulk-passwords', methods=['POST'])
@login_required
@admin_required
def bulk_reset_passwords():
    """Generate new passwords for several members at once"""
    form = BulkPasswordForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    query = User.query.filter(User.id.in_(form.user_ids.data))
    if form.exclude_admins.data:
        query = query.filter(User.role != 'admin')

    results = []
    for user in query.order_by(User.id.asc()).all():
        password = generate_password()
        user.set_password(password)
        user.force_password_reset = True
        results.append({'id': user.id, 'email': user.email, 'password': password})

    log_activity('bulk_reset_passwords', f'Passwords regenerated for {len(results)} users', entity_type='user')
    db.session.commit()

    return jsonify({'count': len(results), 'results': results})

@admin_bp.route('/users/<int:id>/pending-loans')
@login_required
@admin_required
def pending_loans(id):
    """A member's loan applications awaiting release, newest first"""
    user = db.session.get(User, id)
    if user is None:
        return error_response('User not found', 404)
    loans = user.loans.filter_by(status='pending').order_by(Loan.created_at.desc(), Loan.id.desc()).all()
    return jsonify([loan.to_dict() for loan in loans])

@admin_bp.route('/cycles/<int:year>/<int:cycle>/users/<int:id>/eligibility', methods=['PUT'])
@login_required
@admin_required
def set_eligibility(year, cycle, id):
    """Mark a member eligible or ineligible for a dividend cycle"""
    if cycle not in (1, 2):
        return error_response('Cycle must be 1 or 2')
    user = db.session.get(User, id)
    if user is None:
        return error_response('User not found', 404)

    form = CycleEligibilityForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    log_activity(
        'set_eligibility',
        f'{user.username} marked {"eligible" if form.is_eligible.data else "ineligible"} for {year} cycle {cycle}',
        entity_type='user', entity_id=user.id
    )
    record = set_cycle_eligibility(user, year, cycle, form.is_eligible.data, form.reason.data)

    return jsonify(record.to_dict())

# Contributions

@admin_bp.route('/contributions')
@login_required
@admin_required
def list_contributions():
    """Contributions, newest first"""
    query = Contribution.query
    user_id = request.args.get('user_id', type=int)
    if user_id:
        query = query.filter_by(user_id=user_id)
    return jsonify(_page(query.order_by(Contribution.date_paid.desc(), Contribution.id.desc()), lambda c: c.to_dict()))

@admin_bp.route('/contributions', methods=['POST'])
@login_required
@admin_required
def add_contribution():
    """Record a share contribution"""
    form = ContributionForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = db.session.get(User, form.user_id.data)
    if user is None:
        return error_response('User not found', 404)

    amount = form.amount.data
    expected = user.expected_contribution()
    contribution = Contribution(
        user_id=user.id,
        amount=amount,
        date_paid=form.date_paid.data,
        method=form.method.data,
        reference_number=form.reference_number.data,
        status='FULL' if expected > 0 and amount >= expected else 'PARTIAL',
    )
    db.session.add(contribution)
    db.session.flush()

    log_activity('add_contribution', f'Contribution of {amount} from {user.username}',
                 entity_type='contribution', entity_id=contribution.id)
    db.session.commit()

    return jsonify(contribution.to_dict()), 201

# Loans

@admin_bp.route('/loans')
@login_required
@admin_required
def list_loans():
    """All loans, optionally filtered by status"""
    query = Loan.query
    status = request.args.get('status', '')
    if status:
        query = query.filter_by(status=status)
    return jsonify(_page(query.order_by(Loan.created_at.desc()), lambda loan: loan.to_dict()))

def _resolve_borrower(form):
    """Borrower details from a loan form, completed from the member record; (user, details, error)"""
    details = {
        'borrower_name': form.borrower_name.data,
        'borrower_email': form.borrower_email.data,
        'borrower_phone': form.borrower_phone.data,
    }
    user = None
    if form.borrower_type.data == 'member':
        user = db.session.get(User, form.user_id.data)
        if user is None:
            return None, None, error_response('User not found', 404)
        details['borrower_name'] = details['borrower_name'] or user.full_name
        details['borrower_email'] = details['borrower_email'] or user.email
        details['borrower_phone'] = details['borrower_phone'] or user.phone_number
    elif not details['borrower_name']:
        return None, None, error_response({'borrower_name': ['Borrower name is required for non-member loans']})
    return user, details, None

def _co_maker_ids(form, borrower):
    """Validated co-maker ids; (ids, error)"""
    ids = list(dict.fromkeys(form.co_makers.data or []))
    if borrower is not None and borrower.id in ids:
        return None, error_response({'co_makers': ['Borrower cannot be their own co-maker']})
    found = {user.id for user in User.query.filter(User.id.in_(ids)).all()} if ids else set()
    missing = [user_id for user_id in ids if user_id not in found]
    if missing:
        return None, error_response({'co_makers': [f'Unknown members: {missing}']}, 404)
    return ids, None

@admin_bp.route('/loans', methods=['POST'])
@login_required
@admin_required
def add_loan():
    """Create a loan and release it immediately"""
    form = LoanForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user, borrower, error = _resolve_borrower(form)
    if error:
        return error
    co_makers, error = _co_maker_ids(form, user)
    if error:
        return error

    rate_bps = form.monthly_rate_bps.data
    if rate_bps is None:
        rate_bps = SystemSettings.get_settings().member_monthly_rate_bps

    loan = Loan(
        borrower_type=form.borrower_type.data,
        user_id=user.id if user else None,
        principal=form.principal.data,
        monthly_rate_bps=rate_bps,
        term_months=form.term_months.data,
        application_date=datetime.now(),
        **borrower
    )
    loan.calculate_terms()
    loan.release(loan.application_date)
    loan.set_co_makers(co_makers)
    db.session.add(loan)
    db.session.flush()

    log_activity('create_loan', f'Loan of {loan.principal} released to {loan.borrower_name}',
                 entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify(loan.to_dict()), 201

@admin_bp.route('/loans/<int:id>', methods=['PUT'])
@login_required
@admin_required
def update_loan(id):
    """Edit a loan's borrower, terms and co-makers while no payment is recorded"""
    loan = db.session.get(Loan, id)
    if loan is None:
        return error_response('Loan not found', 404)
    if loan.status == 'paid':
        return error_response('Cannot edit a paid loan')
    if loan.payments.count():
        return error_response('Cannot edit loan with existing payments')

    form = LoanForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user, borrower, error = _resolve_borrower(form)
    if error:
        return error
    co_makers, error = _co_maker_ids(form, user)
    if error:
        return error

    loan.borrower_type = form.borrower_type.data
    loan.user_id = user.id if user else None
    for name, value in borrower.items():
        setattr(loan, name, value)
    loan.principal = form.principal.data
    loan.term_months = form.term_months.data
    if form.monthly_rate_bps.data is not None:
        loan.monthly_rate_bps = form.monthly_rate_bps.data
    loan.calculate_terms()
    if loan.status == 'released':
        # new terms run from the edit
        loan.released_at = None
        loan.release(datetime.now())
    loan.set_co_makers(co_makers)

    log_activity('update_loan', f'Loan {loan.id} updated: {loan.principal} over {loan.term_months} months',
                 entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify(loan.to_dict())

@admin_bp.route('/loans/<int:id>/status', methods=['PUT'])
@login_required
@admin_required
def update_loan_status(id):
    """Change a loan's status; releasing fixes the maturity date"""
    loan = db.session.get(Loan, id)
    if loan is None:
        return error_response('Loan not found', 404)

    form = LoanStatusForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    status = form.status.data
    if status == 'released':
        loan.release()
    else:
        loan.status = status
        if status == 'paid' and not loan.settled_at:
            loan.settled_at = datetime.now()

    log_activity('loan_status', f'Loan {loan.id} marked {status}', entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify(loan.to_dict())

@admin_bp.route('/loans/<int:id>/reject', methods=['POST'])
@login_required
@admin_required
def reject_loan(id):
    """Reject a pending loan application"""
    loan = db.session.get(Loan, id)
    if loan is None:
        return error_response('Loan not found', 404)
    if loan.status != 'pending':
        return error_response('Only pending loans can be rejected!')

    form = LoanRejectForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    loan.status = 'rejected'
    loan.rejection_reason = form.reason.data
    log_activity('reject_loan', f'Loan {loan.id} rejected: {form.reason.data}', entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify(loan.to_dict())

@admin_bp.route('/loans/<int:id>/payment', methods=['POST'])
@login_required
@admin_required
def add_loan_payment(id):
    """Record a loan payment and settle the loan once nothing is owed"""
    loan = db.session.get(Loan, id)
    if loan is None:
        return error_response('Loan not found', 404)
    if loan.status == 'paid':
        return error_response('Loan is already paid')
    if loan.status != 'released':
        return error_response('Cannot add payment for this loan! Loan must be released.')

    form = LoanPaymentForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    payment = LoanPayment(
        loan_id=loan.id,
        amount=form.amount.data,
        date_paid=form.date_paid.data or datetime.now(),
        payment_method=form.payment_method.data,
        reference=form.reference.data or '',
    )
    db.session.add(payment)
    db.session.flush()

    if loan.balance <= 0:
        loan.status = 'paid'
        loan.settled_at = payment.date_paid

    settings = SystemSettings.get_settings()
    message = f'Payment of {format_currency(form.amount.data, settings.currency_symbol)} recorded'
    log_activity('loan_payment', f'{message} for loan {loan.id}', entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify({
        'message': message,
        'payment': payment.to_dict(),
        'loan': loan.to_dict(),
        'balance': loan.balance,
    }), 201

@admin_bp.route('/loans/<int:id>/details')
@login_required
@admin_required
def loan_details(id):
    """Loan with its amortization schedule and payments"""
    loan = db.session.get(Loan, id)
    if loan is None:
        return error_response('Loan not found', 404)
    now, error = _evaluation_time()
    if error:
        return error

    payload = loan_amortization(loan, now)
    payload['loan'] = loan.to_dict()
    payload['payments'] = [p.to_dict() for p in loan.payments.order_by(LoanPayment.date_paid.asc()).all()]
    return jsonify(payload)

# System configuration

@admin_bp.route('/system-config')
@login_required
@admin_required
def get_system_config():
    return jsonify(SystemSettings.get_settings().to_dict())

@admin_bp.route('/system-config', methods=['PUT'])
@login_required
@admin_required
def update_system_config():
    """Update share value and loan limits"""
    form = SystemConfigForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    settings = SystemSettings.get_settings()
    fields = ('share_value', 'min_shares', 'max_shares', 'min_loan_amount', 'max_loan_amount',
              'member_monthly_rate_bps')
    for name in fields:
        value = getattr(form, name).data
        if value is not None:
            setattr(settings, name, value)

    if settings.min_shares > settings.max_shares:
        db.session.rollback()
        return error_response('min_shares cannot exceed max_shares')
    if Decimal(str(settings.min_loan_amount)) > Decimal(str(settings.max_loan_amount)):
        db.session.rollback()
        return error_response('min_loan_amount cannot exceed max_loan_amount')

    log_activity('update_settings', 'Updated system configuration', entity_type='settings', entity_id=settings.id)
    db.session.commit()

    return jsonify(settings.to_dict())

# Funds and expenses

@admin_bp.route('/funds-available')
@login_required
@admin_required
def get_funds_available():
    """Money on hand for new loans"""
    return jsonify(funds_available())

@admin_bp.route('/expenses')
@login_required
@admin_required
def list_expenses():
    """Expenses of ``?year=`` (default: current year), newest first"""
    year = request.args.get('year', datetime.now().year, type=int)
    expenses = Expense.query.filter_by(year=year).order_by(Expense.created_at.desc(), Expense.id.desc()).all()
    return jsonify({
        'year': year,
        'total': expense_total(year),
        'items': [e.to_dict() for e in expenses],
    })

@admin_bp.route('/expenses', methods=['POST'])
@login_required
@admin_required
def add_expense():
    """Record an operating expense"""
    form = ExpenseForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    expense = Expense(
        year=form.year.data or datetime.now().year,
        amount=form.amount.data,
        description=form.description.data,
        reference_type=form.reference_type.data,
        reference=form.reference.data or '',
        created_by_user_id=current_user.id,
    )
    db.session.add(expense)
    db.session.flush()

    log_activity('add_expense', f'Expense of {expense.amount} for {expense.year}: {expense.description}',
                 entity_type='expense', entity_id=expense.id)
    db.session.commit()

    return jsonify(expense.to_dict()), 201

@admin_bp.route('/expenses/<int:id>', methods=['PUT'])
@login_required
@admin_required
def update_expense(id):
    """Update the fields present in the request body"""
    expense = db.session.get(Expense, id)
    if expense is None:
        return error_response('Expense not found', 404)

    form = UpdateExpenseForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    supplied = request.get_json(silent=True) or {}
    for name in ('amount', 'description', 'reference_type', 'reference'):
        if name in supplied:
            setattr(expense, name, getattr(form, name).data)

    log_activity('update_expense', f'Updated expense {expense.id}', entity_type='expense', entity_id=expense.id)
    db.session.commit()

    return jsonify(expense.to_dict())

@admin_bp.route('/expenses/<int:id>', methods=['DELETE'])
@login_required
@admin_required
def delete_expense(id):
    expense = db.session.get(Expense, id)
    if expense is None:
        return error_response('Expense not found', 404)

    log_activity('delete_expense', f'Deleted expense {expense.id}: {expense.description}',
                 entity_type='expense', entity_id=expense.id)
    db.session.delete(expense)
    db.session.commit()

    return jsonify({'message': 'Expense deleted'})

# Dividends

@admin_bp.route('/dividends/estimated-per-share')
@login_required
@admin_required
def estimated_per_share():
    """Cached per-share estimate for ``?year=`` (default: current year)"""
    year = request.args.get('year', datetime.now().year, type=int)
    return jsonify({
        'year': year,
        'profit_pool': get_profit_pool_amount(year),
        'per_share': get_estimated_per_share(year),
    })

@admin_bp.route('/profit-pool', methods=['PUT'])
@login_required
@admin_required
def update_profit_pool():
    """Set the distributable profit for a year"""
    form = ProfitPoolForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    log_activity('set_profit_pool', f'Profit pool for {form.year.data} set to {form.amount.data}',
                 entity_type='profit_pool')
    pool = set_profit_pool(form.year.data, form.amount.data)

    return jsonify(pool.to_dict())

@admin_bp.route('/dividends/payouts')
@login_required
@admin_required
def list_payouts():
    """Dividend payouts, optionally for one year"""
    query = DividendPayout.query
    year = request.args.get('year', type=int)
    if year:
        query = query.filter_by(year=year)
    return jsonify(_page(query.order_by(DividendPayout.year.desc(), DividendPayout.id.asc()), lambda p: p.to_dict()))

@admin_bp.route('/dividends/payouts', methods=['POST'])
@login_required
@admin_required
def add_payout():
    """Record a single dividend payout; one per member and year"""
    form = PayoutForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = db.session.get(User, form.user_id.data)
    if user is None:
        return error_response('User not found', 404)

    account = payout_account_fields(user, form.channel.data)
    for name in account:
        if getattr(form, name).data:
            account[name] = getattr(form, name).data

    payout = DividendPayout(
        user_id=user.id,
        year=form.year.data,
        per_share=form.per_share.data,
        shares_count=form.shares_count.data,
        amount=form.amount.data,
        channel=form.channel.data,
        reference=form.reference.data,
        deposited_at=form.deposited_at.data,
        created_by_user_id=current_user.id,
        **account
    )
    db.session.add(payout)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        return error_response(f'{user.full_name} already has a payout for {form.year.data}', 409)

    log_activity('create_payout', f'Dividend payout of {payout.amount} to {user.username} for {payout.year}',
                 entity_type='payout', entity_id=payout.id)
    db.session.commit()

    return jsonify(payout.to_dict()), 201

@admin_bp.route('/dividends/payouts/bulk', methods=['POST'])
@login_required
@admin_required
def add_bulk_payouts():
    """Pay every qualifying member of a year; per-member failures do not stop the batch"""
    form = BulkPayoutForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    result = create_bulk_payouts(
        form.year.data,
        form.channel.data,
        form.reference.data,
        form.deposited_at.data,
        created_by_user_id=current_user.id,
        per_share=form.per_share.data,
    )

    summary = result['summary']
    log_activity('bulk_payout',
                 f'Bulk dividend payout for {form.year.data}: {summary["created"]} created, {summary["failed"]} failed',
                 entity_type='payout')
    db.session.commit()

    status = 201 if result['created'] else 200
    return jsonify(result), status
