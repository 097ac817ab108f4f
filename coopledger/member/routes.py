"""Member self-service routes"""
from datetime import datetime
from decimal import Decimal
from flask import jsonify
from flask_login import login_required, current_user
from coopledger import db
from coopledger.member import member_bp
from coopledger.member.forms import LoanApplicationForm
from coopledger.models import Contribution, DividendPayout, Loan, SystemSettings
from coopledger.services.dividends import get_estimated_per_share
from coopledger.services.schedules import loan_amortization, member_due_schedule
from coopledger.utils.decorators import member_required
from coopledger.utils.helpers import error_response, form_error_response, log_activity, request_now

@member_bp.route('/me')
@login_required
@member_required
def me():
    """Profile with recent contributions and loans"""
    settings = SystemSettings.get_settings()
    contributions = current_user.contributions.order_by(Contribution.date_paid.desc()).limit(5).all()
    loans = current_user.loans.order_by(Loan.created_at.desc()).limit(5).all()

    profile = current_user.to_dict()
    profile.update({
        'expected_per_period': current_user.expected_contribution(settings),
        'contributions': [c.to_dict() for c in contributions],
        'loans': [loan.to_dict() for loan in loans],
        'estimated_dividend_per_share': get_estimated_per_share(),
    })
    return jsonify(profile)

@member_bp.route('/due-schedule')
@login_required
@member_required
def due_schedule():
    """Share dues for the current and next year with per-period status"""
    try:
        now = request_now()
    except ValueError as e:
        return error_response(str(e))
    return jsonify(member_due_schedule(current_user, now))

@member_bp.route('/loans')
@login_required
@member_required
def list_loans():
    """Loans of the logged-in member"""
    loans = current_user.loans.order_by(Loan.created_at.desc()).all()
    return jsonify([loan.to_dict() for loan in loans])

@member_bp.route('/loans/<int:id>/schedule')
@login_required
@member_required
def loan_schedule(id):
    """Amortization schedule of one of the member's own loans"""
    loan = Loan.query.filter_by(id=id, user_id=current_user.id).first()
    if loan is None:
        return error_response('Loan not found', 404)
    try:
        now = request_now()
    except ValueError as e:
        return error_response(str(e))

    payload = loan_amortization(loan, now)
    payload['loan'] = loan.to_dict()
    return jsonify(payload)

@member_bp.route('/loans', methods=['POST'])
@login_required
@member_required
def apply_for_loan():
    """Submit a loan application; it stays pending until an administrator releases it"""
    form = LoanApplicationForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    settings = SystemSettings.get_settings()
    principal = form.principal.data
    min_amount = Decimal(str(settings.min_loan_amount))
    max_amount = Decimal(str(settings.max_loan_amount))
    if principal < min_amount or principal > max_amount:
        return error_response(f'Principal must be between {min_amount} and {max_amount}')

    loan = Loan(
        borrower_type='member',
        user_id=current_user.id,
        borrower_name=current_user.full_name,
        borrower_email=current_user.email,
        borrower_phone=current_user.phone_number,
        principal=principal,
        monthly_rate_bps=settings.member_monthly_rate_bps,
        term_months=form.term_months.data,
        application_date=datetime.now(),
        status='pending',
    )
    loan.calculate_terms()
    db.session.add(loan)
    db.session.flush()

    log_activity('loan_application', f'Loan application of {principal} by {current_user.username}',
                 entity_type='loan', entity_id=loan.id)
    db.session.commit()

    return jsonify(loan.to_dict()), 201

@member_bp.route('/dividends')
@login_required
@member_required
def dividends():
    """Dividend payouts received by the member"""
    payouts = current_user.payouts.order_by(DividendPayout.year.desc(), DividendPayout.deposited_at.desc()).all()
    return jsonify([p.to_dict() for p in payouts])
