"""Dividend per-share estimate, its cache, and bulk payouts.

The per-share value for a year is cached in ``per_share_cache``. The two writes
that change it, the profit pool and cycle eligibility, go through this module
and drop the cached value for their year. The key is the year alone, so a
cycle rollover keeps serving the previous cycle's value until one of those
writes happens.
"""
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from flask import current_app
from sqlalchemy.exc import IntegrityError
from coopledger import db, per_share_cache
from coopledger.ledger import compute_per_share, current_cycle, plan_payouts
from coopledger.ledger.dividend import group_payments
from coopledger.models import (
    Contribution, CycleDividendEligibility, DividendPayout, ProfitPool, SystemSettings, User,
)

def invalidate_per_share(year):
    """Drop the cached per-share value for ``year``"""
    if per_share_cache.invalidate(year):
        current_app.logger.debug('Invalidated cached dividend per share for %s', year)

def get_profit_pool_amount(year):
    pool = ProfitPool.query.filter_by(year=year).first()
    return Decimal(str(pool.amount)) if pool else Decimal('0')

def build_estimate(year, now=None):
    """Compute the estimate for ``year`` from the ledger, bypassing the cache"""
    now = now or datetime.now()
    settings = SystemSettings.get_settings()
    cycle, due_at = current_cycle(now)

    records = CycleDividendEligibility.query.filter_by(year=year, cycle=cycle, is_eligible=True).all()
    member_ids = [r.user_id for r in records]

    members = []
    payments_by_member = {}
    if member_ids:
        # inactive and zero-share members are never paid out
        users = User.query.filter(
            User.id.in_(member_ids),
            User.is_active.is_(True),
            User.share_count > 0,
        ).all()
        members = [u.to_shares() for u in users]
        contributions = Contribution.query.filter(
            Contribution.user_id.in_(member_ids),
            Contribution.date_paid <= due_at,
        ).all()
        payments_by_member = group_payments((c.user_id, c.to_payment()) for c in contributions)

    return compute_per_share(
        year,
        get_profit_pool_amount(year),
        members,
        [r.to_entity() for r in records],
        payments_by_member,
        settings.share_value,
        now,
    )

def get_estimated_per_share(year=None, now=None):
    """Read-through: cached value for ``year``, computed and stored on a miss"""
    now = now or datetime.now()
    year = year or now.year

    cached = per_share_cache.get(year)
    if cached is not None:
        return cached

    estimate = build_estimate(year, now)
    per_share_cache.set(year, estimate.per_share)
    return estimate.per_share

def set_profit_pool(year, amount):
    """Upsert the profit pool for ``year`` and invalidate its per-share value"""
    pool = ProfitPool.query.filter_by(year=year).first()
    if pool is None:
        pool = ProfitPool(year=year)
        db.session.add(pool)
    pool.amount = amount
    db.session.commit()
    invalidate_per_share(year)
    return pool

def set_cycle_eligibility(user, year, cycle, is_eligible, reason=''):
    """Upsert a member's eligibility for (year, cycle) and invalidate the year's per-share value.

    The reason is kept only for ineligible records.
    """
    record = CycleDividendEligibility.query.filter_by(user_id=user.id, year=year, cycle=cycle).first()
    if record is None:
        record = CycleDividendEligibility(user_id=user.id, year=year, cycle=cycle)
        db.session.add(record)
    record.is_eligible = is_eligible
    record.reason = '' if is_eligible else (reason or '').strip()
    db.session.commit()
    invalidate_per_share(year)
    return record

def payout_account_fields(user, channel):
    if channel == 'BANK':
        return {
            'bank_name': user.bank_name or '',
            'bank_account_number': user.bank_account_number or '',
            'gcash_number': '',
        }
    return {'bank_name': '', 'bank_account_number': '', 'gcash_number': user.gcash_number or ''}

def paid_member_ids(year, member_ids):
    """Members among ``member_ids`` that already have a payout for ``year``"""
    if not member_ids:
        return set()
    rows = DividendPayout.query.filter(DividendPayout.year == year, DividendPayout.user_id.in_(member_ids)).all()
    return {row.user_id for row in rows}

def create_bulk_payouts(year, channel, reference, deposited_at, created_by_user_id=None,
                        per_share=None, now=None):
    """Create one payout per qualifying member for ``year``.

    The per-share value is computed once for the whole batch (or taken from
    ``per_share`` when the administrator supplies it). A member who already has
    a payout for the year, or whose insert fails, is reported in ``failed``
    and the batch carries on.
    """
    estimate = build_estimate(year, now)
    if per_share is not None:
        estimate = replace(estimate, per_share=Decimal(str(per_share)))
    lines = plan_payouts(estimate)

    member_ids = [line.member_id for line in lines]
    users = {u.id: u for u in User.query.filter(User.id.in_(member_ids)).all()} if member_ids else {}
    already_paid = paid_member_ids(year, member_ids)

    created = []
    failed = []
    for line in lines:
        user = users[line.member_id]
        if line.member_id in already_paid:
            failed.append({'user_id': user.id, 'full_name': user.full_name, 'error': 'Payout already exists'})
            continue
        try:
            with db.session.begin_nested():
                payout = DividendPayout(
                    user_id=user.id,
                    year=year,
                    per_share=line.per_share,
                    shares_count=line.share_count,
                    amount=line.amount,
                    channel=channel,
                    reference=reference,
                    deposited_at=deposited_at,
                    created_by_user_id=created_by_user_id,
                    **payout_account_fields(user, channel)
                )
                db.session.add(payout)
            created.append({'user_id': user.id, 'full_name': user.full_name, 'amount': line.amount, 'id': payout.id})
        except IntegrityError as e:
            current_app.logger.warning('Dividend payout for user %s, year %s failed: %s', user.id, year, e.orig)
            failed.append({'user_id': user.id, 'full_name': user.full_name, 'error': 'Payout already exists'})

    db.session.commit()
    invalidate_per_share(year)

    return {
        'year': year,
        'per_share': estimate.per_share,
        'created': created,
        'failed': failed,
        'summary': {'total': len(lines), 'created': len(created), 'failed': len(failed)},
    }
