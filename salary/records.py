# salary/records.py
"""Store operations for salary records and their itemized expenses.

These functions stage and commit changes but never catch store errors;
the calling view rolls back, logs and leaves the page as it was.
"""
from collections import namedtuple
from datetime import datetime
from itertools import zip_longest

from extensions import db
from helpers import ValidationError, parse_amount, parse_optional_date
from salary.models import SalaryRecord, SalaryExpense

ExpenseDraft = namedtuple("ExpenseDraft", "category amount expense_date")


def parse_expense_rows(form):
    """Read the repeated expense_category / expense_amount / expense_date inputs.

    Rows where both category and amount are blank are skipped. Any other row
    needs a category and a non-negative amount.
    """
    rows = zip_longest(
        form.getlist("expense_category"),
        form.getlist("expense_amount"),
        form.getlist("expense_date"),
        fillvalue="",
    )
    drafts = []
    for category, amount, raw_date in rows:
        category = (category or "").strip()
        amount = (amount or "").strip()
        if not category and not amount:
            continue
        if not category:
            raise ValidationError("Expense category is required")
        drafts.append(ExpenseDraft(
            category=category,
            amount=parse_amount(amount, "Expense amount"),
            expense_date=parse_optional_date(raw_date),
        ))
    return drafts


def _apply_header(record, employee_id, record_date, base_salary):
    record.employee_id = employee_id
    record.record_date = record_date
    record.year = record_date.year
    record.month = record_date.month
    record.base_salary = base_salary


def _stage_expenses(record, user_id, drafts):
    for d in drafts:
        db.session.add(SalaryExpense(
            record=record,
            user_id=user_id,
            category=d.category,
            amount=d.amount,
            expense_date=d.expense_date,
        ))


def create_record(user_id, employee_id, record_date, base_salary, drafts):
    record = SalaryRecord(user_id=user_id)
    _apply_header(record, employee_id, record_date, base_salary)
    record.recompute_totals(drafts)
    db.session.add(record)
    _stage_expenses(record, user_id, drafts)
    db.session.commit()
    return record


def update_record(record, employee_id, record_date, base_salary, drafts):
    """Rewrite a record and replace its whole expense list.

    Three separate commits: the record row, then delete-all of its expenses,
    then insert of the new ones. Nothing is rolled back across them, so a
    failed insert leaves the record with its new totals and no expenses.
    """
    _apply_header(record, employee_id, record_date, base_salary)
    record.recompute_totals(drafts)
    record.updated_at = datetime.utcnow()
    db.session.commit()

    for old in list(record.expenses):
        db.session.delete(old)
    db.session.commit()

    db.session.expire(record, ["expenses"])
    _stage_expenses(record, record.user_id, drafts)
    db.session.commit()
    return record


def delete_record(record):
    # expenses first, then the record itself
    for exp in list(record.expenses):
        db.session.delete(exp)
    db.session.flush()
    db.session.expire(record, ["expenses"])
    db.session.delete(record)
    db.session.commit()


def stage_employee_records_delete(user_id, employee_id):
    """Stage removal of every record (and expense) for an employee. Caller commits."""
    records = SalaryRecord.query.filter_by(user_id=user_id, employee_id=employee_id).all()
    for record in records:
        for exp in list(record.expenses):
            db.session.delete(exp)
    db.session.flush()
    for record in records:
        db.session.expire(record, ["expenses"])
        db.session.delete(record)
    return len(records)


def records_for_user(user_id, employee_id=None):
    query = SalaryRecord.query.filter_by(user_id=user_id)
    if employee_id is not None:
        query = query.filter_by(employee_id=employee_id)
    return query
