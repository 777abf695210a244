from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from accounts.decorators import login_required
from expenses.models import OtherExpense
from reports.aggregation import aggregate_by_month
from helpers import (
    ValidationError, parse_amount, parse_optional_date, parse_required_text, today,
)
from datetime import datetime

expenses_bp = Blueprint("expenses", __name__, url_prefix="/other-expenses")


def owned_expense_or_404(expense_id):
    return OtherExpense.query.filter_by(id=expense_id, user_id=current_user.id).first_or_404()


def _expense_form(form):
    description = (form.get("description") or "").strip()
    return {
        "category": parse_required_text(form.get("category"), "Category"),
        "amount": parse_amount(form.get("amount")),
        "expense_date": parse_optional_date(form.get("date")),
        "description": description or None,
    }


def parse_open_groups(raw):
    """The `open` query arg is a comma list of YYYY-MM group keys."""
    return {key.strip() for key in (raw or "").split(",") if key.strip()}


def toggle_group_link(open_groups, key):
    """Query value for the link that flips one group's open state."""
    flipped = set(open_groups)
    if key in flipped:
        flipped.discard(key)
    else:
        flipped.add(key)
    return ",".join(sorted(flipped))


# ================= LIST =================
@expenses_bp.route("/")
@login_required
def list_expenses():
    expenses, load_error = [], None
    try:
        expenses = (
            OtherExpense.query.filter_by(user_id=current_user.id)
            .order_by(OtherExpense.expense_date.desc(), OtherExpense.created_at.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error loading other expenses: %s", e)
        load_error = "Could not load expenses. Please try again."

    groups = aggregate_by_month(expenses)
    open_groups = parse_open_groups(request.args.get("open"))

    return render_template(
        "expenses/list.html",
        groups=groups,
        grand_total=sum(e.amount for e in expenses),
        open_groups=open_groups,
        toggle_link=lambda key: toggle_group_link(open_groups, key),
        load_error=load_error,
    )


# ================= ADD =================
@expenses_bp.route("/new", methods=["GET", "POST"])
@login_required
def add_expense():
    if request.method == "POST":
        try:
            values = _expense_form(request.form)
        except ValidationError as e:
            return render_template("expenses/form.html", expense=None,
                                   form=request.form, error=str(e)), 400

        expense = OtherExpense(user_id=current_user.id, **values)
        db.session.add(expense)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error inserting other expense: %s", e)
            flash("Could not save the expense.", "danger")
            return redirect(url_for("expenses.list_expenses"))

        flash(f"Added {expense.category} expense.", "success")
        return redirect(url_for("expenses.list_expenses"))

    form = {"date": today().isoformat()}
    return render_template("expenses/form.html", expense=None, form=form, error=None)


# ================= EDIT =================
@expenses_bp.route("/<int:expense_id>/edit", methods=["GET", "POST"])
@login_required
def edit_expense(expense_id):
    expense = owned_expense_or_404(expense_id)

    if request.method == "POST":
        try:
            values = _expense_form(request.form)
        except ValidationError as e:
            return render_template("expenses/form.html", expense=expense,
                                   form=request.form, error=str(e)), 400

        for key, value in values.items():
            setattr(expense, key, value)
        expense.updated_at = datetime.utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error updating other expense %s: %s", expense_id, e)
            flash("Could not update the expense.", "danger")
            return redirect(url_for("expenses.list_expenses"))

        flash("Expense updated.", "success")
        return redirect(url_for("expenses.list_expenses"))

    form = {
        "category": expense.category,
        "amount": f"{expense.amount:g}",
        "date": expense.expense_date.isoformat() if expense.expense_date else "",
        "description": expense.description or "",
    }
    return render_template("expenses/form.html", expense=expense, form=form, error=None)


# ================= DELETE =================
@expenses_bp.route("/<int:expense_id>/delete", methods=["GET", "POST"])
@login_required
def delete_expense(expense_id):
    expense = owned_expense_or_404(expense_id)

    if request.method == "POST":
        db.session.delete(expense)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error deleting other expense %s: %s", expense_id, e)
            flash("Could not delete the expense.", "danger")
            return redirect(url_for("expenses.list_expenses"))

        flash("Expense deleted.", "success")
        return redirect(url_for("expenses.list_expenses"))

    return render_template("expenses/delete.html", expense=expense)
