from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from flask_login import current_user
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from accounts.decorators import login_required
from employees.models import Employee
from salary.models import SalaryRecord
from salary.records import stage_employee_records_delete, records_for_user
from helpers import ValidationError, parse_optional_amount, parse_required_text, parse_window
from datetime import datetime

employees_bp = Blueprint("employees", __name__, url_prefix="/employees")


def owned_employee_or_404(employee_id):
    return Employee.query.filter_by(id=employee_id, user_id=current_user.id).first_or_404()


def _employee_form(form):
    """Validated name/role/base_salary from the add or edit form."""
    role = (form.get("role") or "").strip()
    return {
        "name": parse_required_text(form.get("name"), "Name"),
        "role": role or None,
        "base_salary": parse_optional_amount(form.get("base_salary")),
    }


# ================= ADD =================
@employees_bp.route("/new", methods=["GET", "POST"])
@login_required
def add_employee():
    if request.method == "POST":
        try:
            values = _employee_form(request.form)
        except ValidationError as e:
            return render_template("employees/form.html", employee=None,
                                   form=request.form, error=str(e)), 400

        employee = Employee(user_id=current_user.id, **values)
        db.session.add(employee)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error inserting employee: %s", e)
            flash("Could not save the employee.", "danger")
            return redirect(url_for("reports.dashboard"))

        flash(f"Added {employee.name}.", "success")
        return redirect(url_for("reports.dashboard"))

    return render_template("employees/form.html", employee=None, form={}, error=None)


# ================= EDIT =================
@employees_bp.route("/<int:employee_id>/edit", methods=["GET", "POST"])
@login_required
def edit_employee(employee_id):
    employee = owned_employee_or_404(employee_id)

    if request.method == "POST":
        try:
            values = _employee_form(request.form)
        except ValidationError as e:
            return render_template("employees/form.html", employee=employee,
                                   form=request.form, error=str(e)), 400

        for key, value in values.items():
            setattr(employee, key, value)
        employee.updated_at = datetime.utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error updating employee %s: %s", employee_id, e)
            flash("Could not update the employee.", "danger")
            return redirect(url_for("reports.dashboard"))

        flash(f"Updated {employee.name}.", "success")
        return redirect(url_for("reports.dashboard"))

    form = {
        "name": employee.name,
        "role": employee.role or "",
        "base_salary": "" if employee.base_salary is None else f"{employee.base_salary:g}",
    }
    return render_template("employees/form.html", employee=employee, form=form, error=None)


# ================= DELETE =================
@employees_bp.route("/<int:employee_id>/delete", methods=["GET", "POST"])
@login_required
def delete_employee(employee_id):
    employee = owned_employee_or_404(employee_id)

    if request.method == "POST":
        if not employee.matches_name(request.form.get("confirm_name")):
            return render_template("employees/delete.html", employee=employee,
                                   error="Type the employee's name exactly to confirm."), 400

        name = employee.name
        try:
            removed = stage_employee_records_delete(current_user.id, employee.id)
            db.session.expire(employee, ["salary_records"])
            db.session.delete(employee)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error deleting employee %s: %s", employee_id, e)
            flash("Could not delete the employee.", "danger")
            return redirect(url_for("reports.dashboard"))

        current_app.logger.info("Deleted employee %s with %d salary records", employee_id, removed)
        flash(f"Deleted {name} and {removed} salary record(s).", "success")
        return redirect(url_for("reports.dashboard"))

    return render_template("employees/delete.html", employee=employee, error=None)


# ================= DETAIL =================
@employees_bp.route("/<int:employee_id>")
@login_required
def employee_detail(employee_id):
    employee = owned_employee_or_404(employee_id)
    offset, limit = parse_window(request.args, current_app.config["PAGE_SIZE"])

    records, record_count, total_paid, total_expenses = [], 0, 0.0, 0.0
    load_error = None
    try:
        query = records_for_user(current_user.id, employee.id)
        record_count = query.count()
        total_paid, total_expenses = db.session.query(
            func.coalesce(func.sum(SalaryRecord.grand_total), 0.0),
            func.coalesce(func.sum(SalaryRecord.total_expenses), 0.0),
        ).filter(
            SalaryRecord.user_id == current_user.id,
            SalaryRecord.employee_id == employee.id,
        ).one()

        records = (
            query.order_by(SalaryRecord.year.desc(), SalaryRecord.month.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error loading records for employee %s: %s", employee.id, e)
        records, record_count, total_paid, total_expenses = [], 0, 0.0, 0.0
        load_error = "Could not load salary records. Please try again."

    return render_template(
        "employees/detail.html",
        employee=employee,
        records=records,
        record_count=record_count,
        total_paid=total_paid,
        total_expenses=total_expenses,
        offset=offset,
        limit=limit,
        load_error=load_error,
    )
