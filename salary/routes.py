import csv
import io
import platform
import pdfkit
from flask import Blueprint, render_template, request, redirect, url_for, flash, make_response, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from accounts.decorators import login_required
from employees.models import Employee
from salary.models import SalaryRecord
from salary.records import (
    parse_expense_rows, create_record, update_record, delete_record, records_for_user,
)
from extensions import db
from helpers import (
    ValidationError, parse_date, parse_optional_amount, month_label, today, format_inr, safe_next,
)

salary_bp = Blueprint("salary", __name__, url_prefix="/salary")


def owned_record_or_404(record_id):
    return SalaryRecord.query.filter_by(id=record_id, user_id=current_user.id).first_or_404()


def _user_employees():
    return Employee.query.filter_by(user_id=current_user.id).order_by(Employee.created_at.asc()).all()


def _record_form(form):
    """Validate the salary record form; returns (employee_id, record_date, base_salary, drafts)."""
    employee = None
    raw_id = (form.get("employee_id") or "").strip()
    if raw_id.isdigit():
        employee = Employee.query.filter_by(id=int(raw_id), user_id=current_user.id).first()
    if employee is None:
        raise ValidationError("Employee is required")

    record_date = parse_date(form.get("date"))
    base_salary = parse_optional_amount(form.get("salary"))
    drafts = parse_expense_rows(form)
    return employee.id, record_date, base_salary, drafts


def _rows_from_form(form):
    return [
        {"category": c, "amount": a, "date": d}
        for c, a, d in zip(
            form.getlist("expense_category"),
            form.getlist("expense_amount"),
            form.getlist("expense_date"),
        )
    ]


def _render_form(record, form, rows, error=None, status=200):
    return render_template(
        "salary/form.html",
        record=record,
        employees=_user_employees(),
        form=form,
        rows=rows,
        error=error,
    ), status


# ================= ADD =================
@salary_bp.route("/new", methods=["GET", "POST"])
@login_required
def add_record():
    if request.method == "POST":
        try:
            employee_id, record_date, base_salary, drafts = _record_form(request.form)
        except ValidationError as e:
            return _render_form(None, request.form, _rows_from_form(request.form), str(e), 400)

        try:
            record = create_record(current_user.id, employee_id, record_date, base_salary, drafts)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error inserting salary record: %s", e)
            flash("Could not save the salary record.", "danger")
            return redirect(url_for("reports.dashboard"))

        flash(f"Salary record saved for {month_label(record.month, record.year)}.", "success")
        return redirect(safe_next(request.form.get("next"), url_for("reports.dashboard")))

    form = {
        "employee_id": request.args.get("employee_id", ""),
        "date": today().isoformat(),
        "salary": "",
    }
    return _render_form(None, form, [])


# ================= EDIT =================
@salary_bp.route("/<int:record_id>/edit", methods=["GET", "POST"])
@login_required
def edit_record(record_id):
    record = owned_record_or_404(record_id)

    if request.method == "POST":
        try:
            employee_id, record_date, base_salary, drafts = _record_form(request.form)
        except ValidationError as e:
            return _render_form(record, request.form, _rows_from_form(request.form), str(e), 400)

        try:
            update_record(record, employee_id, record_date, base_salary, drafts)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error updating salary record %s: %s", record_id, e)
            flash("Could not update the salary record.", "danger")
            return redirect(url_for("reports.dashboard"))

        flash("Salary record updated.", "success")
        return redirect(safe_next(request.form.get("next"), url_for("reports.dashboard")))

    record_date = record.record_date
    form = {
        "employee_id": str(record.employee_id),
        "date": (record_date or today()).isoformat(),
        "salary": "" if record.base_salary is None else f"{record.base_salary:g}",
    }
    rows = [
        {
            "category": e.category,
            "amount": f"{e.amount:g}",
            "date": e.expense_date.isoformat() if e.expense_date else "",
        }
        for e in record.expenses
    ]
    return _render_form(record, form, rows)


# ================= DELETE =================
@salary_bp.route("/<int:record_id>/delete", methods=["GET", "POST"])
@login_required
def delete_salary_record(record_id):
    record = owned_record_or_404(record_id)

    if request.method == "POST":
        try:
            delete_record(record)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error deleting salary record %s: %s", record_id, e)
            flash("Could not delete the salary record.", "danger")
            return redirect(url_for("reports.dashboard"))

        flash("Salary record deleted.", "success")
        return redirect(safe_next(request.form.get("next"), url_for("reports.dashboard")))

    return render_template("salary/delete.html", record=record)


# ================= CSV EXPORT =================
@salary_bp.route("/export-csv")
@login_required
def export_records_csv():
    year = request.args.get("year", today().year, type=int)
    records = (
        records_for_user(current_user.id)
        .filter(SalaryRecord.year == year)
        .order_by(SalaryRecord.month.asc(), SalaryRecord.created_at.asc())
        .all()
    )

    si = io.StringIO()
    cw = csv.writer(si)
    cw.writerow(["Employee", "Role", "Period", "Base salary", "Total expenses", "Grand total", "Expenses"])
    for r in records:
        detail = "; ".join(
            f"{e.category}: {e.amount:g}" + (f" ({e.expense_date.isoformat()})" if e.expense_date else "")
            for e in r.expenses
        )
        cw.writerow([
            r.employee.name if r.employee else "Unknown employee",
            (r.employee.role if r.employee else None) or "",
            month_label(r.month, r.year),
            f"{(r.base_salary or 0):.2f}",
            f"{r.total_expenses:.2f}",
            f"{r.grand_total:.2f}",
            detail,
        ])

    output = make_response(si.getvalue())
    output.headers["Content-Disposition"] = f"attachment; filename=salary-records-{year}.csv"
    output.headers["Content-type"] = "text/csv"
    return output


# ================= PDF SALARY SLIP =================
def _pdf_configuration():
    path = current_app.config.get("WKHTMLTOPDF_PATH")
    if not path:
        if platform.system() == "Windows":
            path = r'C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe'
        else:
            path = '/usr/bin/wkhtmltopdf'
    return pdfkit.configuration(wkhtmltopdf=path)


@salary_bp.route("/<int:record_id>/slip.pdf")
@login_required
def download_slip(record_id):
    record = owned_record_or_404(record_id)
    back = url_for("employees.employee_detail", employee_id=record.employee_id)

    html = render_template("salary/slip_pdf.html", record=record, employee=record.employee,
                           period=month_label(record.month, record.year), inr=format_inr)
    options = {
        'page-size': 'A4',
        'encoding': "UTF-8",
        'no-outline': None,
        'quiet': ''
    }
    try:
        pdf = pdfkit.from_string(html, False, configuration=_pdf_configuration(), options=options)
    except OSError as e:
        current_app.logger.error("PDF Error for salary record %s: %s", record_id, e)
        flash("PDF service failed on server. Please ensure wkhtmltopdf is installed.", "danger")
        return redirect(back)

    name = record.employee.name.replace(" ", "_") if record.employee else "employee"
    response = make_response(pdf)
    response.headers['Content-Type'] = 'application/pdf'
    response.headers['Content-Disposition'] = (
        f'attachment; filename=salary-slip-{name}-{record.year}-{record.month:02d}.pdf'
    )
    return response
