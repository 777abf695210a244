from flask import Blueprint, render_template, request, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from accounts.decorators import login_required
from employees.models import Employee
from salary.models import SalaryRecord
from salary.records import records_for_user
from reports.aggregation import monthly_series, top_entities, year_summary
from helpers import parse_window, today

reports_bp = Blueprint("reports", __name__)


@reports_bp.route("/")
@login_required
def dashboard():
    """Roster, record list and the yearly aggregates for the signed-in user."""
    year = request.args.get("year", today().year, type=int)
    offset, limit = parse_window(request.args, current_app.config["PAGE_SIZE"])

    employees, all_records, window = [], [], []
    load_error = None
    try:
        employees = (
            Employee.query.filter_by(user_id=current_user.id)
            .order_by(Employee.created_at.asc())
            .all()
        )
        all_records = records_for_user(current_user.id).all()
        window = (
            records_for_user(current_user.id)
            .order_by(SalaryRecord.created_at.asc(), SalaryRecord.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error loading dashboard: %s", e)
        employees, all_records, window = [], [], []
        load_error = "Could not load your data. Please try again."

    # lifetime ranking is not filtered by year
    top = top_entities(all_records, employees, n=3)
    series = monthly_series(all_records, year)
    summary = year_summary(all_records, year)

    return render_template(
        "reports/dashboard.html",
        year=year,
        employees=employees,
        employees_by_id={e.id: e for e in employees},
        records=window,
        record_count=len(all_records),
        offset=offset,
        limit=limit,
        series=series,
        top=top,
        summary=summary,
        load_error=load_error,
    )
