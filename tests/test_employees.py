from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

import employees.routes
from extensions import db
from employees.models import Employee
from salary.models import SalaryRecord, SalaryExpense
from factories import make_employee, make_record, make_user


def test_add_employee_with_optional_fields(auth_client, user) -> None:
    resp = auth_client.post("/employees/new", data={"name": "Ravi", "role": "", "base_salary": ""})
    assert resp.status_code == 302

    emp = Employee.query.filter_by(user_id=user.id).one()
    assert emp.name == "Ravi"
    assert emp.role is None
    assert emp.base_salary is None


def test_add_employee_validates_name_and_salary(auth_client, user) -> None:
    resp = auth_client.post("/employees/new", data={"name": " ", "base_salary": "100"})
    assert resp.status_code == 400
    assert b"Name is required" in resp.data

    resp = auth_client.post("/employees/new", data={"name": "Ravi", "base_salary": "-1"})
    assert resp.status_code == 400
    assert b"Must be a valid non-negative number" in resp.data
    assert Employee.query.count() == 0


def test_edit_employee_updates_fields(auth_client, user) -> None:
    emp = make_employee(user)
    resp = auth_client.post(f"/employees/{emp.id}/edit",
                            data={"name": "Asha K", "role": "Manager", "base_salary": "50000"})
    assert resp.status_code == 302

    db.session.refresh(emp)
    assert (emp.name, emp.role, emp.base_salary) == ("Asha K", "Manager", 50000)
    assert emp.updated_at is not None


def test_delete_requires_typed_name(auth_client, user) -> None:
    emp = make_employee(user, name="Asha")
    resp = auth_client.post(f"/employees/{emp.id}/delete", data={"confirm_name": "Ash"})
    assert resp.status_code == 400
    assert Employee.query.count() == 1


def test_delete_cascades_to_salary_records(auth_client, user) -> None:
    emp = make_employee(user, name="Asha")
    other = make_employee(user, name="Ravi")
    make_record(user, emp, 2025, 1, expenses=(("Fuel", 500),))
    make_record(user, emp, 2025, 2)
    kept = make_record(user, other, 2025, 1)

    resp = auth_client.post(f"/employees/{emp.id}/delete", data={"confirm_name": "  asha "})
    assert resp.status_code == 302

    assert db.session.get(Employee, emp.id) is None
    assert [r.id for r in SalaryRecord.query.all()] == [kept.id]
    assert SalaryExpense.query.count() == 0


def test_detail_page_totals_and_breakdown(auth_client, user) -> None:
    emp = make_employee(user)
    make_record(user, emp, 2025, 1, base_salary=45000, expenses=(("Fuel", 500), ("Food", 250)))
    make_record(user, emp, 2024, 12, base_salary=None, expenses=(("Travel", 30),))

    resp = auth_client.get(f"/employees/{emp.id}")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Records: 2" in body
    assert "Total paid: &#8377; 45,780" in body
    assert body.index("Jan 2025") < body.index("Dec 2024")
    assert "Fuel" in body and "Travel" in body


def test_detail_page_windows_records(auth_client, user) -> None:
    emp = make_employee(user)
    for month in range(1, 6):
        make_record(user, emp, 2025, month)

    body = auth_client.get(f"/employees/{emp.id}?offset=0&limit=2").get_data(as_text=True)
    assert "May 2025" in body and "Apr 2025" in body and "Mar 2025" not in body
    assert "Next" in body and "Previous" not in body

    body = auth_client.get(f"/employees/{emp.id}?offset=4&limit=2").get_data(as_text=True)
    assert "Jan 2025" in body and "Feb 2025" not in body
    assert "Previous" in body


def test_other_users_employees_are_not_found(auth_client) -> None:
    stranger = make_user("stranger@example.com")
    emp = make_employee(stranger)
    assert auth_client.get(f"/employees/{emp.id}").status_code == 404
    assert auth_client.post(f"/employees/{emp.id}/delete", data={"confirm_name": emp.name}).status_code == 404


def test_detail_page_load_failure_shows_message(auth_client, user, monkeypatch) -> None:
    emp = make_employee(user)
    make_record(user, emp, 2025, 1)

    def unreachable(*args, **kwargs):
        raise SQLAlchemyError("store unreachable")

    monkeypatch.setattr(employees.routes, "records_for_user", unreachable)
    resp = auth_client.get(f"/employees/{emp.id}")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Could not load salary records" in body
    assert emp.name in body


def test_detail_window_past_end_is_not_empty_state(auth_client, user) -> None:
    emp = make_employee(user)
    for month in range(1, 3):
        make_record(user, emp, 2025, month)

    body = auth_client.get(f"/employees/{emp.id}?offset=6&limit=2").get_data(as_text=True)
    assert "No salary records yet for this employee." not in body
    assert "No records in this window." in body
    assert "Previous" in body
