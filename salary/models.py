from extensions import db
from datetime import datetime


class SalaryRecord(db.Model):
    __tablename__ = "salary_records"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    month = db.Column(db.Integer, nullable=False)  # 1-12
    base_salary = db.Column(db.Float)              # snapshot, nullable
    total_expenses = db.Column(db.Float, nullable=False, default=0.0)
    grand_total = db.Column(db.Float, nullable=False, default=0.0)
    record_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime)

    employee = db.relationship("Employee", backref=db.backref("salary_records", lazy=True))
    expenses = db.relationship(
        "SalaryExpense",
        backref="record",
        order_by="SalaryExpense.id",
        lazy=True,
    )

    def recompute_totals(self, expenses=None):
        """Keep total_expenses == sum(amounts) and grand_total == base + total_expenses."""
        items = self.expenses if expenses is None else expenses
        self.total_expenses = sum(e.amount for e in items)
        self.grand_total = (self.base_salary or 0) + self.total_expenses

    def __repr__(self):
        return f"<SalaryRecord {self.employee_id} {self.year}-{self.month:02d}>"


class SalaryExpense(db.Model):
    __tablename__ = "salary_expenses"

    id = db.Column(db.Integer, primary_key=True)
    salary_record_id = db.Column(
        db.Integer, db.ForeignKey("salary_records.id"), nullable=False, index=True
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    expense_date = db.Column(db.Date)

    def __repr__(self):
        return f"<SalaryExpense {self.category} {self.amount}>"
