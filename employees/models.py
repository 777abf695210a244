from extensions import db
from datetime import datetime


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(120))              # optional label, e.g. Driver
    base_salary = db.Column(db.Float)             # nullable monthly base
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime)

    def matches_name(self, typed):
        """Delete confirmation: the typed name must equal ours, ignoring case and padding."""
        return (typed or "").strip().lower() == self.name.strip().lower()

    def __repr__(self):
        return f"<Employee {self.id} {self.name}>"
