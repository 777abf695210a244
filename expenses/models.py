from extensions import db
from datetime import datetime


class OtherExpense(db.Model):
    __tablename__ = "other_expenses"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category = db.Column(db.String(120), nullable=False)  # Rent, Fuel, Internet...
    amount = db.Column(db.Float, nullable=False, default=0.0)
    expense_date = db.Column(db.Date)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime)

    def __repr__(self):
        return f"<OtherExpense {self.category} {self.amount}>"
