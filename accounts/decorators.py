from functools import wraps
from flask import redirect, url_for, flash, request
from flask_login import current_user

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            flash("Please sign in first", "warning")
            return redirect(url_for("accounts.login", next=request.path))
        return f(*args, **kwargs)
    return wrapper
