from flask import Flask, request, redirect, url_for, session
import logging
import os
import sys
from dotenv import load_dotenv
from extensions import db, login_manager
from helpers import format_inr, format_ddmmyyyy, month_label, safe_next, window_url

# Blueprint Imports
from accounts.routes import accounts_bp
from employees.routes import employees_bp
from salary.routes import salary_bp
from expenses.routes import expenses_bp
from reports.routes import reports_bp

load_dotenv()

THEMES = ("light", "dark")


def configure_logging(level=logging.INFO):
    """Send every logger to stdout with one consistent format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _database_uri():
    uri = os.getenv("DB_URL", "sqlite:///salary_tracker.db")
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    return uri


def create_app(test_config=None):
    app = Flask(__name__)

    # --- CONFIGURATION ---
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-not-secret")
    app.config["WKHTMLTOPDF_PATH"] = os.getenv("WKHTMLTOPDF_PATH")
    app.config["PAGE_SIZE"] = int(os.getenv("PAGE_SIZE", 20))
    app.config["APP_TIMEZONE"] = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    if test_config:
        app.config.update(test_config)

    configure_logging(logging.getLevelName(app.config["LOG_LEVEL"].upper()))

    # Initialize Extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "accounts.login"

    # --- REGISTER ALL BLUEPRINTS ---
    app.register_blueprint(accounts_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(salary_bp)
    app.register_blueprint(expenses_bp)

    app.add_template_filter(format_inr, "inr")
    app.add_template_filter(format_ddmmyyyy, "ddmmyyyy")
    app.add_template_global(month_label)
    app.add_template_global(window_url)

    @app.context_processor
    def inject_theme():
        return {"theme": session.get("theme", "light")}

    # ================= THEME TOGGLE =================
    @app.route("/theme", methods=["POST"])
    def toggle_theme():
        current = session.get("theme", "light")
        session["theme"] = THEMES[1 - THEMES.index(current)] if current in THEMES else "dark"
        return redirect(safe_next(request.form.get("next"), url_for("reports.dashboard")))

    # ================= ROOT REDIRECTS =================
    @app.route("/login")
    def login_redirect():
        return redirect(url_for("accounts.login"))

    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables."""
        from migrate_db import apply_migrations
        apply_migrations(app)

    return app


@login_manager.user_loader
def load_user(user_id):
    from accounts.models import User
    return db.session.get(User, int(user_id))


app = create_app()

if __name__ == "__main__":
    # Ensure debug is off for production stability
    app.run(debug=False)
