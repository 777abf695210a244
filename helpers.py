import math
import re
from datetime import datetime

import pytz
from flask import current_app, has_app_context, request, url_for

DEFAULT_TIMEZONE = "Asia/Kolkata"
MAX_WINDOW = 100

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """Raised when a submitted form field fails a presence/type/range check."""


# ================= TIME =================

def app_timezone():
    name = DEFAULT_TIMEZONE
    if has_app_context():
        name = current_app.config.get("APP_TIMEZONE", DEFAULT_TIMEZONE)
    return pytz.timezone(name)


def now():
    return datetime.now(app_timezone())


def today():
    return now().date()


# ================= FORM PARSING =================

def parse_amount(raw, label="Amount"):
    """Parse a required non-negative number from a form string."""
    raw = (raw or "").strip()
    if not raw:
        raise ValidationError(f"{label} is required")
    return _non_negative(raw)


def parse_optional_amount(raw):
    """Blank means no value (None); anything else must be a non-negative number."""
    raw = (raw or "").strip()
    if not raw:
        return None
    return _non_negative(raw)


def _non_negative(raw):
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError("Must be a valid non-negative number")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValidationError("Must be a valid non-negative number")
    return value


def parse_date(raw, label="Date"):
    raw = (raw or "").strip()
    if not raw:
        raise ValidationError(f"{label} is required")
    if not _ISO_DATE.match(raw):
        raise ValidationError("Invalid date")
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date")


def parse_optional_date(raw):
    raw = (raw or "").strip()
    if not raw:
        return None
    return parse_date(raw)


def parse_required_text(raw, label):
    value = (raw or "").strip()
    if not value:
        raise ValidationError(f"{label} is required")
    return value


def is_valid_email(value):
    return bool(_EMAIL.match(value or ""))


def parse_window(args, default_limit):
    """Offset/limit window from query args, clamped to sane bounds."""
    offset = max(args.get("offset", 0, type=int), 0)
    limit = args.get("limit", default_limit, type=int)
    limit = min(max(limit, 1), MAX_WINDOW)
    return offset, limit


# ================= DISPLAY =================

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def month_label(month, year):
    if 1 <= month <= 12:
        return f"{MONTH_NAMES[month - 1]} {year}"
    return f"{month} {year}"


def format_inr(value):
    """Format a number with Indian digit grouping, e.g. 1234567.5 -> '12,34,567.5'."""
    value = value or 0
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):.2f}".partition(".")
    frac = frac.rstrip("0")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return sign + whole + ("." + frac if frac else "")


def format_ddmmyyyy(value):
    if not value:
        return ""
    return value.strftime("%d/%m/%Y")


def safe_next(target, fallback):
    """Only follow same-site relative redirect targets."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return fallback


def window_url(offset, limit):
    """URL of the current page with a different offset/limit window."""
    args = dict(request.view_args or {})
    args.update(request.args.to_dict())
    args.update(offset=offset, limit=limit)
    return url_for(request.endpoint, **args)
