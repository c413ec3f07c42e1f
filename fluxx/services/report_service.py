"""Pending sales-order report: filter, sort, paginate.

Pure functions over an already-fetched list of row dicts (see
PendingSalesOrder.to_dict). Nothing here touches the database, so the
pipeline is recomputed on every request:

    filter_by_date_range -> sort_by_amount -> paginate

Dates and amounts arrive as text from upstream exports, so both are parsed
leniently: an unparseable date never excludes a row, and a non-numeric
amount sorts as 0 without changing what is displayed.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, time, timezone

PAGE_SIZES = [10, 25, 50, 100]
DEFAULT_PAGE_SIZE = 10

_DATE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
]


@dataclass
class ReportPage:
    rows: list
    page: int
    per_page: int
    total: int
    total_pages: int
    start_date: str = ""
    end_date: str = ""
    page_sizes: list = field(default_factory=lambda: list(PAGE_SIZES))

    @property
    def has_prev(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.total_pages

    def to_dict(self):
        return {
            "data": self.rows,
            "page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def parse_date(value):
    """Parse a date/datetime string to a naive UTC datetime, or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _is_date_only(value):
    return bool(value) and len(str(value).strip()) == 10


def coerce_amount(value):
    """Numeric value of an amount for ordering; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def filter_by_date_range(rows, start_date=None, end_date=None):
    """Keep rows whose date_created falls inside [start, end].

    Either bound may be empty or unparseable, which leaves that side open.
    A bare YYYY-MM-DD end bound covers the whole day. Rows whose own date
    cannot be parsed are always kept.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if end is not None and _is_date_only(end_date):
        end = datetime.combine(end.date(), time.max)

    kept = []
    for row in rows:
        row_date = parse_date(row.get("date_created"))
        if row_date is None:
            kept.append(row)
            continue
        if start is not None and row_date < start:
            continue
        if end is not None and row_date > end:
            continue
        kept.append(row)
    return kept


def sort_by_amount(rows):
    """Highest amount first. sorted() is stable, so ties keep their order."""
    return sorted(rows, key=lambda row: coerce_amount(row.get("soamount")), reverse=True)


def normalize_page_size(per_page):
    try:
        per_page = int(per_page)
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
    return per_page if per_page in PAGE_SIZES else DEFAULT_PAGE_SIZE


def clamp_page(page, total_pages):
    """Clamp a 1-based page number into [1, max(total_pages, 1)]."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    return max(1, min(page, max(total_pages, 1)))


def paginate(rows, page=1, per_page=DEFAULT_PAGE_SIZE):
    """Slice one page out of rows. Returns (page_rows, page, total_pages)."""
    per_page = normalize_page_size(per_page)
    total_pages = math.ceil(len(rows) / per_page)
    page = clamp_page(page, total_pages)
    offset = (page - 1) * per_page
    return rows[offset:offset + per_page], page, total_pages


def build_report(rows, start_date="", end_date="", page=1, per_page=DEFAULT_PAGE_SIZE):
    """Run the full filter -> sort -> paginate pipeline."""
    per_page = normalize_page_size(per_page)
    filtered = filter_by_date_range(rows, start_date, end_date)
    ordered = sort_by_amount(filtered)
    page_rows, page, total_pages = paginate(ordered, page, per_page)
    return ReportPage(
        rows=page_rows,
        page=page,
        per_page=per_page,
        total=len(ordered),
        total_pages=total_pages,
        start_date=start_date or "",
        end_date=end_date or "",
    )


# ──────────────────────────────────────────────
# Display helpers (registered as Jinja filters)
# ──────────────────────────────────────────────

def format_currency(value):
    """Philippine peso, two decimals: ₱1,234.50."""
    amount = coerce_amount(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}₱{abs(amount):,.2f}"


def format_date(value):
    """Jan 5, 2024 3:07 PM, in UTC. Unparseable input is shown as-is."""
    parsed = parse_date(value)
    if parsed is None:
        return value or "-"
    hour = parsed.hour % 12 or 12
    ampm = "PM" if parsed.hour >= 12 else "AM"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year} {hour}:{parsed.minute:02d} {ampm}"
