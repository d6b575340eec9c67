"""CSV downloads for the admin panel."""
from datetime import date
from typing import Any, Callable, Iterable

from fastapi.responses import Response

# (header, value getter) pairs
Column = tuple[str, Callable[[Any], Any]]

BOM = "\ufeff"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    s = str(value)
    if any(ch in s for ch in (",", '"', "\n", "\r")):
        return '"' + s.replace('"', '""') + '"'
    return s


def generate_csv(rows: Iterable[Any], columns: list[Column]) -> str:
    lines = [",".join(_cell(header) for header, _ in columns)]
    for row in rows:
        lines.append(",".join(_cell(getter(row)) for _, getter in columns))
    return "\n".join(lines)


def csv_filename(name: str, today: date | None = None) -> str:
    return f"{name}_{(today or date.today()).isoformat()}.csv"


def csv_response(content: str, name: str) -> Response:
    """UTF-8 with BOM so spreadsheet apps pick the right encoding."""
    return Response(
        content=(BOM + content).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(name)}"'},
    )


def _dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def _expiry(m) -> str:
    if m.expires_at:
        return _dt(m.expires_at)
    return "Never" if m.status == "approved" else ""


ORDER_COLUMNS: list[Column] = [
    ("Order ID", lambda r: r["order"].id),
    ("Date", lambda r: _dt(r["order"].created_at)),
    ("Customer", lambda r: r["customer_email"]),
    ("Product", lambda r: r["product_name"]),
    ("Variant", lambda r: r["variant_name"]),
    ("Amount", lambda r: r["order"].total_amount),
    ("Status", lambda r: r["order"].status),
    ("Coupon", lambda r: r["order"].coupon_code_used),
    ("Cancellation Reason", lambda r: r["order"].cancellation_reason),
]

PRODUCT_COLUMNS: list[Column] = [
    ("ID", lambda p: p.id),
    ("Name", lambda p: p.name),
    ("Category", lambda p: p.category),
    ("Duration", lambda p: p.duration),
    ("Original Price", lambda p: p.original_price),
    ("Sale Price", lambda p: p.sale_price),
    ("Cost Price", lambda p: p.cost_price),
    ("Delivery Type", lambda p: p.delivery_type),
    ("Active", lambda p: "Yes" if p.is_active else "No"),
    ("Manual Stock", lambda p: p.manual_stock_count if p.use_manual_stock else ""),
    ("Created", lambda p: _dt(p.created_at)),
]

CUSTOMER_COLUMNS: list[Column] = [
    ("ID", lambda r: r["profile"].id),
    ("Email", lambda r: r["profile"].email),
    ("Name", lambda r: r["profile"].full_name),
    ("Orders", lambda r: r["order_count"]),
    ("Total Spent", lambda r: r["total_spent"]),
    ("Active", lambda r: "Yes" if r["profile"].is_active else "No"),
    ("Joined", lambda r: _dt(r["profile"].created_at)),
]

MEMBERSHIP_COLUMNS: list[Column] = [
    ("ID", lambda r: r["membership"].id),
    ("Customer", lambda r: r["customer_email"]),
    ("Plan", lambda r: r["membership"].plan_type),
    ("Price", lambda r: r["membership"].price_paid),
    ("Payment Method", lambda r: r["membership"].payment_method),
    ("Transaction ID", lambda r: r["membership"].transaction_id),
    ("Status", lambda r: r["membership"].status),
    ("Requested", lambda r: _dt(r["membership"].requested_at)),
    ("Expires", lambda r: _expiry(r["membership"])),
]
