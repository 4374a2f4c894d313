"""
SQL helpers for query memory: join extraction and category detection.
"""
import re

_JOIN_PATTERN = re.compile(r"ON\s+`?(\w+)`?\.\w+\s*=\s*`?(\w+)`?\.\w+", re.I)

CATEGORY_TABLE_MAP: dict[str, str] = {
    "sales_funnels": "funnel",
    "campaigns": "funnel",
    "invoices": "billing",
    "receipts": "billing",
    "receipt_allocations": "billing",
    "payment_plans": "billing",
    "fees": "billing",
    "cases": "cases",
    "services": "cases",
    "service_types": "cases",
    "contact_requests": "leads",
    "appointments": "leads",
    "persons": "clients",
    "phones": "clients",
    "users": "staff",
    "courts": "courts",
    "judges": "courts",
    "court_dates": "courts",
}

# More specific categories win over generic ones
CATEGORY_PRIORITY = ["funnel", "billing", "courts", "staff", "leads", "cases", "clients", "general"]

CATEGORY_LABELS: dict[str, str] = {
    "funnel": "Sales Funnel",
    "billing": "Billing & Invoices",
    "cases": "Cases & Services",
    "leads": "Leads & Contact Requests",
    "clients": "Clients & Persons",
    "staff": "Staff & Attorneys",
    "courts": "Courts & Hearings",
    "general": "General",
}


def extract_joins(sql: str) -> list[str]:
    """
    Extract join patterns from `ON t1.col = t2.col` conditions.

    Pairs are ordered alphabetically so "a→b" and "b→a" collapse.
    """
    joins: list[str] = []
    for match in _JOIN_PATTERN.finditer(sql):
        t1, t2 = match.group(1).lower(), match.group(2).lower()
        pair = f"{t1}→{t2}" if t1 < t2 else f"{t2}→{t1}"
        if pair not in joins:
            joins.append(pair)
    return joins


def detect_category(tables: list[str]) -> str:
    """Pick the highest-priority category with at least one table hit."""
    hits = {CATEGORY_TABLE_MAP[t] for t in tables if t in CATEGORY_TABLE_MAP}
    for category in CATEGORY_PRIORITY:
        if category in hits:
            return category
    return "general"
