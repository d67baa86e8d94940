"""
Query routing and constraint extraction.

Routes:
- semantic: lookups and explanations, answered from retrieved passages
- structured: sums, totals and averages, answered by an aggregation path

Constraints pulled from the query (year, month, category, merchant,
currency) become the metadata filter for hybrid search.
"""

import calendar
import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from shared.schemas import RouteType, SearchFilter

MONTHS: Dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
    "январ": 1, "феврал": 2, "март": 3, "апрел": 4, "май": 5, "июн": 6,
    "июл": 7, "август": 8, "сентябр": 9, "октябр": 10, "ноябр": 11, "декабр": 12,
}


def _month_pattern(name: str) -> "re.Pattern":
    """English names match whole words, Russian stems match inflected forms."""
    if name == "may":
        # "may I", "may have": the modal verb, not the month
        return re.compile(r"\bmay\b(?!\s+(?:i|we|you|he|she|they|it|be|have|not)\b)")
    if name == "май":
        # май / мая / мае as whole words, so "маяк" stays out
        return re.compile(r"\bма[йяе]\b")
    if name.isascii():
        return re.compile(r"\b" + name + r"\b")
    return re.compile(r"\b" + name)


_MONTH_PATTERNS = [(_month_pattern(name), num) for name, num in MONTHS.items()]

# Word-prefix hint -> canonical category (as written by the record generator)
CATEGORY_HINTS: Dict[str, str] = {
    "groceries": "groceries",
    "продукт": "groceries",
    "кафе": "food_out",
    "ресторан": "food_out",
    "restaurant": "food_out",
    "cafe": "food_out",
    "food": "food_out",
    "housing": "housing",
    "rent": "housing",
    "аренд": "housing",
    "transport": "transport",
    "fuel": "transport",
    "diesel": "transport",
    "entertainment": "entertainment",
    "subscription": "subscription",
    "подписк": "subscription",
    "связь": "telecom",
    "телеком": "telecom",
}

DEFAULT_MERCHANTS = ("spotify", "netflix", "uber", "bolt", "kaspi", "yandex")
CURRENCIES = ("KZT", "USD", "EUR", "RUB")

AGGREGATION_HINTS = (
    "how much", "total", "sum", "average", "avg", "net",
    "сколько", "итого", "итог", "сумма", "в среднем",
)

_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_AGGREGATION_RE = re.compile(r"\b(" + "|".join(re.escape(h) for h in AGGREGATION_HINTS) + r")\b")
_NUMBER_RE = re.compile(r"\b(\d+|percent|процент\w*)\b")
_CURRENCY_RE = re.compile(r"\b(" + "|".join(CURRENCIES) + r")\b")


@dataclass
class Constraints:
    """Structured constraints extracted from a query."""

    year: Optional[int] = None
    month: Optional[int] = None
    start_date: Optional[str] = None  # ISO yyyy-mm-dd
    end_date: Optional[str] = None
    category: Optional[str] = None
    merchant: Optional[str] = None
    currency: Optional[str] = None

    def to_filter(self) -> SearchFilter:
        return SearchFilter(
            year=self.year,
            month=self.month,
            category=self.category,
            merchant=self.merchant,
            currency=self.currency,
        )


@dataclass
class RouteDecision:
    route: RouteType
    constraints: Constraints


def _month_range(year: int, month: int):
    last_day = calendar.monthrange(year, month)[1]
    return f"{year}-{month:02d}-01", f"{year}-{month:02d}-{last_day:02d}"


class QueryRouter:
    """
    Classify queries and extract metadata constraints.

    Usage:
        router = QueryRouter()
        decision = router.route("How much did I spend on groceries in March 2024?")
        decision.route                   # RouteType.STRUCTURED
        decision.constraints.to_filter()  # SearchFilter(year=2024, month=3, category="groceries")
    """

    def __init__(self, merchants: Sequence[str] = DEFAULT_MERCHANTS):
        self._merchant_re = re.compile(
            r"\b(" + "|".join(re.escape(m.lower()) for m in merchants) + r")\b"
        )

    def extract_constraints(self, query: str) -> Constraints:
        s = query.lower()
        c = Constraints()

        year = _YEAR_RE.search(s)
        if year:
            c.year = int(year.group(1))

        for pattern, num in _MONTH_PATTERNS:
            if pattern.search(s):
                c.month = num
                break

        if c.year and c.month:
            c.start_date, c.end_date = _month_range(c.year, c.month)

        for hint, category in CATEGORY_HINTS.items():
            if re.search(r"\b" + hint, s):
                c.category = category
                break

        merchant = self._merchant_re.search(s)
        if merchant:
            c.merchant = merchant.group(1)

        currency = _CURRENCY_RE.search(query.upper())
        if currency:
            c.currency = currency.group(1)

        return c

    def route(self, query: str) -> RouteDecision:
        s = query.lower()
        constraints = self.extract_constraints(query)

        if _AGGREGATION_RE.search(s) or _NUMBER_RE.search(s):
            return RouteDecision(RouteType.STRUCTURED, constraints)
        return RouteDecision(RouteType.SEMANTIC, constraints)


_router = QueryRouter()


def extract_constraints(query: str) -> Constraints:
    """Convenience function using the default merchant list."""
    return _router.extract_constraints(query)


def route_query(query: str) -> RouteDecision:
    """Convenience function using the default merchant list."""
    return _router.route(query)
