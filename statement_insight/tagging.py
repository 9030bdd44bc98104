"""Rule tables and the deterministic tag classifier.

Classification is two-staged. The extraction provider gets a broad keyword
rule list (:data:`PROVIDER_RULES`) inside its instructions and suggests a tag
per row. That suggestion is then overridden here by a strict, ordered rule
table (:data:`OVERRIDE_RULES`) for the categories whose vendor names overlap
the most (food, amenities, grocery) plus rent, cleaner and taxi.

Precedence of :func:`classify` (first match wins):

1. food
2. amenities (two-letter provider codes only as standalone tokens)
3. grocery
4. rent
5. cleaner (``justlife``)
6. taxi
7. the recurring-cleaner singleton rule, applied by the reducer because it
   needs state across rows (see :func:`is_recurring_cleaner_charge`)
8. the provider's suggested tag
9. the detail itself
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from .keywords import matches, matches_any
from .models import RawTransactionRecord, TransactionType


class TagRule(NamedTuple):
    tag: str
    keywords: tuple[str, ...]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

DEFINED_TAGS: tuple[str, ...] = (
    "therapy",
    "grocery",
    "taxi",
    "gas",
    "laundry",
    "amenities",
    "subscription",
    "massage",
    "temu",
    "food",
    "amazon",
    "cleaner",
    "transfers",
    "vet",
    "hospital",
    "rent",
)

HOME_TAGS: tuple[str, ...] = ("laundry", "amenities", "grocery", "cleaner")

HOME_TOTAL_LABEL = "Home & Living Total"
UNTAGGED = "untagged"

# ---------------------------------------------------------------------------
# Code-level overrides
# ---------------------------------------------------------------------------

FOOD_KEYWORDS: tuple[str, ...] = (
    "TALABAT",
    "DELIVEROO",
    "QCLUB",
    "VIVA",
    "CATERING",
    "CATERI",
    "COFFEE",
    "COFFE",
    "TEA",
    "SWEETS",
    "CHOCOLATE",
    "EATER",
    "AFRICAN AND EASTERN",
    "DELI",
    "FNB",
    "REST",
    "RESTO",
    "RESTAURAN",
    "RESTAURANT",
)

AMENITIES_KEYWORDS: tuple[str, ...] = (
    "DEWA",
    "DUBAI ELECTRICITY",
    "WATER",
    "AUTHORITY",
    "EMPOWER",
    "DISTRICT COOLING",
    "ETISALAT",
    "E&",
    "DU",
    "GAS",
    "DUBAI GAS",
    "EMIRATES GAS",
    "SMART DUBAI",
    "SMARTDXB",
    "DUBAI MUNICIPALITY",
    "HOUSING FEE",
)

GROCERY_KEYWORDS: tuple[str, ...] = (
    "FRESHLANIDA",
    "CARREFOUR",
    "SPINNEYS",
    "SPINNEY",
    "WAITROSE",
    "UNION COOP",
    "LULU",
    "GRANDIOSE",
    "NESTO",
    "CHOITHRAM",
    "CHOITHRAMS",
    "AL MAYA",
    "WEST ZONE",
    "DAY TO DAY",
    "NOON MINUTES",
    "INSTASHOP",
    "QCLUB",
    "VIVA",
    "MINIMART",
    "HYPERMARKET",
    "HYPERMART",
    "SUPERMARKET",
    "SUPERMA",
    "MARKET",
    "CATERING",
    "GROCERY",
)

OVERRIDE_RULES: tuple[TagRule, ...] = (
    TagRule("food", FOOD_KEYWORDS),
    TagRule("amenities", AMENITIES_KEYWORDS),
    TagRule("grocery", GROCERY_KEYWORDS),
    TagRule("rent", ("RENT",)),
    TagRule("cleaner", ("JUSTLIFE",)),
    TagRule("taxi", ("TAXI", "CAREEM")),
)

# Bank code of the recurring cleaner payment and its fixed monthly amount.
RECURRING_CLEANER_CODE = "UAESWCH"
RECURRING_CLEANER_AMOUNT = 1000.0
RECURRING_CLEANER_TAG = "cleaner"

# ---------------------------------------------------------------------------
# Provider-side rules (rendered into the extraction instructions)
# ---------------------------------------------------------------------------

PROVIDER_RULES: tuple[TagRule, ...] = (
    TagRule("subscription", ("subscription", "netflix", "spotify", "dropout", "disney", "OSN")),
    TagRule("food", tuple(kw.lower() for kw in FOOD_KEYWORDS)),
    TagRule("amazon", ("amazon",)),
    TagRule("therapy", ("novomed", "NMED")),
    TagRule("grocery", tuple(kw.lower() for kw in GROCERY_KEYWORDS)),
    TagRule("taxi", ("taxi", "CAREEM")),
    TagRule("gas", ("ENOC", "ADNOC", "EMARAT")),
    TagRule("laundry", ("Laundry",)),
    TagRule("amenities", tuple(kw.lower() for kw in AMENITIES_KEYWORDS)),
    TagRule("massage", ("MARRIOTT",)),
    TagRule("temu", ("temu",)),
    TagRule("cleaner", ("justlife",)),
    TagRule("rent", ("rent",)),
    TagRule("vet", ("PETS",)),
    TagRule("hospital", ("medical", "hospital")),
)

# A two-letter country prefix immediately followed by digits (IBAN/transfer id).
TRANSFER_ID_PREFIX = "AE"
TRANSFER_TAG = "transfers"

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def match_rule(detail: str, rules: Sequence[TagRule] = OVERRIDE_RULES) -> str | None:
    """Return the tag of the first rule with a whole-word keyword hit."""

    for rule in rules:
        if matches_any(detail, rule.keywords):
            return rule.tag
    return None


def fallback_tag(detail: str, provider_tag: str | None) -> str:
    """The provider's suggestion when it is usable, else the detail itself."""

    if provider_tag and provider_tag.strip():
        return provider_tag
    return detail


def classify(detail: str, provider_tag: str | None) -> str:
    """Return the final tag for a transaction detail.

    Override rules win; otherwise the provider's suggestion is kept; when the
    provider gave nothing usable, the detail itself becomes the tag.
    """

    tag = match_rule(detail)
    if tag is not None:
        return tag
    return fallback_tag(detail, provider_tag)


def is_recurring_cleaner_charge(record: RawTransactionRecord) -> bool:
    """True for a withdrawal of exactly the fixed cleaner amount under its bank code."""

    return (
        record.type == TransactionType.WITHDRAWAL
        and record.amount == RECURRING_CLEANER_AMOUNT
        and matches(record.detail, RECURRING_CLEANER_CODE)
    )


def is_defined_tag(tag: str) -> bool:
    return tag.lower() in DEFINED_TAGS


__all__ = [
    "TagRule",
    "DEFINED_TAGS",
    "HOME_TAGS",
    "HOME_TOTAL_LABEL",
    "UNTAGGED",
    "OVERRIDE_RULES",
    "PROVIDER_RULES",
    "RECURRING_CLEANER_CODE",
    "RECURRING_CLEANER_AMOUNT",
    "match_rule",
    "fallback_tag",
    "classify",
    "is_recurring_cleaner_charge",
    "is_defined_tag",
]
