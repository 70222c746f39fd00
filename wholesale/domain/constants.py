# wholesale/domain/constants.py

"""
Application-wide fixed values: numbering formats, stock thresholds and
report defaults.
"""

from decimal import Decimal
from typing import Final

# ORD-<year><id padded to 4>, e.g. ORD-20250042
ORDER_NUMBER_FORMAT: Final[str] = "ORD-{year}{seq:04d}"

DEFAULT_PAYMENT_METHOD: Final[str] = "Cash"

MONEY_PLACES: Final[Decimal] = Decimal("0.01")

# Stock level buckets (inventory report, low-stock listing)
LOW_STOCK_THRESHOLD: Final[int] = 10
OVERSTOCK_THRESHOLD: Final[int] = 100
# /products/lowstock lists strictly below this
LOW_STOCK_LIST_BELOW: Final[int] = 10

# Report windows (days)
DEFAULT_REPORT_DAYS: Final[int] = 30
DEFAULT_PARTY_REPORT_DAYS: Final[int] = 90
FORECAST_HISTORY_DAYS: Final[int] = 90
DEFAULT_FORECAST_DAYS: Final[int] = 30
FORECAST_SAFETY_FACTOR: Final[Decimal] = Decimal("1.2")
NO_STOCKOUT_DAYS: Final[int] = 999
AT_RISK_CUSTOMER_DAYS: Final[int] = 60
TOP_N: Final[int] = 10
AT_RISK_PRODUCTS_N: Final[int] = 20
