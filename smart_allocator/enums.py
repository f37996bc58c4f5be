from enum import Enum


class RangeToken(Enum):
    """Coarse lookback window selectable on the dashboard."""
    ONE_DAY = "1d"
    FIVE_DAYS = "5d"
    ONE_MONTH = "1mo"
    THREE_MONTHS = "3mo"
    SIX_MONTHS = "6mo"
    ONE_YEAR = "1y"
    TWO_YEARS = "2y"
    THREE_YEARS = "3y"
    FIVE_YEARS = "5y"


class Interval(Enum):
    """Sampling interval understood by the market-data provider."""
    FIFTEEN_MINUTES = "15m"
    ONE_DAY = "1d"
