"""Price Feed Interface

Live conversion rate (USD per native token) used to turn Juice into wei.
Every quote is checked for staleness and plausibility before use.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class PriceFeedError(Exception):
    """Base class for unusable price quotes"""


class StaleQuoteError(PriceFeedError):
    """Quote is older than the allowed maximum age"""


class QuoteOutOfRangeError(PriceFeedError):
    """Quote falls outside the plausible rate range"""


class PriceQuote(BaseModel):
    rate: Decimal
    as_of: datetime


def validate_quote(
    quote: PriceQuote,
    now: datetime,
    max_age_seconds: int,
    min_rate: Decimal,
    max_rate: Decimal,
) -> PriceQuote:
    """
    Reject stale or implausible quotes

    Raises:
        StaleQuoteError: quote older than max_age_seconds
        QuoteOutOfRangeError: rate outside [min_rate, max_rate]
    """
    age = int((now - quote.as_of).total_seconds())
    if age > max_age_seconds:
        raise StaleQuoteError(
            f"Price data is stale ({age}s old, max {max_age_seconds}s)"
        )

    if quote.rate < min_rate or quote.rate > max_rate:
        raise QuoteOutOfRangeError(
            f"Price out of expected range: ${quote.rate} (allowed {min_rate}-{max_rate})"
        )

    return quote


class PriceFeed(ABC):
    """Source of validated conversion rates"""

    @abstractmethod
    async def get_conversion_rate(self) -> PriceQuote:
        """
        Fetch the current rate

        Returns:
            PriceQuote that passed validate_quote

        Raises:
            PriceFeedError: stale or out-of-range quote
        """
        pass

    async def aclose(self) -> None:
        """Release network resources"""
        pass
