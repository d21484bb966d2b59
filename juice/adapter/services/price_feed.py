"""Chainlink Price Feed

Reads ETH/USD from a Chainlink aggregator with a raw eth_call of
latestRoundData() over httpx.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
import httpx
from juice.app.services.price_feed import PriceFeed, PriceFeedError, PriceQuote, validate_quote
from .json_rpc import JsonRpcError, json_rpc_call

logger = logging.getLogger(__name__)

# keccak256("latestRoundData()")[:4]
LATEST_ROUND_DATA_SELECTOR = "0xfeaf968c"
WORD_HEX_LENGTH = 64


def decode_latest_round_data(result: str, decimals: int) -> PriceQuote:
    """
    Decode (roundId, answer, startedAt, updatedAt, answeredInRound)

    Raises:
        PriceFeedError: response too short to hold five words
    """
    data = result[2:] if result and result.startswith("0x") else (result or "")
    if len(data) < WORD_HEX_LENGTH * 5:
        raise PriceFeedError(f"Malformed latestRoundData response: {result!r}")

    words = [data[i * WORD_HEX_LENGTH:(i + 1) * WORD_HEX_LENGTH] for i in range(5)]

    answer = int(words[1], 16)
    if answer >= 2 ** 255:
        answer -= 2 ** 256  # int256
    updated_at = int(words[3], 16)

    return PriceQuote(
        rate=Decimal(answer) / (Decimal(10) ** decimals),
        as_of=datetime.utcfromtimestamp(updated_at),
    )


class ChainlinkPriceFeed(PriceFeed):
    def __init__(
        self,
        rpc_url: str,
        feed_address: str,
        decimals: int = 8,
        max_age_seconds: int = 3600,
        min_rate: Decimal = Decimal("100"),
        max_rate: Decimal = Decimal("100000"),
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self.feed_address = feed_address
        self.decimals = decimals
        self.max_age_seconds = max_age_seconds
        self.min_rate = Decimal(str(min_rate))
        self.max_rate = Decimal(str(max_rate))
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def get_conversion_rate(self) -> PriceQuote:
        try:
            result = await json_rpc_call(
                self._client,
                self.rpc_url,
                "eth_call",
                [{"to": self.feed_address, "data": LATEST_ROUND_DATA_SELECTOR}, "latest"],
            )
        except (httpx.HTTPError, JsonRpcError) as e:
            raise PriceFeedError(f"Price feed request failed: {e}") from e

        quote = decode_latest_round_data(result, self.decimals)
        validate_quote(
            quote,
            datetime.utcnow(),
            self.max_age_seconds,
            self.min_rate,
            self.max_rate,
        )

        logger.debug(f"ETH/USD {quote.rate} as of {quote.as_of.isoformat()}")
        return quote

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
