"""Settlement primitives shared by spend and cash-out processing

One attempt = price quote -> wei conversion -> chain submission ->
confirmation. Any exception raised here is a failed attempt; the callers
own the retry and refund bookkeeping.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Any, Dict, Optional
from juice.app.services.chain_client import ChainClientRegistry, TransferRequest
from juice.app.services.price_feed import PriceFeed


MAX_RETRIES = 5
WEI_PER_TOKEN = Decimal(10) ** 18


@dataclass(frozen=True)
class SettledTransfer:
    tx_hash: str
    crypto_amount: str
    rate: Decimal
    tokens_received: Optional[str] = None


def juice_to_wei(juice_amount: Decimal, rate: Decimal) -> int:
    """
    Convert Juice (USD) to wei at rate (USD per native token), rounding down

    Args:
        juice_amount: Juice to convert
        rate: USD per token, must be > 0

    Returns:
        floor(juice_amount / rate * 10^18)
    """
    if rate <= 0:
        raise ValueError(f"Conversion rate must be positive, got {rate}")

    with localcontext() as ctx:
        ctx.prec = 60
        wei = (Decimal(juice_amount) * WEI_PER_TOKEN) / Decimal(rate)
        return int(wei.to_integral_value(rounding=ROUND_DOWN))


def permanent_failure_message(attempts: int, error: str) -> str:
    return f"Failed after {attempts} attempts: {error}"


async def execute_transfer(
    price_feed: PriceFeed,
    chain_registry: ChainClientRegistry,
    chain_id: int,
    to: str,
    juice_amount: Decimal,
    metadata: Dict[str, Any],
) -> SettledTransfer:
    """
    Run one settlement attempt end to end

    Raises:
        PriceFeedError: quote stale or out of range
        UnsupportedChainError: no client for chain_id
        ChainClientError: submission or confirmation failed
        ValueError: amount converts to zero wei
    """
    quote = await price_feed.get_conversion_rate()
    amount_wei = juice_to_wei(juice_amount, quote.rate)
    if amount_wei <= 0:
        raise ValueError(f"Amount {juice_amount} converts to zero wei at rate {quote.rate}")

    client = chain_registry.get(chain_id)
    tx_hash = await client.submit_transfer(
        TransferRequest(to=to, amount_wei=amount_wei, metadata=metadata)
    )
    receipt = await client.wait_for_confirmation(tx_hash)

    return SettledTransfer(
        tx_hash=receipt.tx_hash or tx_hash,
        crypto_amount=str(amount_wei),
        rate=quote.rate,
        tokens_received=receipt.tokens_received,
    )
