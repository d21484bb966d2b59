from .unit_of_work import UnitOfWork
from .chain_client import (
    ChainClient,
    ChainClientError,
    ChainClientRegistry,
    ConfirmationTimeoutError,
    TransactionRevertedError,
    TransferReceipt,
    TransferRequest,
    UnsupportedChainError,
)
from .price_feed import (
    PriceFeed,
    PriceFeedError,
    PriceQuote,
    QuoteOutOfRangeError,
    StaleQuoteError,
    validate_quote,
)

__all__ = [
    "UnitOfWork",
    "ChainClient",
    "ChainClientError",
    "ChainClientRegistry",
    "ConfirmationTimeoutError",
    "TransactionRevertedError",
    "TransferReceipt",
    "TransferRequest",
    "UnsupportedChainError",
    "PriceFeed",
    "PriceFeedError",
    "PriceQuote",
    "QuoteOutOfRangeError",
    "StaleQuoteError",
    "validate_quote",
]
