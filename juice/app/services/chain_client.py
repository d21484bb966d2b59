"""Chain Client Interface

Defines the contract for submitting value transfers on-chain and waiting
for their confirmation, plus the registry that maps chain IDs to clients.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ChainClientError(Exception):
    """Base class for on-chain submission and confirmation failures"""


class UnsupportedChainError(ChainClientError):
    """No client is registered for the requested chain"""


class TransactionRevertedError(ChainClientError):
    """The transaction was mined but reverted"""


class ConfirmationTimeoutError(ChainClientError):
    """The transaction was not confirmed in time"""


class TransferRequest(BaseModel):
    """Native-token transfer to submit on a chain"""

    to: str = Field(..., description="Recipient address")
    amount_wei: int = Field(..., ge=0, description="Value in wei")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Settlement context (kind, record id, project id, memo)"
    )


class TransferReceipt(BaseModel):
    """Confirmed transfer"""

    tx_hash: str
    block_number: Optional[int] = None
    tokens_received: Optional[str] = None


class ChainClient(ABC):
    """
    Client for one chain

    Implementations raise ChainClientError (or any exception) on failure;
    settlement treats every exception as a failed attempt.
    """

    chain_id: int

    @abstractmethod
    async def submit_transfer(self, request: TransferRequest) -> str:
        """
        Submit a transfer

        Args:
            request: Recipient, amount in wei and settlement metadata

        Returns:
            Transaction hash
        """
        pass

    @abstractmethod
    async def wait_for_confirmation(self, tx_hash: str) -> TransferReceipt:
        """
        Block until the transaction is confirmed

        Raises:
            TransactionRevertedError: Transaction reverted
            ConfirmationTimeoutError: Not confirmed within the client's timeout
        """
        pass

    async def aclose(self) -> None:
        """Release network resources"""
        pass


class ChainClientRegistry:
    """
    Explicit chain ID -> client mapping

    Built once at startup and handed to the settlement use cases. An empty
    registry means settlement credentials are not configured.
    """

    def __init__(self, clients: Optional[Dict[int, ChainClient]] = None):
        self._clients: Dict[int, ChainClient] = dict(clients or {})

    def register(self, chain_id: int, client: ChainClient) -> None:
        self._clients[chain_id] = client

    def get(self, chain_id: int) -> ChainClient:
        client = self._clients.get(chain_id)
        if client is None:
            raise UnsupportedChainError(f"Unsupported chain: {chain_id}")
        return client

    def supported_chain_ids(self) -> List[int]:
        return sorted(self._clients)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
