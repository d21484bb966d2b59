"""Relayer Chain Client

Submits transfers to a signing relayer service and confirms them by
polling the chain's JSON-RPC endpoint. Private keys never live in this
process.
"""

import asyncio
import logging
import time
from typing import Dict, Optional
import httpx
from juice.app.services.chain_client import (
    ChainClient,
    ChainClientError,
    ChainClientRegistry,
    ConfirmationTimeoutError,
    TransactionRevertedError,
    TransferReceipt,
    TransferRequest,
)
from .json_rpc import JsonRpcError, json_rpc_call

logger = logging.getLogger(__name__)


class RelayerChainClient(ChainClient):
    """
    ChainClient backed by an HTTP relayer

    Submission: POST {relayer_url}/chains/{chain_id}/transfers with a bearer
    API key; the relayer signs, broadcasts and answers with the tx hash.
    Confirmation: eth_getTransactionReceipt until mined, reverted or timed out.
    """

    def __init__(
        self,
        chain_id: int,
        relayer_url: str,
        api_key: str,
        rpc_url: str,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 2.0,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.chain_id = chain_id
        self.relayer_url = relayer_url.rstrip("/")
        self.api_key = api_key
        self.rpc_url = rpc_url
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def submit_transfer(self, request: TransferRequest) -> str:
        url = f"{self.relayer_url}/chains/{self.chain_id}/transfers"
        payload = {
            "to": request.to,
            "value": str(request.amount_wei),
            "metadata": request.metadata,
        }

        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ChainClientError(f"Relayer rejected transfer on chain {self.chain_id}: {e}") from e

        tx_hash = response.json().get("tx_hash")
        if not tx_hash:
            raise ChainClientError(f"Relayer returned no tx_hash on chain {self.chain_id}")

        logger.info(f"Submitted transfer of {request.amount_wei} wei to {request.to}: {tx_hash}")
        return tx_hash

    async def wait_for_confirmation(self, tx_hash: str) -> TransferReceipt:
        deadline = time.monotonic() + self.confirmation_timeout

        while True:
            try:
                receipt = await json_rpc_call(
                    self._client, self.rpc_url, "eth_getTransactionReceipt", [tx_hash]
                )
            except (httpx.HTTPError, JsonRpcError) as e:
                raise ChainClientError(f"Receipt lookup failed for {tx_hash}: {e}") from e

            if receipt:
                if int(receipt.get("status", "0x1"), 16) == 0:
                    raise TransactionRevertedError(f"Transaction {tx_hash} reverted")

                block_number = receipt.get("blockNumber")
                return TransferReceipt(
                    tx_hash=tx_hash,
                    block_number=int(block_number, 16) if block_number else None,
                )

            if time.monotonic() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {tx_hash} not confirmed within {self.confirmation_timeout}s"
                )

            await asyncio.sleep(self.poll_interval)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def build_chain_registry(
    relayer_url: Optional[str],
    api_key: Optional[str],
    rpc_urls: Dict[int, str],
    confirmation_timeout: float = 120.0,
    poll_interval: float = 2.0,
) -> ChainClientRegistry:
    """
    Build one RelayerChainClient per configured chain

    Returns an empty registry (settlement disabled) when the relayer URL
    or API key is missing.
    """
    if not relayer_url or not api_key:
        logger.warning("RELAYER_URL / RELAYER_API_KEY not set, settlement disabled")
        return ChainClientRegistry()

    registry = ChainClientRegistry()
    for chain_id, rpc_url in rpc_urls.items():
        registry.register(
            int(chain_id),
            RelayerChainClient(
                chain_id=int(chain_id),
                relayer_url=relayer_url,
                api_key=api_key,
                rpc_url=rpc_url,
                confirmation_timeout=confirmation_timeout,
                poll_interval=poll_interval,
            ),
        )
    return registry
