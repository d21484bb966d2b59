"""Minimal Ethereum JSON-RPC over httpx"""

from typing import Any, List
import httpx


class JsonRpcError(Exception):
    """Node returned an error object or an unusable response"""


async def json_rpc_call(client: httpx.AsyncClient, url: str, method: str, params: List[Any]) -> Any:
    """
    POST a single JSON-RPC 2.0 request and return its result

    Raises:
        httpx.HTTPError: transport or HTTP status failure
        JsonRpcError: error object in the response
    """
    response = await client.post(
        url,
        json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        headers={"Content-Type": "application/json"},
    )
    response.raise_for_status()
    body = response.json()

    if body.get("error"):
        error = body["error"]
        raise JsonRpcError(f"{method} failed: {error.get('message', error)}")

    return body.get("result")
