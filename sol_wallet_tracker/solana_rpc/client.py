"""
Solana JSON-RPC client over HTTP.

Responsibilities:
- Build JSON-RPC 2.0 request bodies with a per-client request id.
- POST them with httpx and classify every failure into an RpcError kind
  (network, rate limit, HTTP status, invalid body, protocol, missing result).
- Abort in-flight requests when the session's CancellationToken fires.
- Typed helpers for getBalance, getSignaturesForAddress, getTransaction
  (with one legacy-encoding fallback) and getTokenAccountsByOwner.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx

from sol_wallet_tracker.config.env import COMMITMENT, TOKEN_PROGRAM_ID
from sol_wallet_tracker.core.cancellation import CancellationToken
from sol_wallet_tracker.core.exceptions import (
    OperationCancelled,
    RpcHttpStatusError,
    RpcInvalidResponseError,
    RpcMissingResultError,
    RpcNetworkError,
    RpcProtocolError,
    RpcRateLimitedError,
)
from sol_wallet_tracker.solana_rpc.models import SignatureInfo, TransactionDetail
from sol_wallet_tracker.tracker_logging import get_logger, short_id

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT_SEC = 30.0

RATE_LIMIT_CODES = frozenset({429, -32005})
INVALID_PARAMS_CODE = -32602
_RATE_LIMIT_PATTERN = re.compile(r"rate|too many|throttle", re.IGNORECASE)
_UNSUPPORTED_VERSION_PATTERN = re.compile(
    r"unsupported|version|maxsupportedtransactionversion", re.IGNORECASE
)


def is_rate_limit_error(code: int | None, message: str) -> bool:
    """True for JSON-RPC errors that signal throttling."""
    return code in RATE_LIMIT_CODES or bool(_RATE_LIMIT_PATTERN.search(message))


def is_version_incompatibility(error: RpcProtocolError) -> bool:
    """True when a node rejected jsonParsed / maxSupportedTransactionVersion."""
    return error.code == INVALID_PARAMS_CODE or bool(
        _UNSUPPORTED_VERSION_PATTERN.search(error.message)
    )


class SolanaRpcClient:
    """
    Async JSON-RPC client; one instance per tracker.

    Endpoint is passed per call so one client serves any RPC URL. The request
    id counter is per instance and only aids debugging.

    Example:
        async with SolanaRpcClient() as rpc:
            lamports = await rpc.get_balance("https://api.mainnet-beta.solana.com", wallet)
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
    ) -> None:
        """
        Args:
            http_client: Optional preconfigured httpx.AsyncClient (tests pass one
                with httpx.MockTransport). Owned and closed by the caller.
            timeout_sec: HTTP timeout when the client creates its own httpx client.
        """
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))
        self._request_id = 0

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def build_body(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }

    async def call(
        self,
        endpoint: str,
        method: str,
        params: list[Any],
        token: CancellationToken | None = None,
    ) -> Any:
        """
        Perform one JSON-RPC call and return its `result`.

        Raises an RpcError subclass on failure and OperationCancelled when the
        token fires before the response arrives. A null result is returned as None.
        """
        body = self.build_body(method, params)
        logger.debug("rpc_request", method=method, request_id=body["id"])
        response = await self._post(endpoint, body, token)
        return _parse_envelope(response)

    async def _post(
        self,
        endpoint: str,
        body: dict[str, Any],
        token: CancellationToken | None,
    ) -> httpx.Response:
        if token is None:
            return await self._send(endpoint, body)
        token.raise_if_cancelled()
        request_task = asyncio.ensure_future(self._send(endpoint, body))
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.cancel()
            raise
        finally:
            cancel_task.cancel()
        if request_task.done():
            return request_task.result()
        request_task.cancel()
        logger.debug("rpc_request_aborted", method=body["method"], request_id=body["id"])
        raise OperationCancelled()

    async def _send(self, endpoint: str, body: dict[str, Any]) -> httpx.Response:
        try:
            return await self._http.post(endpoint, json=body)
        except httpx.HTTPError as e:
            logger.warning(
                "rpc_transport_error",
                method=body["method"],
                request_id=body["id"],
                error=str(e) or type(e).__name__,
            )
            raise RpcNetworkError("Unable to connect to the selected RPC endpoint.") from e

    async def get_balance(
        self,
        endpoint: str,
        wallet: str,
        token: CancellationToken | None = None,
    ) -> int:
        """Return the wallet balance in lamports."""
        result = await self.call(
            endpoint, "getBalance", [wallet, {"commitment": COMMITMENT}], token
        )
        value = result.get("value") if isinstance(result, dict) else None
        if isinstance(value, bool) or not isinstance(value, int):
            raise RpcInvalidResponseError("getBalance returned an unexpected result.")
        return value

    async def get_signatures_for_address(
        self,
        endpoint: str,
        wallet: str,
        limit: int,
        token: CancellationToken | None = None,
    ) -> list[SignatureInfo]:
        """Return up to `limit` signatures, newest first (RPC order preserved)."""
        result = await self.call(
            endpoint,
            "getSignaturesForAddress",
            [wallet, {"limit": limit, "commitment": COMMITMENT}],
            token,
        )
        if not isinstance(result, list):
            raise RpcInvalidResponseError(
                "getSignaturesForAddress returned an unexpected result."
            )
        infos: list[SignatureInfo] = []
        seen: set[str] = set()
        for item in result:
            if not isinstance(item, dict):
                continue
            try:
                info = SignatureInfo.from_rpc_item(item)
            except (KeyError, TypeError) as e:
                logger.debug("rpc_signature_item_skipped", error=str(e))
                continue
            if info.signature in seen:
                continue
            seen.add(info.signature)
            infos.append(info)
        return infos

    async def get_transaction(
        self,
        endpoint: str,
        signature: str,
        token: CancellationToken | None = None,
    ) -> TransactionDetail | None:
        """
        Fetch one transaction; None when the ledger has no record for it.

        First asks for jsonParsed with maxSupportedTransactionVersion=0. If the
        node rejects that (invalid params or an unsupported-version message),
        retries exactly once with the legacy json encoding; that second
        attempt's error, if any, is the one raised.
        """
        try:
            raw = await self.call(
                endpoint,
                "getTransaction",
                [
                    signature,
                    {
                        "encoding": "jsonParsed",
                        "commitment": COMMITMENT,
                        "maxSupportedTransactionVersion": 0,
                    },
                ],
                token,
            )
        except RpcProtocolError as e:
            if not is_version_incompatibility(e):
                raise
            logger.info(
                "rpc_get_transaction_legacy_fallback",
                signature=short_id(signature),
                code=e.code,
                error=e.message,
            )
            raw = await self.call(
                endpoint,
                "getTransaction",
                [signature, {"encoding": "json", "commitment": COMMITMENT}],
                token,
            )
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise RpcInvalidResponseError("getTransaction returned an unexpected result.")
        return TransactionDetail.from_rpc(raw)

    async def get_token_accounts_by_owner(
        self,
        endpoint: str,
        wallet: str,
        token: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        """Return raw jsonParsed SPL token accounts owned by the wallet."""
        result = await self.call(
            endpoint,
            "getTokenAccountsByOwner",
            [
                wallet,
                {"programId": TOKEN_PROGRAM_ID},
                {"encoding": "jsonParsed", "commitment": COMMITMENT},
            ],
            token,
        )
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, list):
            raise RpcInvalidResponseError(
                "getTokenAccountsByOwner returned an unexpected result."
            )
        return [item for item in value if isinstance(item, dict)]


def _parse_envelope(response: httpx.Response) -> Any:
    """Classify the HTTP response and return the JSON-RPC result."""
    status = response.status_code
    if status == 429:
        raise RpcRateLimitedError("RPC rate limit hit.", http_status=429)
    if not response.is_success:
        raise RpcHttpStatusError(f"RPC returned HTTP {status}.", http_status=status)
    try:
        data = response.json()
    except ValueError as e:
        raise RpcInvalidResponseError("RPC returned an invalid JSON response.") from e
    if not isinstance(data, dict):
        raise RpcInvalidResponseError("RPC returned an invalid JSON response.")
    error = data.get("error")
    if error:
        if isinstance(error, dict):
            message = str(error.get("message") or error)
            raw_code = error.get("code")
            code = raw_code if isinstance(raw_code, int) and not isinstance(raw_code, bool) else None
        else:
            message, code = str(error), None
        if is_rate_limit_error(code, message):
            raise RpcRateLimitedError(message, code=code)
        raise RpcProtocolError(message, code=code)
    if "result" not in data:
        raise RpcMissingResultError("RPC response did not include a result.")
    return data["result"]
