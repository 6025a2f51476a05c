"""
HTTP adapter for the CLMM swap core.

Builds a SwapRequest from the JSON body and renders whichever error kind the
core raises. No business rules live here.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import os
import threading

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS

from raydium_clmm import ClmmSwapService, SwapRequest, explorer_url, is_valid_address
from raydium_clmm.errors import ClmmSwapError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HTTP_STATUS = {
    "InvalidAddress": 400,
    "NonPositiveAmount": 400,
    "AmountOutOfRange": 400,
    "TokenNotInPool": 400,
    "PoolNotFound": 404,
    "WrongProgramOwner": 422,
    "MalformedAccount": 422,
    "InsufficientLiquidity": 409,
    "WalletNotConnected": 401,
    "WalletCannotSign": 401,
    "AccountCreationFailed": 502,
    "TransactionSendFailed": 502,
    "TransportError": 502,
    "ConfirmationTimeout": 504,
}


def load_oracle(target: str):
    """
    Instantiate the pool-math oracle named by "package.module:ClassName".
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise RuntimeError(f"CLMM_ORACLE must look like 'module:Class', got {target!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


class AsyncRunner:
    """Runs coroutines on one background loop so the RPC client and the
    provisioner's in-flight table are shared across requests."""

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

    def run(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()


def _error_response(error: ClmmSwapError):
    logger.warning(f"[CLMM] {error}")
    return jsonify({"error": error.to_dict()}), HTTP_STATUS.get(error.kind, 500)


def create_clmm_blueprint(service: ClmmSwapService, runner: AsyncRunner) -> Blueprint:
    bp = Blueprint("clmm", __name__, url_prefix="/api/clmm")

    @bp.route("/defaults", methods=["GET"])
    def defaults():
        config = service.config
        return jsonify(
            {
                "cluster": service.cluster,
                "pool": config.default_pool_id,
                "token_in": config.default_base_mint,
                "token_out": config.default_quote_mint,
                "slippage": config.default_slippage,
            }
        )

    @bp.route("/pool/<pool_id>", methods=["GET"])
    def pool_snapshot(pool_id):
        if not is_valid_address(pool_id):
            return jsonify({"error": {"kind": "InvalidAddress", "message": "Enter a valid CLMM pool address."}}), 400
        try:
            snapshot = runner.run(service.fetch_snapshot(pool_id))
        except ClmmSwapError as e:
            return _error_response(e)
        return jsonify(snapshot.to_dict())

    @bp.route("/swap", methods=["POST"])
    def swap():
        data = request.json or {}
        slippage = data.get("slippage")
        try:
            swap_request = SwapRequest(
                pool=str(data.get("pool", "")),
                input_mint=str(data.get("token_in", "")),
                output_mint=str(data.get("token_out", "")),
                amount=str(data.get("amount", "")),
                slippage=float(slippage) if slippage is not None else None,
            )
            result = runner.run(service.perform_swap(swap_request))
        except ClmmSwapError as e:
            return _error_response(e)
        except ValueError as e:
            return jsonify({"error": {"kind": "InvalidRequest", "message": str(e)}}), 400

        body = result.to_dict()
        body["explorer_url"] = explorer_url(result.signature, service.cluster)
        return jsonify(body)

    return bp


def create_app() -> Flask:
    oracle_target = os.getenv("CLMM_ORACLE", "")
    if not oracle_target:
        raise RuntimeError("CLMM_ORACLE is required (module:Class implementing PoolMathOracle)")

    app = Flask(__name__)
    CORS(app)
    runner = AsyncRunner()
    service = ClmmSwapService.from_env(load_oracle(oracle_target))
    app.register_blueprint(create_clmm_blueprint(service, runner))
    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", "5001"))
    create_app().run(host="0.0.0.0", port=port)
