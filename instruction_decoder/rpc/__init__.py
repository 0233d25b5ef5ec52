"""
Adapters from Solana RPC payloads to decoder inputs.
"""

from instruction_decoder.rpc.parser import estimate_compute_limit, parse_rpc_transaction

__all__ = ["estimate_compute_limit", "parse_rpc_transaction"]
