from __future__ import annotations

import json
from pathlib import Path

from eth_typing import URI
from web3 import Web3
from web3.contract import Contract

ABIS_DIR = Path(__file__).parent / "abis"

AGGREGATOR_ABI_PATH = ABIS_DIR / "AggregatorV3Interface.json"
WSTETH_ABI_PATH = ABIS_DIR / "WstETH.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


def load_aggregator_abi() -> list[dict]:
    """Load the Chainlink AggregatorV3Interface ABI."""
    return load_abi(AGGREGATOR_ABI_PATH)


def load_wsteth_abi() -> list[dict]:
    """Load the WstETH ABI."""
    return load_abi(WSTETH_ABI_PATH)


def connect(rpc_url: str) -> Web3:
    """Open an HTTP web3 connection, failing early if the node is unreachable."""
    w3 = Web3(Web3.HTTPProvider(URI(rpc_url), request_kwargs={"timeout": 15}))
    if not w3.is_connected():
        raise ConnectionError(f"Failed to connect to RPC: {rpc_url}")
    return w3


def get_contract(w3: Web3, address: str, abi: list[dict]) -> Contract:
    return w3.eth.contract(address=w3.to_checksum_address(address), abi=abi)


def with_uint256_getter(abi: list[dict], name: str) -> list[dict]:
    """Return ``abi`` extended with ``name() view returns (uint256)`` if absent."""
    if any(e.get("type") == "function" and e.get("name") == name for e in abi):
        return abi
    getter = {
        "inputs": [],
        "name": name,
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
    return [*abi, getter]
