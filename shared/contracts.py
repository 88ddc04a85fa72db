"""
Shared contract helpers — ABI loading and read-only contract handles.
"""
import json
from pathlib import Path
from web3 import Web3
from shared.web3_client import w3

ABI_DIR = Path(__file__).parent / "abis"


def load_abi(name: str) -> list:
    with open(ABI_DIR / f"{name}.json") as f:
        return json.load(f)


def get_contract(address: str, abi_name: str, client: Web3 = w3):
    return client.eth.contract(address=Web3.to_checksum_address(address), abi=load_abi(abi_name))
