"""
Chain Inspector — read-only views of Beefy-style vaults and strategies.

Used to look up a vault's want asset and LP routes on a live network before
registering it with the treasury. Nothing here signs or sends transactions.
"""
from web3 import Web3
from shared.contracts import get_contract
from shared.web3_client import w3 as default_w3
from agents.treasury.errors import ExternalCallFailure
import structlog

logger = structlog.get_logger()


def _call(fn, label: str, address: str):
    try:
        return fn.call()
    except Exception as e:
        raise ExternalCallFailure(f"{label} call failed", context={"address": address, "error": str(e)}) from e


class ChainStrategy:
    def __init__(self, address: str, w3: Web3 = default_w3):
        self.address = Web3.to_checksum_address(address)
        self.contract = get_contract(self.address, "BeefyStrategy", w3)

    def unirouter(self) -> str:
        return _call(self.contract.functions.unirouter(), "unirouter", self.address)

    def lp_token0(self) -> str:
        return _call(self.contract.functions.lpToken0(), "lpToken0", self.address)

    def lp_token1(self) -> str:
        return _call(self.contract.functions.lpToken1(), "lpToken1", self.address)

    def output_to_lp0(self) -> list[str]:
        return list(_call(self.contract.functions.outputToLp0(), "outputToLp0", self.address))

    def output_to_lp1(self) -> list[str]:
        return list(_call(self.contract.functions.outputToLp1(), "outputToLp1", self.address))


class ChainVault:
    def __init__(self, address: str, w3: Web3 = default_w3):
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract = get_contract(self.address, "BeefyVault", w3)

    def want(self) -> str:
        return _call(self.contract.functions.want(), "want", self.address)

    def balance_of(self, holder: str) -> int:
        return _call(
            self.contract.functions.balanceOf(Web3.to_checksum_address(holder)),
            "balanceOf",
            self.address,
        )

    def price_per_share(self) -> int:
        return _call(self.contract.functions.getPricePerFullShare(), "getPricePerFullShare", self.address)

    def strategy(self) -> ChainStrategy:
        return ChainStrategy(_call(self.contract.functions.strategy(), "strategy", self.address), self.w3)


def inspect_vault(address: str, w3: Web3 = default_w3) -> dict:
    """Collect what the treasury needs to know about a vault.

    Single-asset strategies have no LP pair; their LP fields come back as None.
    """
    vault = ChainVault(address, w3)
    strategy = vault.strategy()
    info = {
        "vault": vault.address,
        "want": vault.want(),
        "price_per_share": vault.price_per_share(),
        "strategy": strategy.address,
        "router": strategy.unirouter(),
        "lp_token0": None,
        "lp_token1": None,
        "output_to_lp0": [],
        "output_to_lp1": [],
    }
    try:
        info.update(
            lp_token0=strategy.lp_token0(),
            lp_token1=strategy.lp_token1(),
            output_to_lp0=strategy.output_to_lp0(),
            output_to_lp1=strategy.output_to_lp1(),
        )
    except ExternalCallFailure:
        logger.info("vault_single_asset", vault=vault.address)
    return info
