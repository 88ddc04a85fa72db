from shared.config import settings

AGENT_NAME = "treasury"

# Fixed-point scales
SHARE_SCALE = 10**18     # pricePerShare precision
YIELD_SCALE = 100_000    # 100% == 100_000

# Liquidity policy: every swap and liquidity call accepts any output
MIN_AMOUNT_OUT = 0
SWAP_DEADLINE_SECONDS = settings.TREASURY_SWAP_DEADLINE_SECONDS

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

NETWORKS = {
    "hardhat": {
        "chain_id": 1337,
        "rpc_url": "http://127.0.0.1:8545",
        "stable_asset": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",  # forks matic
    },
    "mumbai": {
        "chain_id": 80001,
        "rpc_url": "https://rpc-mumbai.maticvigil.com",
        "stable_asset": "0x0FA8781a83E46826621b3BC094Ea2A0212e71B23",  # USDC
    },
    "matic": {
        "chain_id": 137,
        "rpc_url": "https://polygon-rpc.com",
        "stable_asset": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",  # USDC.e
    },
}
