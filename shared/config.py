from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = ""

    # Blockchain
    NETWORK: str = "mumbai"  # 'hardhat', 'mumbai' or 'matic'
    RPC_URL: str = "https://polygon-rpc.com"

    # Treasury
    STABLE_ASSET_ADDRESS: str = ""  # Overrides the network's USDC when set
    TREASURY_ADDRESS: str = "treasury"
    TREASURY_OWNER: str = "owner"
    TREASURY_SWAP_DEADLINE_SECONDS: int = 300
    TREASURY_FIXTURES: str = ""  # JSON file seeding the simulated ledger

    # Application
    API_SECRET_KEY: str = "dev-secret-key"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
