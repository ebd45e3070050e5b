import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from solana.rpc.async_api import AsyncClient

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", arbitrary_types_allowed=True)

    solana_rpc_url: str = os.getenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
    destination_wallet: str = os.getenv("DESTINATION_WALLET", "3h4AtoLTh3bWwaLhdtgQtcC3a3Tokb8NJbtqR9rhp7p6")
    default_amount_sol: float = os.getenv("DEFAULT_AMOUNT_SOL", 0.2)
    rate_limit: str = os.getenv("RATE_LIMIT", "60/minute")
    rpc_client: AsyncClient | None = None

    ICON_URL: str = (
        "https://ucarecdn.com/7aa46c85-08a4-4bc7-9376-88ec48bb1f43/"
        "-/preview/880x864/-/quality/smart/-/format/auto/"
    )

setting = Settings()
