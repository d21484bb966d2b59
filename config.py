import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./juice.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Ledger rules
    JUICE_MAX_RETRIES = data.get("JUICE_MAX_RETRIES", 5)
    JUICE_CASH_OUT_DELAY_HOURS = data.get("JUICE_CASH_OUT_DELAY_HOURS", 24)
    JUICE_DEFAULT_CHAIN_ID = data.get("JUICE_DEFAULT_CHAIN_ID", 42161)  # Arbitrum, lowest fees
    JUICE_DEFAULT_RISK_SCORE = data.get("JUICE_DEFAULT_RISK_SCORE", 50)
    JUICE_EXPIRATION_DAYS = data.get("JUICE_EXPIRATION_DAYS", 180)

    # Batch sizes
    CREDIT_BATCH_SIZE = data.get("CREDIT_BATCH_SIZE", 50)
    SPEND_BATCH_SIZE = data.get("SPEND_BATCH_SIZE", 20)
    CASH_OUT_BATCH_SIZE = data.get("CASH_OUT_BATCH_SIZE", 20)
    EXPIRATION_BATCH_SIZE = data.get("EXPIRATION_BATCH_SIZE", 100)

    # Worker intervals (seconds)
    CREDIT_INTERVAL_SECONDS = data.get("CREDIT_INTERVAL_SECONDS", 300)
    SPEND_INTERVAL_SECONDS = data.get("SPEND_INTERVAL_SECONDS", 120)
    CASH_OUT_INTERVAL_SECONDS = data.get("CASH_OUT_INTERVAL_SECONDS", 300)
    EXPIRATION_INTERVAL_SECONDS = data.get("EXPIRATION_INTERVAL_SECONDS", 86400)  # Daily

    # Settlement relayer (empty = settlement disabled)
    RELAYER_URL = data.get("RELAYER_URL", "")
    RELAYER_API_KEY = data.get("RELAYER_API_KEY", "")
    CHAIN_RPC_URLS = data.get("CHAIN_RPC_URLS", {
        1: "https://eth.llamarpc.com",
        10: "https://optimism.llamarpc.com",
        42161: "https://arbitrum.llamarpc.com",
        8453: "https://base.llamarpc.com",
    })
    CONFIRMATION_TIMEOUT_SECONDS = data.get("CONFIRMATION_TIMEOUT_SECONDS", 120)
    CONFIRMATION_POLL_INTERVAL_SECONDS = data.get("CONFIRMATION_POLL_INTERVAL_SECONDS", 2)

    # ETH/USD price feed (Chainlink aggregator on mainnet)
    PRICE_FEED_RPC_URL = data.get("PRICE_FEED_RPC_URL", "https://eth.llamarpc.com")
    PRICE_FEED_ADDRESS = data.get("PRICE_FEED_ADDRESS", "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419")
    PRICE_FEED_DECIMALS = data.get("PRICE_FEED_DECIMALS", 8)
    PRICE_MAX_AGE_SECONDS = data.get("PRICE_MAX_AGE_SECONDS", 3600)
    PRICE_MIN_RATE = data.get("PRICE_MIN_RATE", "100")
    PRICE_MAX_RATE = data.get("PRICE_MAX_RATE", "100000")

    # Alerts for permanently failed settlements
    SETTLEMENT_NOTIFICATION_WEBHOOK = data.get("SETTLEMENT_NOTIFICATION_WEBHOOK", None)

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
