import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # RENT RECLAIMER CONFIGURATION (environment-backed)
    # ═══════════════════════════════════════════════════════════════════

    # Console output
    SILENT_MODE = _env_bool("SILENT_MODE", False)

    # Paths
    DATA_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../data"))
    DB_PATH = os.getenv("RECLAIMER_DB_PATH", os.path.join(DATA_DIR, "reclaimer.db"))

    # ═══════════════════════════════════════════════════════════════════
    # CHAIN
    # ═══════════════════════════════════════════════════════════════════
    HELIUS_API_KEY = os.getenv("HELIUS_API_KEY", "")
    NETWORK = os.getenv("SOLANA_NETWORK", "devnet")  # "mainnet" or "devnet"
    RPC_URL = os.getenv(
        "RPC_URL",
        f"https://{NETWORK}.helius-rpc.com/?api-key={HELIUS_API_KEY}"
        if HELIUS_API_KEY
        else f"https://api.{'mainnet-beta' if NETWORK == 'mainnet' else NETWORK}.solana.com",
    )
    RPC_TIMEOUT_S = 10

    # ═══════════════════════════════════════════════════════════════════
    # OPERATOR IDENTITY
    # ═══════════════════════════════════════════════════════════════════
    # Base58 string or JSON byte array
    OPERATOR_PRIVATE_KEY = os.getenv("KORA_OPERATOR_PRIVATE_KEY", "")
    OPERATOR_ADDRESS = os.getenv("KORA_OPERATOR_ADDRESS", "")
    OPERATOR_KEYPAIR_FILE = os.getenv("KORA_OPERATOR_KEYPAIR_FILE", "operator-keypair.json")

    # ═══════════════════════════════════════════════════════════════════
    # NOTIFICATIONS
    # ═══════════════════════════════════════════════════════════════════
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
    ALERT_EMAIL_TO = os.getenv("ALERT_EMAIL_TO", "")
    ALERT_EMAIL_FROM = os.getenv("ALERT_EMAIL_FROM", "Kora Reclaimer <alerts@kora-reclaimer.dev>")


# Environment overrides for ReclaimConfig fields
_RECLAIM_ENV_FIELDS = {
    "min_rent_balance": "RECLAIM_MIN_RENT_BALANCE",
    "max_inactive_days": "RECLAIM_MAX_INACTIVE_DAYS",
    "min_tx_count_safety": "RECLAIM_MIN_TX_COUNT_SAFETY",
    "dry_run": "RECLAIM_DRY_RUN",
    "max_retries": "RECLAIM_MAX_RETRIES",
    "retry_backoff_s": "RECLAIM_RETRY_BACKOFF_S",
    "probation_period_ms": "RECLAIM_PROBATION_PERIOD_MS",
    "batch_size": "RECLAIM_BATCH_SIZE",
    "tg_alert": "RECLAIM_TG_ALERT",
    "email_alert": "RECLAIM_EMAIL_ALERT",
    "run_local": "RECLAIM_RUN_LOCAL",
    "heartbeat_interval_s": "RECLAIM_HEARTBEAT_INTERVAL_S",
}


def load_reclaim_config(environ=None):
    """
    Build the validated ReclaimConfig from RECLAIM_* environment variables.

    Raises pydantic.ValidationError on bad values so the process fails at
    start instead of mid-cycle.
    """
    from reclaimer.modules.reclaim.config import ReclaimConfig

    environ = os.environ if environ is None else environ
    overrides = {
        field: environ[var]
        for field, var in _RECLAIM_ENV_FIELDS.items()
        if environ.get(var, "") != ""
    }
    return ReclaimConfig(**overrides)
