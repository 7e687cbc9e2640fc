"""
Reclaim Configuration
=====================
Typed configuration and fixed thresholds for the reclaim engine.
"""

from pydantic import BaseModel, ConfigDict, Field

from solders.pubkey import Pubkey

# Fixed thresholds
PROBATION_PERIOD_MS = 60 * 24 * 60 * 60 * 1000  # 60 days
BATCH_SIZE = 5
RETRY_BACKOFF_S = 1.0
DEFAULT_MAX_RETRIES = 3

# Program IDs
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")


class ReclaimConfig(BaseModel):
    """
    Validated engine configuration.

    Example:
        config = ReclaimConfig(dry_run=True, max_retries=5)
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    min_rent_balance: int = Field(
        default=2_500_000, ge=0,
        description="Minimum balance (lamports) to consider 'empty'",
    )
    max_inactive_days: int = Field(default=30, ge=0, description="Days of silence before we kill it")
    # Reserved: recorded for a future manual-review policy, not enforced
    min_tx_count_safety: int = Field(default=10, ge=0)

    dry_run: bool = Field(default=False, description="If true, we only log, never send transactions")
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1, description="Close attempts per account")
    retry_backoff_s: float = Field(default=RETRY_BACKOFF_S, ge=0.0)

    probation_period_ms: int = Field(default=PROBATION_PERIOD_MS, gt=0)
    batch_size: int = Field(default=BATCH_SIZE, ge=1)

    tg_alert: bool = Field(default=True, description="Send the cycle summary to Telegram")
    email_alert: bool = Field(default=False, description="Send the cycle summary by e-mail")
    run_local: bool = Field(default=False, description="Run the local heartbeat loop")
    heartbeat_interval_s: float = Field(default=60.0, gt=0.0)
