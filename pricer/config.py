from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "PRICER_"}

    # Lender / program
    lender_id: str = "visio"
    default_program: str = "DSCR"

    # Optional JSON file replacing the built-in rate matrices
    rate_table_path: str | None = None

    # Cash-to-close estimate: title, escrow, appraisal, credit report, etc.
    third_party_fee_pct: Decimal = Decimal("0.015")

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]


settings = Settings()
