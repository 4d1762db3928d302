import logging
import os
from dataclasses import dataclass

DEFAULT_VALIDATION_DELAY_MS = 300
DEFAULT_CONTRACT_FILE = ".restcontract.json"


@dataclass(frozen=True)
class Settings:
    validation_delay: float
    contract_file: str
    log_level: str


def get_settings() -> Settings:
    delay_ms = os.getenv("RESTCONTRACT_VALIDATION_DELAY_MS", str(DEFAULT_VALIDATION_DELAY_MS))
    try:
        delay = max(int(delay_ms), 0) / 1000
    except ValueError:
        raise ValueError(f"RESTCONTRACT_VALIDATION_DELAY_MS must be an integer, got '{delay_ms}'") from None
    return Settings(
        validation_delay=delay,
        contract_file=os.getenv("RESTCONTRACT_CONTRACT_FILE", DEFAULT_CONTRACT_FILE),
        log_level=os.getenv("RESTCONTRACT_LOG_LEVEL", "WARNING").upper(),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
