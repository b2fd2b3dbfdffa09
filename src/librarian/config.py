"""Configuration management for the library.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .errors import UnknownOption

# Load .env file if present
load_dotenv()

DEFAULT_LOAN_LENGTH_DAYS = 12


@dataclass
class Config:
    """Library configuration."""

    # Database
    db_path: Path

    # Lending
    default_loan_length_days: int = DEFAULT_LOAN_LENGTH_DAYS
    renewal_limit: int = 0  # 0 = unlimited

    # Fines
    daily_fine_rate: Decimal = Decimal("0")

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LIBRARIAN_DB_PATH",
            str(Path.home() / ".librarian" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            default_loan_length_days=int(
                os.environ.get("LIBRARIAN_LOAN_LENGTH", str(DEFAULT_LOAN_LENGTH_DAYS))
            ),
            renewal_limit=int(os.environ.get("LIBRARIAN_RENEWAL_LIMIT", "0")),
            daily_fine_rate=_parse_decimal(os.environ.get("LIBRARIAN_FINE_DAILY", "0")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.default_loan_length_days < 1:
            errors.append(
                f"Default loan length must be at least one day: {self.default_loan_length_days}"
            )
        if self.renewal_limit < 0:
            errors.append(f"Renewal limit cannot be negative: {self.renewal_limit}")
        if self.daily_fine_rate < 0:
            errors.append(f"Daily fine rate cannot be negative: {self.daily_fine_rate}")

        return errors

    def get_option(self, name: str) -> Any:
        """Look up a single option by name.

        Raises:
            UnknownOption: If the option is not recognised
        """
        if name not in {f.name for f in fields(self)}:
            raise UnknownOption(f"Option does not exist: {name}")
        return getattr(self, name)


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"Not a decimal amount: {raw!r}")


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
