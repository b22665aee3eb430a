import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from domain.repositories import AccountRepository
from infrastructure.db.account_repository_postgres import PostgresAccountRepository
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository
from interfaces.discord.handlers import create_discord_bot


load_dotenv()

LOGGER = logging.getLogger(__name__)

DB_BACKENDS = ("sqlite", "postgres")


@dataclass
class Settings:
    discord_token: str
    role_id: Optional[int] = None
    db_backend: str = "sqlite"
    db_path: str = "accounts.db"
    db_params: dict = field(default_factory=dict)
    log_level: str = "INFO"


def load_settings(environ: Mapping[str, str] = os.environ) -> Settings:
    token = environ.get("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    raw_role_id = environ.get("DISCORD_ROLE_ID", "").strip()
    if raw_role_id and not raw_role_id.isdigit():
        raise ValueError(f"DISCORD_ROLE_ID must be a numeric ID, got {raw_role_id!r}")

    backend = environ.get("DB_BACKEND", "sqlite").lower()
    if backend not in DB_BACKENDS:
        raise ValueError(f"DB_BACKEND must be one of {DB_BACKENDS}, got {backend!r}")

    return Settings(
        discord_token=token,
        role_id=int(raw_role_id) if raw_role_id else None,
        db_backend=backend,
        db_path=environ.get("DB_PATH", "accounts.db"),
        db_params={
            "host": environ.get("DB_HOST", "localhost"),
            "port": int(environ.get("DB_PORT", "5432")),
            "user": environ.get("DB_USER", "root"),
            "password": environ.get("DB_PASSWORD", ""),
            "dbname": environ.get("DB_NAME", "minecraft"),
        },
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
    )


def build_account_repository(settings: Settings) -> AccountRepository:
    if settings.db_backend == "postgres":
        return PostgresAccountRepository(settings.db_params)
    return SqliteAccountRepository(settings.db_path)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    account_repo = build_account_repository(settings)
    LOGGER.info("Using %s account store", settings.db_backend)
    if settings.role_id is None:
        LOGGER.warning("DISCORD_ROLE_ID is not set; linked players will not get a role")

    bot = create_discord_bot(account_repo, settings.role_id)
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
