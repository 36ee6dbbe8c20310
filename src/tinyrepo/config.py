import os
from dataclasses import dataclass

from dotenv import load_dotenv

from tinyrepo.casing import Case

# Load the appropriate .env file on module import
env = os.environ.get("TINYREPO_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    environment: str
    database_url: str | None
    column_casing: Case | None
    echo_sql: bool

    @classmethod
    def from_env(cls) -> "Config":
        casing = os.environ.get("TINYREPO_COLUMN_CASING")
        return cls(
            environment=os.environ.get("TINYREPO_ENV", env).lower(),
            database_url=os.environ.get("DATABASE_URL") or None,
            column_casing=Case.parse(casing) if casing else None,
            echo_sql=_flag(os.environ.get("TINYREPO_ECHO_SQL")),
        )


config = Config.from_env()
