"""Ballot settings and configuration.

This module defines the configuration options for the Ballot voting plugin.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ballot settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Ballot", alias="BALLOT_APP_NAME")
    app_version: str = Field(default="0.1.0", alias="BALLOT_APP_VERSION")

    # Database configuration
    database_url: str = Field(default="sqlite:///./ballot.db", alias="BALLOT_DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="BALLOT_TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="BALLOT_USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="BALLOT_SQL_DEBUG")

    # Voting behaviour
    default_weight: int = Field(default=1, alias="BALLOT_DEFAULT_WEIGHT")
    # Lock the votable row (SELECT ... FOR UPDATE) while a vote is registered.
    lock_votable_rows: bool = Field(default=True, alias="BALLOT_LOCK_VOTABLE_ROWS")

    # Application segment of gid://<app>/<Type>/<id> global references
    global_id_app: str = Field(default="ballot", alias="BALLOT_GLOBAL_ID_APP")

    log_level: str = Field(default="INFO", alias="BALLOT_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
