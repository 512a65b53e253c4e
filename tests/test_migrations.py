# tests/test_migrations.py
"""Tests for the ledger migration history."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def _alembic_config(url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", url)
    return config


def test_upgrade_creates_ledger_and_downgrade_drops_it(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("ALEMBIC_URL", raising=False)
    url = f"sqlite:///{tmp_path / 'ballot.db'}"
    config = _alembic_config(url)
    engine = create_engine(url)

    command.upgrade(config, "head")
    inspector = inspect(engine)
    assert "ballot_vote" in inspector.get_table_names()
    assert {index["name"] for index in inspector.get_indexes("ballot_vote")} == {
        "ix_ballot_vote_identity",
        "ix_ballot_vote_votable",
    }
    columns = {column["name"]: column for column in inspector.get_columns("ballot_vote")}
    assert columns["scope"]["nullable"] is True
    assert columns["weight"]["nullable"] is False

    command.downgrade(config, "base")
    assert "ballot_vote" not in inspect(engine).get_table_names()
    engine.dispose()
