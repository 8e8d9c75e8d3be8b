"""The migration chain builds the same tables as the models."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from scoopops.core.config import settings
from scoopops.core.database import Base

ROOT = Path(__file__).resolve().parent.parent


def test_upgrade_head_matches_models(tmp_path, monkeypatch):
    dsn = f"sqlite:///{tmp_path / 'migrations.db'}"
    monkeypatch.setattr(settings, "APP_DATABASE_DSN", dsn)
    config = Config()
    config.set_main_option("script_location", str(ROOT / "scoopops" / "alembic"))

    command.upgrade(config, "head")

    inspector = inspect(create_engine(dsn))
    migrated = set(inspector.get_table_names()) - {"alembic_version"}
    assert migrated == set(Base.metadata.tables)
    for table in Base.metadata.sorted_tables:
        columns = {c["name"] for c in inspector.get_columns(table.name)}
        assert columns == set(table.columns.keys()), table.name

    command.downgrade(config, "base")
    assert set(inspect(create_engine(dsn)).get_table_names()) <= {"alembic_version"}
