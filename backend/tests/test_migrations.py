"""Tests that the Alembic revisions build the same schema as the models."""

from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

from storefront.core.database import Base

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "storefront" / "alembic"


def _scripts() -> ScriptDirectory:
    return ScriptDirectory(str(ALEMBIC_DIR))


def test_single_head():
    assert len(_scripts().get_heads()) == 1


def test_linear_history():
    revisions = list(_scripts().walk_revisions())
    assert revisions[-1].down_revision is None
    for newer, older in zip(revisions, revisions[1:], strict=False):
        assert newer.down_revision == older.revision


def test_upgrade_matches_models():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        context = MigrationContext.configure(conn)
        with Operations.context(context):
            for script in reversed(list(_scripts().walk_revisions())):
                script.module.upgrade()

        inspector = inspect(conn)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for table in Base.metadata.sorted_tables:
            migrated = {column["name"] for column in inspector.get_columns(table.name)}
            assert migrated == {column.name for column in table.columns}, table.name
