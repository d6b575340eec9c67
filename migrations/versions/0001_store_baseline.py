"""store baseline

Creates every table of the current models. Later revisions alter from here.
"""
from typing import Sequence, Union

from alembic import op
from sqlmodel import SQLModel

import devsera.models  # noqa: F401

revision: str = "0001_store_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # checkfirst: databases created by init_db() already have the tables
    SQLModel.metadata.create_all(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    SQLModel.metadata.drop_all(bind=op.get_bind())
