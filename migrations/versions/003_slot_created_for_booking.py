"""Mark slots that were created on demand for a single booking.

Cancelling the booking deletes such a slot. Slots published by a clinic or an
owner are only freed. Rows that predate the column stay unmarked, so their
slots are freed on cancellation rather than deleted.

Revision ID: 003_slot_created_for_booking
Revises: 002_backfill_slot_clinic_ids
Create Date: 2025-03-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "003_slot_created_for_booking"
down_revision: Union[str, None] = "002_backfill_slot_clinic_ids"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "slots",
        sa.Column("created_for_booking", sa.Boolean(), nullable=False, server_default="false"),
    )


def downgrade() -> None:
    op.drop_column("slots", "created_for_booking")
