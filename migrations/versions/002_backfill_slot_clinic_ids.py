"""Assign clinic_id to slots that only carry a clinic name.

Slots written before clinic ids existed are matched by clinic_name. A slot
gets the id of the clinic with exactly that name, when the name is unique.

Revision ID: 002_backfill_slot_clinic_ids
Revises: 001_initial
Create Date: 2025-03-02

"""
from typing import Sequence, Union

from alembic import op


revision: str = "002_backfill_slot_clinic_ids"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        """
        UPDATE slots
        SET clinic_id = (SELECT c.id FROM clinics c WHERE c.name = slots.clinic_name)
        WHERE clinic_id IS NULL
          AND clinic_name IS NOT NULL
          AND (SELECT COUNT(*) FROM clinics c WHERE c.name = slots.clinic_name) = 1
        """
    )


def downgrade() -> None:
    # Backfilled ids are indistinguishable from ids written by the application
    pass
