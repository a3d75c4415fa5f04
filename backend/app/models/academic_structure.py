from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Branch(Base):
    __tablename__ = "branches"

    branch_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    branch_name: Mapped[str] = mapped_column(String(200), nullable=False)


class Division(Base):
    __tablename__ = "divisions"
    __table_args__ = (
        UniqueConstraint("branch_id", "division_name", name="uq_divisions_branch_division_name"),
    )

    division_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.branch_id", ondelete="RESTRICT"), nullable=False)
    division_name: Mapped[str] = mapped_column(String(50), nullable=False)


class Batch(Base):
    __tablename__ = "batches"
    __table_args__ = (
        UniqueConstraint("division_id", "batch_name", name="uq_batches_division_batch_name"),
    )

    batch_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    division_id: Mapped[int] = mapped_column(ForeignKey("divisions.division_id", ondelete="RESTRICT"), nullable=False)
    batch_name: Mapped[str] = mapped_column(String(50), nullable=False)
