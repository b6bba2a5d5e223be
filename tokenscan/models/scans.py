"""Append-only scan log; feeds /stats."""

import uuid

from sqlalchemy import Boolean, DateTime, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tokenscan.models.base import Base


class TokenScan(Base):
    __tablename__ = "token_scans"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    token_address: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    chain_id: Mapped[str] = mapped_column(String(20), nullable=False)

    score_total: Mapped[int] = mapped_column(Integer, nullable=False)

    privileged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    from_cache: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    scanned_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
