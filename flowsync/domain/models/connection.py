"""
Connection model - a connector profile registered in the flow engine.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowsync.domain.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from flowsync.domain.models.flow import Flow


class Connection(Base, TimestampMixin):
    """
    Connector profile owned by a user.

    The name doubles as the engine's connector profile name.
    """

    __tablename__ = "connections"
    __table_args__ = {"comment": "Connector profiles provisioned upstream"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Connector profile name in the flow engine",
    )
    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owning user"
    )
    connector_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Connector (source system) identifier"
    )
    status: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="Connection status"
    )

    flows: Mapped[list["Flow"]] = relationship(
        "Flow",
        back_populates="connection",
        lazy="select",
    )
