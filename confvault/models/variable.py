"""Variable ORM models — plaintext values and their environment links."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from confvault.database import Base, new_id, utcnow


class Variable(Base):
    __tablename__ = "variables"
    __table_args__ = (UniqueConstraint("application_id", "key"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String(255))
    value: Mapped[str] = mapped_column(Text)
    application_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("applications.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class VariableEnvironment(Base):
    __tablename__ = "variable_environments"

    variable_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("variables.id", ondelete="CASCADE"), primary_key=True
    )
    environment_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("environments.id"), primary_key=True, index=True
    )
