"""ORM model for issued tokens. Only the SHA-256 of the plaintext is stored."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, LargeBinary, String

from bankapi.models.base import Base


class Token(Base):
    __tablename__ = "tokens"

    hash = Column(LargeBinary(32), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expiry = Column(DateTime(timezone=True), nullable=False, index=True)
    scope = Column(String(32), nullable=False)
