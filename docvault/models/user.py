
from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from docvault.db.session import Base

class User(Base):
    __tablename__ = "users"
    id = Column(String(15), primary_key=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    keys = relationship("Key", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")


class Key(Base):
    """Credential binding "<provider>:<provider user id>" to a password hash."""
    __tablename__ = "user_keys"
    id = Column(String(255), primary_key=True)
    user_id = Column(String(15), ForeignKey("users.id"), nullable=False, index=True)
    hashed_password = Column(String(255), nullable=True)

    user = relationship("User", back_populates="keys")
