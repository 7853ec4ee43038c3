
from sqlalchemy import Column, String, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from docvault.db.session import Base

class AuthSession(Base):
    __tablename__ = "user_sessions"
    id = Column(String(40), primary_key=True)
    user_id = Column(String(15), ForeignKey("users.id"), nullable=False, index=True)
    # epoch milliseconds
    active_expires = Column(BigInteger, nullable=False)
    idle_expires = Column(BigInteger, nullable=False, index=True)

    user = relationship("User", back_populates="sessions")
