
from sqlalchemy import Column, Integer, String, DateTime, LargeBinary, Boolean, JSON, ForeignKey, func
from docvault.db.session import Base

class Document(Base):
    __tablename__ = "documents"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(15), ForeignKey("users.id"), nullable=False, index=True)
    fieldname = Column(String(120), nullable=False)
    originalname = Column(String(255), nullable=False)
    encoding = Column(String(50), nullable=False, default="7bit")
    mimetype = Column(String(120), nullable=False)
    date = Column(DateTime, server_default=func.now())
    content = Column(LargeBinary, nullable=False)
    size = Column(Integer, nullable=False, default=0)
    # not unique: re-uploading the same bytes creates a second row
    hash = Column(String(64), nullable=False, index=True)
    keywords = Column(JSON, nullable=False, default=list)
    trashed = Column(Boolean, nullable=False, default=False)
    trashed_at = Column(DateTime, nullable=True)
