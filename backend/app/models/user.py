"""
User model: student identity and bcrypt password hash.
"""

from sqlalchemy import Column, String

from app.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    student_id = Column(String(50), primary_key=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash, never plaintext

    def __repr__(self) -> str:
        return f"<User(student_id={self.student_id}, email={self.email})>"
