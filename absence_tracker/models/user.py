"""
User Model.
Only the fields the absence engine reads are kept: identity, role and hire date.
"""
from sqlalchemy import Column, Integer, String, Enum, Date, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from absence_tracker.database import Base


class UserRole(str, enum.Enum):
    """
    ADMIN: manages policy settings, approves requests, acts on anyone's certificates.
    EMPLOYEE: self-service access.
    """
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    
    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    
    # No hire date means no entitlement and no vacation requests
    hire_date = Column(Date, nullable=True)
    
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    absences = relationship("Absence", back_populates="user", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
