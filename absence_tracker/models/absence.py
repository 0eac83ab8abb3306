from sqlalchemy import Column, Integer, String, Date, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from absence_tracker.database import Base
import enum

class AbsenceType(str, enum.Enum):
    VACATION = "vacation"
    SICK_LEAVE = "sick_leave"
    DAY_OFF = "day_off"
    WORK_FROM_HOME = "work_from_home"

class AbsenceStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Absence(Base):
    __tablename__ = "absences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    type = Column(String, index=True, nullable=False)
    # Inclusive range
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    status = Column(String, default=AbsenceStatus.PENDING.value, nullable=False) # Using String to store enum value for simplicity with SQLite
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="absences")
    files = relationship(
        "AbsenceFile",
        back_populates="absence",
        cascade="all, delete-orphan",
        order_by="AbsenceFile.id",
    )

    @property
    def has_certificate(self) -> bool:
        return len(self.files) > 0

    def __repr__(self):
        return f"<Absence {self.id} {self.type} {self.start_date}..{self.end_date} ({self.status})>"

class AbsenceFile(Base):
    """Certificate attached to a sick-leave absence."""
    __tablename__ = "absence_files"

    id = Column(Integer, primary_key=True, index=True)
    absence_id = Column(Integer, ForeignKey("absences.id", ondelete="CASCADE"), index=True, nullable=False)
    file_name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    mime_type = Column(String, nullable=True)
    size = Column(Integer, default=0)
    storage_path = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    absence = relationship("Absence", back_populates="files")
