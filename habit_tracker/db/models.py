# habit_tracker/db/models.py
from sqlalchemy import ( Column, Integer, String, ForeignKey, DateTime, Date, Boolean, Text, UniqueConstraint, func )
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

DEFAULT_COLOR = "#3b82f6"

class Habit(Base):
    __tablename__ = "habits"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    logs = relationship("HabitLog", back_populates="habit", cascade="all, delete-orphan", passive_deletes=True)

class HabitLog(Base):
    __tablename__ = "habit_logs"
    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    # One completion record per habit per calendar day
    __table_args__ = ( UniqueConstraint("habit_id", "date", name="uq_habit_logs_habit_date"), )
    habit = relationship("Habit", back_populates="logs")

class PredefinedHabit(Base):
    __tablename__ = "predefined_habits"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
