# habit_tracker/db/seed.py
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habit_tracker.db import models

logger = logging.getLogger(__name__)

PREDEFINED_HABITS = [
    ("Exercise", "Daily physical activity to stay healthy and fit", "#10b981"),
    ("Read", "Read books, articles, or educational content daily", "#3b82f6"),
    ("Meditate", "Practice mindfulness and meditation for mental clarity", "#8b5cf6"),
    ("Drink Water", "Stay hydrated by drinking enough water throughout the day", "#06b6d4"),
    ("Journal", "Write down thoughts, gratitude, or daily reflections", "#f59e0b"),
    ("Eat Healthy", "Make conscious choices about nutrition and meals", "#10b981"),
    ("Sleep Early", "Maintain a consistent sleep schedule for better rest", "#8b5cf6"),
    ("Learn Something New", "Dedicate time to learning a new skill or topic", "#3b82f6"),
    ("Practice Gratitude", "Express gratitude for the positive things in life", "#ec4899"),
    ("Stretch", "Do stretching exercises to improve flexibility", "#f97316"),
    ("Limit Screen Time", "Reduce time spent on phones, tablets, or computers", "#ef4444"),
    ("Connect with Family", "Spend quality time with family members", "#10b981"),
    ("Practice a Hobby", "Engage in activities you enjoy and are passionate about", "#8b5cf6"),
    ("Take a Walk", "Go for a walk to get fresh air and light exercise", "#06b6d4"),
    ("Plan Your Day", "Organize and plan tasks for better productivity", "#f59e0b"),
]


def seed_predefined_habits(db: Session) -> int:
    """Insert the habit templates once. Returns how many rows were added."""
    if db.query(models.PredefinedHabit).first() is not None:
        logger.info("Predefined habits already exist, skipping seed")
        return 0

    inserted = 0
    for order, (name, description, color) in enumerate(PREDEFINED_HABITS, start=1):
        db.add(models.PredefinedHabit(name=name, description=description, color=color, display_order=order))
        try:
            db.commit()
            inserted += 1
        except IntegrityError:
            # another process seeded this name concurrently
            db.rollback()
            logger.info("Skipped predefined habit %r (already exists)", name)
    logger.info("Seeded %d predefined habits", inserted)
    return inserted
