from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from calendar_engine.models import EventCategory


class LearningResource(BaseModel):
    id: str
    title: str
    path: str
    category: EventCategory
    duration: int = Field(..., gt=0)


def _course(id: str, title: str, category: EventCategory, duration: int) -> LearningResource:
    return LearningResource(id=id, title=title, path=f"/learning/courses/{id}", category=category, duration=duration)


LEARNING_RESOURCES: List[LearningResource] = [
    _course("economics", "Economics Basics", "finance", 60),
    _course("vehicle-maintenance", "Vehicle Maintenance", "personal", 45),
    _course("home-maintenance", "Home Maintenance", "personal", 50),
    _course("cooking-basics", "Cooking Basics", "personal", 40),
    _course("health-wellness", "Health & Wellness", "health", 30),
    _course("critical-thinking", "Critical Thinking", "school", 55),
    _course("conflict-resolution", "Conflict Resolution", "work", 40),
    _course("decision-making", "Decision Making", "work", 45),
    _course("time-management", "Time Management", "work", 35),
    _course("coping-with-failure", "Coping with Failure", "personal", 40),
    _course("conversation-skills", "Conversation Skills", "personal", 30),
    _course("forming-positive-habits", "Positive Habits", "health", 45),
    _course("utilities-guide", "Utilities Guide", "finance", 30),
    _course("shopping-buddy", "Shopping Buddy", "finance", 25),
    _course("repair-assistant", "Repair Assistant", "personal", 35),
]

EVENT_CATEGORIES: List[EventCategory] = [
    "work", "personal", "family", "school", "health", "finance", "other", "general",
]

DATE_RANGE_DAYS = 30
LEARNING_RESOURCE_CHANCE = 0.25


class SyntheticEvent(BaseModel):
    id: Optional[str] = None
    title: str
    category: EventCategory
    date: datetime
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    learning_resource_id: Optional[str] = None

    @property
    def duration_min(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


def generate_random_event(rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> SyntheticEvent:
    """
    One random event within the next 30 days: start on a 15-minute boundary,
    30 to 180 minutes long, with a 25% chance of being a learning-resource
    session (which dictates title and category).
    """
    rng = rng or random.Random()
    now = now or datetime.now()

    day = now + timedelta(seconds=rng.random() * DATE_RANGE_DAYS * 86400)
    start = day.replace(hour=rng.randrange(24), minute=rng.randrange(4) * 15, second=0, microsecond=0)
    end = start + timedelta(minutes=rng.randint(1, 6) * 30)

    resource = rng.choice(LEARNING_RESOURCES) if rng.random() < LEARNING_RESOURCE_CHANCE else None
    if resource is not None:
        title = f"Learn: {resource.title}"
        category = resource.category
        location = f"Online course: {resource.title}"
    else:
        title = f"Test Event {rng.randrange(10000)}"
        category = rng.choice(EVENT_CATEGORIES)
        location = f"Location {rng.randrange(100)}" if rng.random() < 0.5 else None

    return SyntheticEvent(
        id=f"test-event-{int(now.timestamp() * 1000)}-{rng.randrange(1000)}",
        title=title,
        category=category,
        date=day,
        start_time=start,
        end_time=end,
        location=location,
        description=f"Test description {rng.randrange(10000)}" if rng.random() < 0.7 else None,
        learning_resource_id=resource.id if resource else None,
    )


def generate_random_events(
    count: int, rng: Optional[random.Random] = None, now: Optional[datetime] = None
) -> List[SyntheticEvent]:
    rng = rng or random.Random()
    return [generate_random_event(rng, now) for _ in range(count)]
