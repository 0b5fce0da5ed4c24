"""
Database Models
===============
SQLAlchemy ORM models for the chat event log and platform reference data.
"""

from backend.models.base import Base
from backend.models.events import ChatMessage
from backend.models.reference import AIModel, Course, File, Module, ProfessorCourse

__all__ = [
    "Base",
    "ChatMessage",
    "Course",
    "Module",
    "ProfessorCourse",
    "AIModel",
    "File",
]
