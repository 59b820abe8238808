"""
ReadStory Database Package
Async SQLAlchemy persistence for stories and chapters.
"""
from readstory.database.connection import DatabaseManager, db_manager
from readstory.database.models import Base, Chapter, SourceSite, Story
from readstory.database.story_store import ChapterRow, SQLAlchemyStoryStore, StoryStore

__all__ = [
    'db_manager',
    'Base',
    'Chapter',
    'ChapterRow',
    'DatabaseManager',
    'SourceSite',
    'SQLAlchemyStoryStore',
    'Story',
    'StoryStore',
]
