"""SQLAlchemy database models."""
from dotenv import load_dotenv

from newsroom.models.article import Article
from newsroom.models.base import Base
from newsroom.models.run import ArticleRun

load_dotenv()

__all__ = [
    "Base",
    "Article",
    "ArticleRun",
]
