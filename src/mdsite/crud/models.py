"""Database table definitions for the render cache"""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class RenderedBody(SQLModel, table=True):
    """Body HTML previously rendered for a document path at a given content hash"""
    __tablename__ = "rendered_bodies"
    path: str = Field(..., primary_key=True)
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    preset: str = Field(..., nullable=False, description="MarkdownIt preset the HTML was rendered with")
    html: str = Field(..., sa_column=Column(Text, nullable=False))
    rendered_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
