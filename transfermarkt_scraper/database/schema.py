"""
Database Schema
SQLAlchemy Tabellen für die Dokument-Collections des Scrapers

Jede Collection ist eine Tabelle (id, doc, updated_at); das Dokument ist das
JSON-Abbild des jeweiligen Pydantic-Modells.
"""

from sqlalchemy import Column, DateTime, Index, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class DocumentMixin:
    id = Column(Text, primary_key=True)
    doc = Column(JSONB, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CountryDocument(DocumentMixin, Base):
    __tablename__ = "countries"


class CompetitionDocument(DocumentMixin, Base):
    __tablename__ = "competitions"


class ClubDocument(DocumentMixin, Base):
    __tablename__ = "clubs"


class PlayerDocument(DocumentMixin, Base):
    __tablename__ = "players"


class PlayerStatDocument(DocumentMixin, Base):
    __tablename__ = "player_stats"


# GIN-Indizes für @>-Abfragen (find mit Prädikat)
for _model in (CountryDocument, CompetitionDocument, ClubDocument, PlayerDocument, PlayerStatDocument):
    Index(f"ix_{_model.__tablename__}_doc", _model.doc, postgresql_using="gin")

COLLECTIONS: tuple[str, ...] = tuple(Base.metadata.tables)
