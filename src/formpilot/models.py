from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class FormConfigModel(Base):
    __tablename__ = "form_configs"

    id = Column(String, primary_key=True)
    config_json = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_modified = Column(DateTime(timezone=True), nullable=True)


class FormSubmissionModel(Base):
    __tablename__ = "form_submissions"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    data_json = Column(Text)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    duration_ms = Column(Integer, nullable=True)
