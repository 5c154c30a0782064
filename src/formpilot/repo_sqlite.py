from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from formpilot.models import Base, FormConfigModel, FormSubmissionModel
from formpilot.utils import dumps_json, loads_json, parse_dt


class SQLiteFormRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def list_forms(self) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = (
                session.query(FormConfigModel)
                .order_by(FormConfigModel.created_at.asc(), FormConfigModel.id.asc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(FormConfigModel, form_id)
            return self._to_dict(row) if row else None

    def create_form(self, form: dict[str, Any]) -> None:
        with self._Session() as session:
            row = FormConfigModel(
                id=form["id"],
                config_json=dumps_json(form["config"]),
                created_at=form.get("created_at"),
                last_modified=form.get("last_modified"),
            )
            session.add(row)
            session.commit()

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(FormConfigModel, form_id)
            if not row:
                raise KeyError(form_id)
            if "config" in updates:
                row.config_json = dumps_json(updates["config"])
            if "last_modified" in updates:
                row.last_modified = updates["last_modified"]
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> None:
        with self._Session() as session:
            row = session.get(FormConfigModel, form_id)
            if row:
                session.delete(row)
                session.commit()

    @staticmethod
    def _to_dict(row: FormConfigModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "config": loads_json(row.config_json),
            "created_at": parse_dt(row.created_at),
            "last_modified": parse_dt(row.last_modified),
        }


class SQLiteSubmissionRepo:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def list_submissions(self, form_id: str | None = None) -> list[dict[str, Any]]:
        with self._Session() as session:
            query = session.query(FormSubmissionModel)
            if form_id is not None:
                query = query.filter(FormSubmissionModel.form_id == form_id)
            rows = query.order_by(
                FormSubmissionModel.submitted_at.asc(), FormSubmissionModel.id.asc()
            ).all()
            return [self._to_dict(row) for row in rows]

    def create_submission(self, submission: dict[str, Any]) -> None:
        with self._Session() as session:
            row = FormSubmissionModel(
                id=submission["id"],
                form_id=submission["form_id"],
                data_json=dumps_json(submission["data"]),
                submitted_at=submission.get("submitted_at"),
                duration_ms=submission.get("duration_ms"),
            )
            session.add(row)
            session.commit()

    @staticmethod
    def _to_dict(row: FormSubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "data": loads_json(row.data_json) or {},
            "submitted_at": parse_dt(row.submitted_at),
            "duration_ms": row.duration_ms,
        }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)
