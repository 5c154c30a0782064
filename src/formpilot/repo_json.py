from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable

from filelock import FileLock
from tinydb import Query, TinyDB

from formpilot.utils import parse_dt, to_iso

FORMS_TABLE = "formConfigs"
SUBMISSIONS_TABLE = "formSubmissions"

FORM_TIMESTAMPS = ("created_at", "last_modified")


def _stored_order(timestamp_key: str):
    # ISO-8601 UTC strings sort chronologically; records without a timestamp go first.
    def key(record: dict[str, Any]) -> tuple[str, str]:
        return (record.get(timestamp_key) or "", record.get("id") or "")

    return key


class JSONRepoBase:
    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterable[TinyDB]:
        with self._lock:
            db = TinyDB(self._path)
            try:
                yield db
            finally:
                db.close()


class JSONFormRepo(JSONRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._db() as db:
            records = db.table(FORMS_TABLE).all()
        records.sort(key=_stored_order("created_at"))
        return [self._from_record(record) for record in records]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            record = db.table(FORMS_TABLE).get(Query().id == form_id)
        return self._from_record(record) if record else None

    def create_form(self, form: dict[str, Any]) -> None:
        record = {"id": form["id"], "config": form.get("config")}
        record.update(self._timestamps(form))
        with self._db() as db:
            db.table(FORMS_TABLE).insert(record)

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        changes = self._timestamps(updates)
        if "config" in updates:
            changes["config"] = updates["config"]
        with self._db() as db:
            forms = db.table(FORMS_TABLE)
            if not forms.update(changes, Query().id == form_id):
                raise KeyError(form_id)
            record = forms.get(Query().id == form_id)
        return self._from_record(record)

    def delete_form(self, form_id: str) -> None:
        with self._db() as db:
            db.table(FORMS_TABLE).remove(Query().id == form_id)

    @staticmethod
    def _timestamps(values: dict[str, Any]) -> dict[str, str | None]:
        return {key: to_iso(parse_dt(values[key])) for key in FORM_TIMESTAMPS if key in values}

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "config": record.get("config"),
            "created_at": parse_dt(record.get("created_at")),
            "last_modified": parse_dt(record.get("last_modified")),
        }


class JSONSubmissionRepo(JSONRepoBase):
    def list_submissions(self, form_id: str | None = None) -> list[dict[str, Any]]:
        with self._db() as db:
            submissions = db.table(SUBMISSIONS_TABLE)
            if form_id is None:
                records = submissions.all()
            else:
                records = submissions.search(Query().form_id == form_id)
        records.sort(key=_stored_order("submitted_at"))
        return [self._from_record(record) for record in records]

    def create_submission(self, submission: dict[str, Any]) -> None:
        record = {
            "id": submission["id"],
            "form_id": submission["form_id"],
            "data": submission["data"],
            "submitted_at": to_iso(parse_dt(submission.get("submitted_at"))),
            "duration_ms": submission.get("duration_ms"),
        }
        with self._db() as db:
            db.table(SUBMISSIONS_TABLE).insert(record)

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record.get("id"),
            "form_id": record.get("form_id"),
            "data": record.get("data") or {},
            "submitted_at": parse_dt(record.get("submitted_at")),
            "duration_ms": record.get("duration_ms"),
        }


class JSONStorage:
    """Both collections live in one TinyDB file guarded by a single file lock."""

    def __init__(self, path: Path) -> None:
        lock = FileLock(f"{path}.lock")
        self.forms = JSONFormRepo(path, lock)
        self.submissions = JSONSubmissionRepo(path, lock)
