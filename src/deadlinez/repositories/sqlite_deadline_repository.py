# Rev 0.2.0
# deadlineZ – SQLiteDeadlineRepository (Rev 0.2.0, schema 0001_init)
from __future__ import annotations
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..models.codec import parse_date, parse_datetime
from ..models.entities import (
    Project,
    SubDeadline,
    Subtask,
    Template,
    TemplateSubDeadline,
    TemplateTrigger,
    TimeOffset,
    Trigger,
)
from ..utils.logging_setup import get_logger


def _id(v: Optional[str]) -> Optional[uuid.UUID]:
    return uuid.UUID(v) if v else None


def _txt(v: Optional[uuid.UUID]) -> Optional[str]:
    return str(v) if v is not None else None


class SQLiteDeadlineRepository:
    """
    Persistence for the three collections.
    load_*() returns full records; save_*() replaces the whole collection
    in one transaction. save_all() writes triggers before projects.
    """

    def __init__(self, db_or_conn):
        self._db_or_conn = db_or_conn
        self._log = get_logger("SQLiteDeadlineRepository")

    # --------------- connection helpers ---------------
    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        if hasattr(self._db_or_conn, "conn") and isinstance(self._db_or_conn.conn, sqlite3.Connection):
            return self._db_or_conn.conn
        raise RuntimeError("SQLiteDeadlineRepository: unable to obtain sqlite3.Connection (.conn expected).")

    @contextmanager
    def _tx(self) -> Iterator[sqlite3.Connection]:
        con = self._conn()
        con.execute("BEGIN;")
        try:
            yield con
        except Exception:
            con.rollback()
            raise
        else:
            con.commit()

    @staticmethod
    def _fetch_all(con: sqlite3.Connection, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        cur = con.execute(sql, params)
        cols = [d[0] for d in cur.description]
        return [{cols[i]: row[i] for i in range(len(cols))} for row in cur.fetchall()]

    # --------------- projects ---------------
    def load_projects(self) -> List[Project]:
        con = self._conn()
        subtasks: Dict[str, List[Subtask]] = {}
        for r in self._fetch_all(con, "SELECT * FROM subtasks ORDER BY position"):
            subtasks.setdefault(r["sub_deadline_id"], []).append(
                Subtask(id=uuid.UUID(r["id"]), title=r["title"], is_completed=bool(r["is_completed"]))
            )
        subs: Dict[str, List[SubDeadline]] = {}
        for r in self._fetch_all(con, "SELECT * FROM sub_deadlines ORDER BY position"):
            subs.setdefault(r["project_id"], []).append(
                SubDeadline(
                    id=uuid.UUID(r["id"]),
                    title=r["title"],
                    date=parse_date(r["date"]),
                    is_completed=bool(r["is_completed"]),
                    subtasks=subtasks.get(r["id"], []),
                    template_sub_deadline_id=_id(r["template_sub_deadline_id"]),
                    trigger_id=_id(r["trigger_id"]),
                )
            )
        return [
            Project(
                id=uuid.UUID(r["id"]),
                title=r["title"],
                final_deadline=parse_date(r["final_deadline"]),
                sub_deadlines=subs.get(r["id"], []),
                template_id=_id(r["template_id"]),
                template_name=r["template_name"],
                is_completed_flag=bool(r["is_completed_flag"]),
            )
            for r in self._fetch_all(con, "SELECT * FROM projects ORDER BY position")
        ]

    def save_projects(self, projects: Iterable[Project]) -> None:
        projects = list(projects)
        with self._tx() as con:
            self._write_projects(con, projects)
        self._log.info("Saved %d project(s)", len(projects))

    def _write_projects(self, con: sqlite3.Connection, projects: List[Project]) -> None:
        con.execute("DELETE FROM subtasks;")
        con.execute("DELETE FROM sub_deadlines;")
        con.execute("DELETE FROM projects;")
        for pos, p in enumerate(projects):
            con.execute(
                """
                INSERT INTO projects(id, title, final_deadline, template_id, template_name, is_completed_flag, position)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (str(p.id), p.title, p.final_deadline.isoformat(), _txt(p.template_id), p.template_name,
                 int(p.is_completed_flag), pos),
            )
            for spos, s in enumerate(p.sub_deadlines):
                con.execute(
                    """
                    INSERT INTO sub_deadlines(id, project_id, title, date, is_completed,
                                              template_sub_deadline_id, trigger_id, position)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (str(s.id), str(p.id), s.title, s.date.isoformat(), int(s.is_completed),
                     _txt(s.template_sub_deadline_id), _txt(s.trigger_id), spos),
                )
                con.executemany(
                    "INSERT INTO subtasks(id, sub_deadline_id, title, is_completed, position) VALUES (?, ?, ?, ?, ?)",
                    [(str(st.id), str(s.id), st.title, int(st.is_completed), i) for i, st in enumerate(s.subtasks)],
                )

    # --------------- templates ---------------
    def load_templates(self) -> List[Template]:
        con = self._conn()
        trigs: Dict[str, List[TemplateTrigger]] = {}
        for r in self._fetch_all(con, "SELECT * FROM template_triggers ORDER BY position"):
            trigs.setdefault(r["template_id"], []).append(
                TemplateTrigger(id=uuid.UUID(r["id"]), name=r["name"], offset=self._offset(r))
            )
        subs: Dict[str, List[TemplateSubDeadline]] = {}
        for r in self._fetch_all(con, "SELECT * FROM template_sub_deadlines ORDER BY position"):
            subs.setdefault(r["template_id"], []).append(
                TemplateSubDeadline(
                    id=uuid.UUID(r["id"]),
                    title=r["title"],
                    offset=self._offset(r),
                    template_trigger_id=_id(r["template_trigger_id"]),
                )
            )
        return [
            Template(
                id=uuid.UUID(r["id"]),
                name=r["name"],
                sub_deadlines=subs.get(r["id"], []),
                template_triggers=trigs.get(r["id"], []),
            )
            for r in self._fetch_all(con, "SELECT * FROM templates ORDER BY position")
        ]

    def save_templates(self, templates: Iterable[Template]) -> None:
        templates = list(templates)
        with self._tx() as con:
            self._write_templates(con, templates)
        self._log.info("Saved %d template(s)", len(templates))

    def _write_templates(self, con: sqlite3.Connection, templates: List[Template]) -> None:
        con.execute("DELETE FROM template_sub_deadlines;")
        con.execute("DELETE FROM template_triggers;")
        con.execute("DELETE FROM templates;")
        for pos, t in enumerate(templates):
            con.execute("INSERT INTO templates(id, name, position) VALUES (?, ?, ?)", (str(t.id), t.name, pos))
            con.executemany(
                """
                INSERT INTO template_triggers(id, template_id, name, offset_value, offset_unit, offset_before, position)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (str(tt.id), str(t.id), tt.name, tt.offset.value, tt.offset.unit, int(tt.offset.before), i)
                    for i, tt in enumerate(t.template_triggers)
                ],
            )
            con.executemany(
                """
                INSERT INTO template_sub_deadlines(id, template_id, title, offset_value, offset_unit,
                                                   offset_before, template_trigger_id, position)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (str(s.id), str(t.id), s.title, s.offset.value, s.offset.unit, int(s.offset.before),
                     _txt(s.template_trigger_id), i)
                    for i, s in enumerate(t.sub_deadlines)
                ],
            )

    @staticmethod
    def _offset(r: Dict[str, Any]) -> TimeOffset:
        return TimeOffset(value=int(r["offset_value"]), unit=r["offset_unit"], before=bool(r["offset_before"]))

    # --------------- triggers ---------------
    def load_triggers(self) -> List[Trigger]:
        return [
            Trigger(
                id=uuid.UUID(r["id"]),
                name=r["name"],
                project_id=uuid.UUID(r["project_id"]),
                is_active=bool(r["is_active"]),
                activation_date=parse_datetime(r["activation_date"]),
                date=parse_date(r["date"]),
                originating_template_trigger_id=_id(r["originating_template_trigger_id"]),
            )
            for r in self._fetch_all(self._conn(), "SELECT * FROM triggers ORDER BY position")
        ]

    def save_triggers(self, triggers: Iterable[Trigger]) -> None:
        triggers = list(triggers)
        with self._tx() as con:
            self._write_triggers(con, triggers)
        self._log.info("Saved %d trigger(s)", len(triggers))

    def _write_triggers(self, con: sqlite3.Connection, triggers: List[Trigger]) -> None:
        con.execute("DELETE FROM triggers;")
        con.executemany(
            """
            INSERT INTO triggers(id, project_id, name, is_active, activation_date, date,
                                 originating_template_trigger_id, position)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (str(t.id), str(t.project_id), t.name, int(t.is_active),
                 t.activation_date.isoformat() if t.activation_date else None,
                 t.date.isoformat() if t.date else None,
                 _txt(t.originating_template_trigger_id), i)
                for i, t in enumerate(triggers)
            ],
        )

    # --------------- everything ---------------
    def save_all(self, projects: Iterable[Project], templates: Iterable[Template], triggers: Iterable[Trigger]) -> None:
        """One transaction; triggers first so no project is stored without them."""
        with self._tx() as con:
            self._write_triggers(con, list(triggers))
            self._write_projects(con, list(projects))
            self._write_templates(con, list(templates))
        self._log.info("Saved all collections")
