import datetime

import pytest
from sqlmodel import Session, select

from recurring_planner.core.errors import PlannerError
from recurring_planner.models import Occurrence, RecurrenceTemplate, Todo
from recurring_planner.services import occurrence_service, template_service, todo_service
from recurring_planner.services.maintenance_service import (
    backup_database,
    clear_database,
    count_rows,
    default_backup_path,
    load_seed_file,
    seed_from_data,
)

SEED_TOML = """
[[templates]]
title = "Standup"
anchor_date = "2026-01-05"
time = "09:15"
pattern = { kind = "weekly", weekdays = ["mon", "wed", "fri"] }

[[templates]]
title = "Rent"
anchor_date = 2026-01-01
pattern = { kind = "monthly_day", days = [1] }

[[todos]]
title = "Pay rent"
due_date = "2026-01-01"
"""


def _populate(db):
    template = template_service.create_template(
        db,
        {"title": "Gym", "anchor_date": "2026-01-01", "pattern": {"kind": "every_n_days", "interval": 2}},
    )
    template_service.add_exception(db, template.id, datetime.date(2026, 1, 3))
    occurrence_service.set_status(db, template.id, datetime.date(2026, 1, 1), "done")
    todo_service.create_todo(db, "Pay rent", "2026-01-01")
    return template


def test_default_backup_path_uses_date():
    assert default_backup_path(datetime.datetime(2026, 3, 4, 10, 0)) == "backup_2026_03_04.db"


def test_backup_copies_every_row(engine, db, tmp_path):
    _populate(db)
    target = tmp_path / "backup.db"

    counts = backup_database(engine.url.render_as_string(hide_password=False), str(target))

    assert counts == count_rows(engine)
    assert counts == {"recurrence_template": 1, "template_exception": 1, "occurrence": 1, "todo": 1}
    with pytest.raises(FileExistsError):
        backup_database(engine.url.render_as_string(hide_password=False), str(target))


def test_clear_database_removes_all_rows(engine, db):
    _populate(db)

    cleared = clear_database(db)

    assert cleared["occurrence"] == 1
    assert count_rows(engine) == {"recurrence_template": 0, "template_exception": 0, "occurrence": 0, "todo": 0}


def test_seed_file_loads_and_skips_existing_templates(db, tmp_path):
    seed_path = tmp_path / "seed.toml"
    seed_path.write_text(SEED_TOML, encoding="utf-8")
    data = load_seed_file(str(seed_path))

    first = seed_from_data(db, data)
    second = seed_from_data(db, data)

    assert first[0] == "Seeded template 'Standup'"
    assert "Skipped template 'Standup' (already exists)" in second
    titles = sorted(template.title for template in db.exec(select(RecurrenceTemplate)).all())
    assert titles == ["Rent", "Standup"]
    assert "Skipped todo 'Pay rent' for 2026-01-01 (already exists)" in second
    assert len(db.exec(select(Todo)).all()) == 1
    assert db.exec(select(Occurrence)).all() == []


def test_seed_with_invalid_entry_writes_nothing(engine, db):
    data = {
        "templates": [
            {"title": "Standup", "anchor_date": "2026-01-05", "pattern": {"kind": "weekly", "weekdays": ["mon"]}},
            {"title": "Broken", "anchor_date": "2026-01-05", "pattern": {"kind": "hourly"}},
        ],
        "todos": [{"title": "Pay rent", "due_date": "2026-01-01"}],
    }

    with pytest.raises(PlannerError, match="Broken"):
        seed_from_data(db, data)

    assert count_rows(engine) == {"recurrence_template": 0, "template_exception": 0, "occurrence": 0, "todo": 0}


def test_seed_skips_duplicate_todos_within_one_file(db):
    entry = {"title": "Pay rent", "due_date": "2026-01-01"}

    messages = seed_from_data(db, {"todos": [entry, dict(entry), {"title": "Pay rent", "due_date": "2026-02-01"}]})

    assert messages[1] == "Skipped todo 'Pay rent' for 2026-01-01 (already exists)"
    assert sorted(todo.due_date for todo in db.exec(select(Todo)).all()) == [
        datetime.date(2026, 1, 1),
        datetime.date(2026, 2, 1),
    ]
