from __future__ import annotations

from unittest.mock import MagicMock, patch

from maintlog.logging.error_log import ErrorLogBuffer
from maintlog.models.config_models import AppConfig
from maintlog.models.records import AppData, MachineStatus, RecordType, UserRole
from maintlog.services.aggregator import fetch_history, load_all
from maintlog.sheets.client import SheetClient


def test_load_all_merges_sheets_in_fixed_order(app_config: AppConfig, sheet_session):
    client = SheetClient(app_config, session=sheet_session())

    data = load_all(client)

    assert [e.id for e in data.equipments] == ["ML-1", "ML-2", "MNU-138", "TL-138"]
    assert data.equipments[1].status is MachineStatus.BROKEN
    assert data.equipments[2].status is MachineStatus.WARNING
    assert data.equipments[3].room == "P.05"
    assert [u.username for u in data.users] == ["admin", "nhanvien"]
    assert data.users[0].role is UserRole.TO_TRUONG
    assert [h.machine_id for h in data.history] == ["2", "138", "1"]
    assert data.history[1].type is RecordType.INCIDENT


def test_load_all_issues_one_fetch_per_sheet(app_config: AppConfig, sheet_session):
    session = sheet_session()
    load_all(SheetClient(app_config, session=session))
    sheets = sorted(c.kwargs["params"]["sheet"] for c in session.get.call_args_list)
    assert sheets == ["ML", "MNU", "NHAT_KY_THIET_BI", "TL", "tk"]


def test_transport_failure_on_one_sheet_only_empties_that_sheet(
    app_config: AppConfig, sheet_session, sheet_csv
):
    sheet_csv["MNU"] = 503
    buf = ErrorLogBuffer()
    client = SheetClient(app_config, session=sheet_session(sheet_csv), error_log=buf)

    data = load_all(client)

    assert [e.id for e in data.equipments] == ["ML-1", "ML-2", "TL-138"]
    assert len(data.users) == 2
    assert [r.sheet for r in buf.records if r.error_type == "FETCH_FAILED"] == ["MNU"]


def test_accounts_fetch_rejecting_collapses_everything(app_config: AppConfig, sheet_session):
    client = SheetClient(app_config, session=sheet_session())
    real_fetch = client.fetch_sheet

    def fetch(sheet: str):
        if sheet == "tk":
            raise RuntimeError("accounts sheet exploded")
        return real_fetch(sheet)

    with patch.object(client, "fetch_sheet", side_effect=fetch):
        data = load_all(client)

    assert data == AppData(equipments=[], users=[], history=[])


def test_history_failure_collapses_everything(app_config: AppConfig, sheet_session):
    client = SheetClient(app_config, session=sheet_session())
    with patch("maintlog.services.aggregator.map_history", side_effect=ValueError("boom")):
        data = load_all(client)
    assert data.is_empty()


def test_bad_history_date_is_recorded_not_fatal(app_config: AppConfig, sheet_session):
    buf = ErrorLogBuffer()
    client = SheetClient(app_config, session=sheet_session(), error_log=buf)

    records = fetch_history(client)

    assert len(records) == 3
    date_errors = [r for r in buf.records if r.error_type == "DATE_PARSE"]
    assert len(date_errors) == 1
    assert date_errors[0].row == 2
    assert date_errors[0].sheet == "NHAT_KY_THIET_BI"


def test_progress_notified_per_sheet(app_config: AppConfig, sheet_session):
    progress = MagicMock()
    load_all(SheetClient(app_config, session=sheet_session()), progress=progress)
    assert progress.finish_sheet.call_count == 5
    assert all(c.kwargs["success"] for c in progress.finish_sheet.call_args_list)


def test_repeated_reads_are_structurally_identical(app_config: AppConfig, sheet_session):
    client = SheetClient(app_config, session=sheet_session())
    with patch("maintlog.sheets.mapper.time") as clock:
        clock.time.side_effect = [1716270000.0, 1716270000.5]
        first = load_all(client)
        second = load_all(client)
    assert first.equipments == second.equipments
    assert first.users == second.users
    assert [h.machine_id for h in first.history] == [h.machine_id for h in second.history]
    # synthetic history ids carry the capture instant of each read
    assert [h.id for h in first.history] == ["SHEET-2-1716270000000", "SHEET-1-1716270000000", "SHEET-0-1716270000000"]
    assert all(a.id != b.id for a, b in zip(first.history, second.history))


def test_accounts_and_history_sharing_a_sheet_name_stay_separate(sheet_session):
    cfg = AppConfig(spreadsheet_id="x", accounts_sheet="shared", history_sheet="shared")
    session = sheet_session({"ML": "", "MNU": "", "TL": "", "shared": "tk,mk,Ten\nadmin,1,A\nbob,2,B\n"})

    data = load_all(SheetClient(cfg, session=session))

    assert [u.username for u in data.users] == ["admin", "bob"]
    assert len(data.history) == 2
    assert session.get.call_count == 5


def test_progress_reports_sheet_names(app_config: AppConfig, sheet_session):
    progress = MagicMock()
    load_all(SheetClient(app_config, session=sheet_session()), progress=progress)
    names = sorted(c.args[0] for c in progress.finish_sheet.call_args_list)
    assert names == ["ML", "MNU", "NHAT_KY_THIET_BI", "TL", "tk"]
