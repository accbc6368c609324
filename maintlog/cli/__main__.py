from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd
import requests

from maintlog.config.loader import ConfigError, load_config, load_env_file
from maintlog.logging.error_log import ErrorLogBuffer
from maintlog.logging.init import log_summary, set_debug, setup_logging
from maintlog.models.config_models import AppConfig
from maintlog.models.error_record import FETCH_FAILED
from maintlog.models.load_result import LoadSummary
from maintlog.models.records import AppData, Equipment, EquipmentKey, EquipmentType, MachineStatus
from maintlog.services.aggregator import EQUIPMENT_SHEETS, fetch_history, load_all
from maintlog.services.catalog import (
    area_for_department,
    available_areas,
    available_departments,
    filter_equipment,
    find_equipment,
    new_incident_count,
    records_since,
    thumbnail_url,
)
from maintlog.services.progress import ProgressTracker
from maintlog.services.reports import (
    FAILURE_MESSAGE,
    NOTES_FORM_FIELD,
    FormType,
    build_report_payload,
    encode_photo,
    success_message,
)
from maintlog.services.session import AppState, SessionError, SessionStore
from maintlog.services.summary import equipment_frame, history_frame, render_summary_line, status_table
from maintlog.sheets.client import SheetClient

"""CLI entrypoint.

Flow per invocation:
- load ``.env`` and the YAML config
- restore the session (AppState.init)
- run one command against the spreadsheet
- flush the error log buffer (only written when something degraded)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

Handler = Callable[[argparse.Namespace, AppConfig, SheetClient, AppState], int]


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="maintlog", description="Refrigeration/HVAC maintenance log")
    p.add_argument("--config", type=Path, default=None, help="YAML config file (default: config/maintlog.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command")

    s = sub.add_parser("sync", help="Load every sheet and print the SUMMARY line")
    s.add_argument("--table", action="store_true", help="Also print equipment counts per status")

    s = sub.add_parser("inspect", help="Print a sheet's headers and first rows")
    s.add_argument("sheet")
    s.add_argument("--rows", type=int, default=3)

    s = sub.add_parser("equipment", help="List equipment")
    s.add_argument("--type", type=EquipmentType.from_code, default=None, metavar="{ML,MNU,TL}")
    s.add_argument("--status", choices=[m.name for m in MachineStatus], default=None)
    s.add_argument("--area", default=None)
    s.add_argument("--department", default=None)
    s.add_argument("--search", default="")
    s.add_argument("--id", dest="equipment_id", default=None, help="Show one machine's details (e.g. ML-1)")
    s.add_argument("--list-areas", action="store_true", help="List the areas of one equipment type")
    s.add_argument("--list-departments", action="store_true", help="List departments (within --area if given)")

    s = sub.add_parser("history", help="List the activity log, most recent first")
    s.add_argument("--incidents", action="store_true", help="Only incident reports")
    s.add_argument("--recent-hours", type=float, default=None)
    s.add_argument("--limit", type=int, default=20)

    s = sub.add_parser("login", help="Log in with an account from the accounts sheet")
    s.add_argument("username")
    s.add_argument("--password", required=True)

    sub.add_parser("logout", help="Forget the current session")
    sub.add_parser("whoami", help="Show the logged-in user")

    s = sub.add_parser("report", help="Submit a daily check or an incident report")
    s.add_argument("machine_id", help="Namespaced machine id, e.g. MNU-138")
    s.add_argument("--incident", action="store_true")
    s.add_argument("--note", default="")
    s.add_argument("--field", action="append", default=[], metavar="KEY=VALUE")
    s.add_argument("--photo", type=Path, default=None)

    args = p.parse_args(argv)
    if args.command is None:
        args.command = "sync"
        args.table = False
    return args


def _load(client: SheetClient) -> tuple[AppData, ProgressTracker]:
    total = len(EQUIPMENT_SHEETS) + 2
    with ProgressTracker(total) as progress:
        data = load_all(client, progress=progress)
    return data, progress


def _failed_sheets(client: SheetClient, progress: ProgressTracker) -> list[str]:
    """Sheets whose fetch failed, either absorbed by the client or raised."""
    names = set(progress.failed)
    if client.error_log is not None:
        names.update(r.sheet for r in client.error_log.records if r.error_type == FETCH_FAILED)
    return sorted(names)


def _cmd_sync(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    start = datetime.now(UTC)
    data, progress = _load(client)
    end = datetime.now(UTC)
    incidents = new_incident_count(data.history)
    summary = LoadSummary.from_data(
        data, start, end, incidents=incidents, failed_sheets=_failed_sheets(client, progress)
    )
    if summary.failed_sheets:
        setup_logging().warning(f"sync: sheets not loaded: {', '.join(summary.failed_sheets)}")
    if state.is_leader and incidents:
        print(f"Có {incidents} sự cố mới!")
    if args.table:
        print(status_table(data.equipments).to_string())
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(summary)[len("SUMMARY "):])
    return EXIT_SUCCESS


def _cmd_inspect(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    logger = setup_logging()
    try:
        sheet = client.fetch_sheet_data(args.sheet)
    except requests.RequestException as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"SHEET: {sheet.sheet_name} cols={sheet.columns} rows={len(sheet.rows)}")
    columns = list(dict.fromkeys(sheet.columns))
    sample = pd.DataFrame(sheet.rows[: args.rows], columns=columns)
    if not sample.empty:
        print(sample.to_string(index=False))
    return EXIT_SUCCESS


def _show_equipment(item: Equipment) -> None:
    print(f"{item.id} [{item.type.value}] {item.status.value}")
    for key, value in item.details.items():
        if value:
            print(f"  {key}: {value}")
    thumb = thumbnail_url(item.details)
    if thumb:
        print(f"  thumbnail: {thumb}")


def _parse_key(text: str) -> EquipmentKey:
    """Raises ValueError with a readable message for ids like ``138`` or ``XX-1``."""
    try:
        return EquipmentKey.parse(text)
    except ValueError as e:
        codes = ", ".join(t.code for t in EquipmentType)
        raise ValueError(f"{e} (expected <{codes}>-<number>, e.g. MNU-138)") from e


def _cmd_equipment(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    logger = setup_logging()
    if args.equipment_id:
        try:
            key = _parse_key(args.equipment_id)
        except ValueError as e:
            logger.error(f"equipment: {e}")
            return EXIT_FATAL
    if (args.list_areas or args.list_departments) and args.type is None:
        logger.error("equipment: --list-areas/--list-departments need --type")
        return EXIT_FATAL

    data, _ = _load(client)
    if args.equipment_id:
        item = find_equipment(data.equipments, str(key))
        if item is None:
            logger.error(f"equipment not found: {key}")
            return EXIT_FATAL
        _show_equipment(item)
        return EXIT_SUCCESS

    if args.list_areas:
        for name in available_areas(data.equipments, args.type):
            print(name)
        return EXIT_SUCCESS
    if args.list_departments:
        for name in available_departments(data.equipments, args.type, area=args.area):
            print(name)
        return EXIT_SUCCESS

    area = args.area
    if args.department and area is None and args.type is not None:
        # picking a department narrows the area to the one it sits in
        area = area_for_department(data.equipments, args.type, args.department)
        if area is not None:
            logger.info(f"equipment: area set to {area} for {args.department}")

    items = filter_equipment(
        data.equipments,
        type_=args.type,
        status=MachineStatus[args.status] if args.status else None,
        area=area,
        department=args.department,
        search=args.search,
    )
    if items:
        print(equipment_frame(items).to_string(index=False))
    logger.info(f"equipment: {len(items)} máy")
    return EXIT_SUCCESS


def _cmd_history(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    logger = setup_logging()
    records = fetch_history(client)
    if args.recent_hours is not None:
        records = records_since(records, hours=args.recent_hours)
    if args.incidents:
        records = [r for r in records if r.is_incident]
    shown = records[: args.limit] if args.limit > 0 else records
    if shown:
        print(history_frame(shown).to_string(index=False))
    logger.info(f"history: {len(shown)}/{len(records)} records")
    return EXIT_SUCCESS


def _cmd_login(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    logger = setup_logging()
    state.data, _ = _load(client)
    try:
        user = state.login(args.username, args.password)
    except SessionError as e:
        logger.error(f"login: {e}")
        return EXIT_FATAL
    print(f"{user.full_name} ({user.role.value}, {user.department})")
    return EXIT_SUCCESS


def _cmd_logout(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    state.logout()
    setup_logging().info("logged out")
    return EXIT_SUCCESS


def _cmd_whoami(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    if state.user is None:
        setup_logging().info("not logged in")
        return EXIT_FATAL
    user = state.user
    leader = " leader" if state.is_leader else ""
    print(f"{user.username}: {user.full_name} ({user.role.value}{leader}, {user.department})")
    return EXIT_SUCCESS


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        fields[key.strip()] = value.strip()
    return fields


def _cmd_report(args: argparse.Namespace, cfg: AppConfig, client: SheetClient, state: AppState) -> int:
    logger = setup_logging()
    try:
        user = state.require_user()
        key = _parse_key(args.machine_id)
        form_data = _parse_fields(args.field)
    except (SessionError, ValueError) as e:
        logger.error(f"report: {e}")
        return EXIT_FATAL
    if args.note:
        form_data[NOTES_FORM_FIELD] = args.note

    data, _ = _load(client)
    equipment = find_equipment(data.equipments, str(key))
    if equipment is None:
        logger.error(f"report: equipment not found: {key}")
        return EXIT_FATAL

    photo = None
    if args.photo is not None:
        try:
            photo = encode_photo(args.photo)
        except OSError as e:
            logger.error(f"report: cannot read photo {args.photo}: {e}")
            return EXIT_FATAL

    form_type = FormType.INCIDENT if args.incident else FormType.CHECKIN
    payload = build_report_payload(
        form_type,
        equipment,
        user,
        form_data=form_data,
        photo_data=photo,
        sheet=cfg.history_sheet,
        drive_folder_url=cfg.drive_folder_url,
    )
    if not client.submit_report(payload):
        logger.error(FAILURE_MESSAGE)
        return EXIT_FATAL
    logger.info(success_message(form_type))
    refreshed = fetch_history(client)
    logger.info(f"history: {len(refreshed)} records")
    return EXIT_SUCCESS


HANDLERS: dict[str, Handler] = {
    "sync": _cmd_sync,
    "inspect": _cmd_inspect,
    "equipment": _cmd_equipment,
    "history": _cmd_history,
    "login": _cmd_login,
    "logout": _cmd_logout,
    "whoami": _cmd_whoami,
    "report": _cmd_report,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: only read sys.argv when argv is None; an empty list means "no args"
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    load_env_file(Path(".env"))
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    error_log = ErrorLogBuffer()
    state = AppState(SessionStore(Path(cfg.session_file))).init()
    with SheetClient(cfg, error_log=error_log) as client:
        code = HANDLERS[args.command](args, cfg, client, state)

    path = error_log.flush()
    if path is not None:
        logger.info(f"error log written: {path}")
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
