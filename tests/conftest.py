# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest
import requests

from maintlog.logging.init import reset_logging
from maintlog.models.config_models import AppConfig


ML_CSV = (
    "STT,Máy số,Khu vực,Khoa/Phòng,Phòng,Hiệu,Model,Tình trạng,MTS 2025\r\n"
    "1,1,KHU B LẦU 10B1,Khoa Nội tổng quát (10B1),Phòng Số 1,Reetech,DT9-DE-A,Máy cũ,DC42818/19.0009\r\n"
    "2,2,KHU B LẦU 10B1,Khoa Nội tổng quát (10B1),Phòng Số 2,Daikin,FTKC25,Hỏng,\r\n"
    ",,,,,,,,\r\n"
    ",,KHU A,Khoa Dược,Kho,LG,,,\r\n"
)

MNU_CSV = (
    "STT,Máy số,MTS QT 2025,Khu vực,Khoa/Phòng,Phòng,Hiệu,Tình trạng\n"
    "1,138,QT-01,KHU A,Khoa Cấp cứu,P.101,Kangaroo,Cần chú ý\n"
)

TL_CSV = (
    "STT,Máy số,Khu vực,Khoa,Số phòng,Brand,Model may,Tinh trang\n"
    "1,138,KHU C,Khoa Xét nghiệm,P.05,Sanyo,SR-200,Bình thường"
)

ACCOUNTS_CSV = (
    "tk,mk,Ten,role,donvi\n"
    "admin,123,Quản trị viên,Tổ trưởng,Phòng Hành chính\n"
    "nhanvien,,Phạm Nhân Viên,,Đội Bảo Trì\n"
)

HISTORY_CSV = (
    "Ngày,Giờ,Loại báo cáo,Máy số,Loại máy,KTV thực hiện,Ghi chú,Link Ảnh Thực Tế\n"
    "21/5/2025,08:30,Kiểm tra hằng ngày,1,Máy Lạnh,Phạm Nhân Viên,Bình thường,\n"
    '22/5/2025,14:05,Báo cáo sự cố,138,Máy Nước Uống,Phạm Nhân Viên,"Rò nước, cần thay van",'
    "https://drive.google.com/file/d/abc123/view\n"
    "abc,,Kiểm tra hằng ngày,2,Máy Lạnh,KTV A,,\n"
)

SHEETS = {
    "ML": ML_CSV,
    "MNU": MNU_CSV,
    "TL": TL_CSV,
    "tk": ACCOUNTS_CSV,
    "NHAT_KY_THIET_BI": HISTORY_CSV,
}


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("MAINTLOG_SPREADSHEET_ID", raising=False)
        monkeypatch.delenv("MAINTLOG_SCRIPT_URL", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """spreadsheet_id: test-sheet-id
script_url: https://script.example.test/exec
history_sheet: NHAT_KY_THIET_BI
accounts_sheet: tk
request_timeout: 5
session_file: .maintlog/session.json
aliases:
  room: ["Phòng", "Số phòng", "Room"]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "maintlog.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def app_config() -> AppConfig:
    return AppConfig(spreadsheet_id="test-sheet-id", script_url="https://script.example.test/exec")


def make_response(text: str = "", status: int = 200) -> MagicMock:
    response = MagicMock()
    response.text = text
    response.status_code = status
    response.ok = 200 <= status < 400
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture()
def sheet_csv() -> dict[str, object]:
    """Mutable copy of the default sheet contents, keyed by sheet name."""
    return dict(SHEETS)


@pytest.fixture()
def sheet_session() -> Callable[..., MagicMock]:
    """Factory for a fake requests.Session serving CSV per sheet name.

    A value that is an Exception instance is raised from ``get``; an int is
    returned as that HTTP status with an empty body.
    """
    def factory(sheets: dict[str, object] | None = None, post_status: int = 200) -> MagicMock:
        served = dict(SHEETS if sheets is None else sheets)
        session = MagicMock(spec=requests.Session)

        def fake_get(url, params=None, timeout=None):
            value = served.get((params or {}).get("sheet"), "")
            if isinstance(value, Exception):
                raise value
            if isinstance(value, int):
                return make_response("", status=value)
            return make_response(str(value))

        session.get.side_effect = fake_get
        session.post.return_value = make_response("", status=post_status)
        return session

    return factory
