from __future__ import annotations

import json

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from maintlog.models.error_record import DATE_PARSE, FETCH_FAILED, ErrorRecord

"""Error log JSON Lines contract."""

ERROR_LOG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "sheet", "row", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"Z$"},
        "sheet": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
        "message": {"type": "string"},
    },
}


@pytest.mark.parametrize("error_type,row", [(FETCH_FAILED, -1), (DATE_PARSE, 7)])
def test_error_record_lines_match_schema(error_type, row):
    line = ErrorRecord.create("NHAT_KY_THIET_BI", row, error_type, "x").to_json_line()
    jsonschema.validate(json.loads(line), ERROR_LOG_SCHEMA)


def test_error_log_schema_rejects_extra_key():
    record = json.loads(ErrorRecord.create("ML", 1, DATE_PARSE, "x").to_json_line())
    record["extra"] = "not allowed"
    with pytest.raises(ValidationError):
        jsonschema.validate(record, ERROR_LOG_SCHEMA)
