import json
import re
import uuid
from datetime import datetime, timezone


def now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


_ws_re = re.compile(r"\s+")


def normalize_text(s):
    if s is None:
        return ""
    s = str(s).strip()
    s = _ws_re.sub(" ", s)
    return s


def new_content_id():
    return uuid.uuid4().hex


def json_dumps(obj):
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def timestamp_text(value):
    # NeDB serializes dates as {"$$date": <epoch milliseconds>}.
    if isinstance(value, dict) and isinstance(value.get("$$date"), (int, float)):
        moment = datetime.fromtimestamp(value["$$date"] / 1000, tz=timezone.utc)
        return moment.isoformat(timespec="microseconds")
    if value is None:
        return ""
    return str(value)
