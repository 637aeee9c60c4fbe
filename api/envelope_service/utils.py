import math
import re
from typing import Dict, Iterable, List, Mapping, Union

_NUMERIC_ID = re.compile(r"^\d+$")


def round_coordinate(value: float) -> int:
    # provider rejects fractional positions; halves go away from zero
    value = float(value)
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def is_numeric_id(value) -> bool:
    return isinstance(value, str) and bool(_NUMERIC_ID.match(value))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def form_fields_to_engine(fields: Mapping[str, str]) -> List[Dict[str, str]]:
    return [{"FieldName": k, "FieldValue": v} for k, v in fields.items()]


def form_fields_from_any(fields: Union[Mapping, Iterable, None]) -> Dict[str, str]:
    """Accept {name: value} or the engine's [{FieldName, FieldValue}] list."""
    if fields is None:
        return {}
    if isinstance(fields, Mapping):
        return {str(k): "" if v is None else str(v) for k, v in fields.items()}
    out: Dict[str, str] = {}
    for item in fields:
        if not isinstance(item, Mapping) or "FieldName" not in item:
            raise ValueError("form field entries need FieldName and FieldValue")
        value = item.get("FieldValue")
        out[str(item["FieldName"])] = "" if value is None else str(value)
    return out
