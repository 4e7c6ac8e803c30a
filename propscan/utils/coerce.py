from typing import Optional


def to_str(v) -> str:
    return "" if v is None else str(v)


def to_bool(v, default: bool = False) -> bool:
    if v is None or v == "":
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def to_int(v) -> Optional[int]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return int(float(v))
    except (TypeError, ValueError):
        return None


def to_float(v) -> Optional[float]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


def strip_spaces(v) -> str:
    return "".join(to_str(v).split())
