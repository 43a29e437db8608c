def parse_positive_int(value, field: str, minimum: int = 1) -> int:
    """
    Parse a whole number typed into a form field.
    Accepts ints or strings like "45", " 12 ", "1,000".
    Raises ValueError with a user-facing message otherwise.
    """
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, int):
        n = value
    else:
        s = str(value).strip().replace(",", "")
        if not s:
            raise ValueError(f"{field} is required")
        if not s.lstrip("+-").isdigit():
            raise ValueError(f"{field} must be a whole number")
        n = int(s)

    if n < minimum:
        if minimum == 1:
            raise ValueError(f"{field} must be a positive number")
        raise ValueError(f"{field} must be at least {minimum}")
    return n

def require_text(value, field: str) -> str:
    s = (value or "").strip()
    if not s:
        raise ValueError(f"{field} is required")
    return s

def format_time(time_str: str) -> str:
    # "18:05:00" -> "6:05 PM"
    parts = (time_str or "").split(":")
    if len(parts) < 2 or not parts[0].isdigit():
        return time_str or ""
    hour = int(parts[0])
    ampm = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{parts[1]} {ampm}"
