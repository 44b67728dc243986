import datetime


def to_utc(dt: datetime.datetime) -> datetime.datetime:
    # If dt is None, return as-is
    if dt is None:
        return dt
    # If dt is naive, attach UTC offset
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def to_naive_utc(dt: datetime.datetime) -> datetime.datetime:
    # Timestamps are stored as naive UTC so sqlite and postgres compare the same way
    if dt is None:
        return dt
    return to_utc(dt).replace(tzinfo=None)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def seat_grid(rows: int, cols: int) -> list[str]:
    """Default screen layout in row-major order: A1..A{cols}, B1.., AA1 after Z."""
    labels = []
    for r in range(rows):
        label = ""
        n = r
        while True:
            label = chr(ord("A") + n % 26) + label
            n = n // 26 - 1
            if n < 0:
                break
        labels.extend(f"{label}{c}" for c in range(1, cols + 1))
    return labels
