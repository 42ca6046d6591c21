from typing import Any, Iterable, List


def is_numeric_dict(d: Any) -> bool:
    return isinstance(d, dict) and bool(d) and all(str(k).isdigit() for k in d.keys())


def as_list(value: Any) -> List[Any]:
    """Coerce a list-like field into a list.

    Handles the shapes list fields take in stored records: real lists,
    index-keyed dicts ({"0": a, "1": b}) and single scalars.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if is_numeric_dict(value):
        return [v for _, v in sorted(value.items(), key=lambda x: int(x[0]))]
    return [value]


def clean_strings(values: Iterable[Any]) -> List[str]:
    """Keep non-empty strings, trimmed."""
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def split_url_list(value: Any) -> List[str]:
    """Normalize a URL field stored as a comma-joined string or a list."""
    if isinstance(value, str):
        return clean_strings(value.split(","))
    return clean_strings(as_list(value))


def dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
