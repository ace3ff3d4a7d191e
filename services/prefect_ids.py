"""
Encoding of duty_assignments.prefect_id.

The column holds a plain user id when a duty has one prefect, and a JSON
array of user ids when it is shared. Rows written before shared duties
existed are plain ids, so parsing accepts both.
"""
import json
from typing import Iterable, List, Optional


def parse_prefect_ids(value: Optional[str]) -> List[str]:
    """
    Decode a stored prefect_id value into a list of user ids.

    Empty -> []. A JSON array -> its items as strings. Anything else,
    including text that starts with '[' but is not valid JSON, is a single id.
    """
    if not value:
        return []
    if value.startswith("["):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return [value]
        if isinstance(decoded, list):
            return [str(item) for item in decoded]
        return [value]
    return [value]


def serialize_prefect_ids(ids: Iterable[str]) -> str:
    """
    Encode user ids for storage: one id stays plain, several become a JSON array.

    Raises:
        ValueError: no ids given, or a blank id among them
    """
    ids = list(ids)
    if not ids:
        raise ValueError("At least one prefect is required")
    if any(i is None or not str(i).strip() for i in ids):
        raise ValueError("Prefect ids cannot be blank")
    ids = [str(i) for i in ids]
    if len(ids) == 1:
        return ids[0]
    return json.dumps(ids, separators=(",", ":"))


def involves_prefect(value: Optional[str], prefect_id: str) -> bool:
    """True if the stored value names prefect_id."""
    return prefect_id in parse_prefect_ids(value)
