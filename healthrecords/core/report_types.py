"""Resolve report type IDs to display names."""

import re
from typing import Dict, Optional

from pymongo.errors import PyMongoError

from .database import report_types_collection
from ..utils.log_utils import report_logger
from ..utils.mongo_helpers import to_object_id

DEFAULT_REPORT_TYPE = "Blood Report"

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def is_object_id(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID.match(value))


class ReportTypeNameCache:
    """Process-wide cache of report type ID -> name."""

    def __init__(self):
        self.names: Dict[str, str] = {}

    def clear(self) -> None:
        self.names.clear()

    async def get_name(self, type_or_id: Optional[str]) -> str:
        """Display name for a report type value.

        Plain names are returned as they are. IDs are looked up once; an ID
        with no matching type is cached as itself. Lookup errors return the ID
        without caching it so a later call can retry.
        """
        if not type_or_id:
            return DEFAULT_REPORT_TYPE
        if not is_object_id(type_or_id):
            return type_or_id
        if type_or_id in self.names:
            return self.names[type_or_id]

        try:
            record = await report_types_collection.find_one({"_id": to_object_id(type_or_id)})
        except PyMongoError as e:
            report_logger.error(f"Error fetching report type {type_or_id}: {e}")
            return type_or_id

        name = None
        if record:
            name = record.get("testName") or record.get("name") or record.get("type")
        name = name or type_or_id
        self.names[type_or_id] = name
        return name


report_type_names = ReportTypeNameCache()
