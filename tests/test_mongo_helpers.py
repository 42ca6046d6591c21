"""Tests for MongoDB helper functions."""

import json
from datetime import datetime
from bson import ObjectId

from healthrecords.utils.mongo_helpers import json_serialize_mongodb_object, sanitize_mongodb_document, to_object_id

OID = "507f1f77bcf86cd799439011"


class TestMongoHelpers:
    def test_serialize_primitives(self):
        assert json_serialize_mongodb_object(123) == 123
        assert json_serialize_mongodb_object("test") == "test"
        assert json_serialize_mongodb_object(None) is None

    def test_serialize_nested(self):
        doc = {
            "_id": ObjectId(OID),
            "reportDate": datetime(2024, 1, 1, 12, 30),
            "sharedWith": [{"profileId": ObjectId(OID), "sharedAt": datetime(2024, 2, 1)}],
        }

        serialized = json_serialize_mongodb_object(doc)

        assert serialized["_id"] == OID
        assert serialized["reportDate"] == "2024-01-01T12:30:00"
        assert serialized["sharedWith"][0] == {"profileId": OID, "sharedAt": "2024-02-01T00:00:00"}
        json.dumps(serialized)

    def test_sanitize_mirrors_id(self):
        sanitized = sanitize_mongodb_document({"_id": ObjectId(OID), "name": "CBC"})
        assert sanitized == {"_id": OID, "id": OID, "name": "CBC"}

    def test_sanitize_keeps_own_id(self):
        sanitized = sanitize_mongodb_document({"_id": ObjectId(OID), "id": "R-1"})
        assert sanitized["id"] == "R-1"

    def test_sanitize_none(self):
        assert sanitize_mongodb_document(None) == {}

    def test_to_object_id(self):
        oid = ObjectId(OID)
        assert to_object_id(OID) == oid
        assert to_object_id(oid) is oid
        assert to_object_id("R-1") is None
        assert to_object_id(None) is None
