"""
Firestore query helpers built on the FieldFilter API.

Positional where(field, op, value) arguments are deprecated in
google-cloud-firestore; every report store query goes through here instead.
"""

from google.cloud.firestore_v1.base_query import FieldFilter


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a single where clause to a Firestore collection or query.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "created_at", ">=", since)
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))
