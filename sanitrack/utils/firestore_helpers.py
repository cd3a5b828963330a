"""
Firestore query helpers.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from typing import Dict, Optional, Sequence


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "status", "==", "submitted")
        query = where_filter(query, "latitude", ">=", 5.5)
    """
    return query.where(field_path, op_string, value)


def apply_filters(query, filters: Sequence):
    for field_path, op_string, value in filters:
        query = where_filter(query, field_path, op_string, value)
    return query


def snapshot_to_dict(snapshot) -> Optional[Dict]:
    """
    Convert a DocumentSnapshot into a plain dict with its "id".
    Returns None for snapshots of missing documents.
    """
    if not snapshot.exists:
        return None
    data = snapshot.to_dict() or {}
    data.setdefault("id", snapshot.id)
    return data
