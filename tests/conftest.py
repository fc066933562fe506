"""Shared fixtures: an in-memory Firestore and a test app."""

from __future__ import annotations

from typing import Any, Optional
from unittest.mock import patch

import pytest
from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference

from khelkheleko import create_app
from tests.helpers import TEST_CONFIG

def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and equality."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

patch_mockfirestore()

@pytest.fixture
def db():
    """An empty in-memory Firestore returned by ``firestore.client()``."""
    mock_db = MockFirestore()
    with patch("firebase_admin.firestore.client", return_value=mock_db):
        yield mock_db

@pytest.fixture
def app(db):
    """App with Firebase initialisation skipped and an app context pushed."""
    with patch("firebase_admin.initialize_app"):
        application = create_app(dict(TEST_CONFIG))
    with application.app_context():
        yield application

@pytest.fixture
def client(app):
    return app.test_client()
