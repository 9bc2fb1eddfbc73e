"""Unit tests for the whole-file JSON store."""

import json

import pytest

from hie_interop.storage import JsonStore, find_by_id
from hie_interop.utils.exceptions import StoreError


class TestJsonStore:
    """Tests for JsonStore."""

    def test_read_missing_file_returns_defaults(self, tmp_path):
        """Test read missing file returns defaults."""
        # Arrange
        store = JsonStore(tmp_path / "db.json", {"patients": [], "users": [{"id": "u1"}]})

        # Act
        data = store.read()

        # Assert
        assert data == {"patients": [], "users": [{"id": "u1"}]}
        assert not (tmp_path / "db.json").exists()

    def test_read_returns_independent_copy_of_defaults(self, tmp_path):
        """Test read returns independent copy of defaults."""
        # Arrange
        store = JsonStore(tmp_path / "db.json", {"patients": []})

        # Act
        store.read()["patients"].append({"id": "PT-1"})

        # Assert
        assert store.read() == {"patients": []}

    def test_initialize_creates_file(self, tmp_path):
        """Test initialize creates file."""
        # Arrange
        path = tmp_path / "nested" / "db.json"
        store = JsonStore(path, {"patients": []})

        # Act
        store.initialize()

        # Assert
        assert json.loads(path.read_text()) == {"patients": []}

    def test_initialize_adds_missing_collections_and_keeps_data(self, tmp_path):
        """Test initialize adds missing collections and keeps data."""
        # Arrange
        path = tmp_path / "db.json"
        path.write_text(json.dumps({"patients": [{"id": "PT-1"}]}))
        store = JsonStore(path, {"patients": [], "users": [{"id": "nurse001"}]})

        # Act
        data = store.initialize()

        # Assert
        assert data["patients"] == [{"id": "PT-1"}]
        assert data["users"] == [{"id": "nurse001"}]

    def test_write_then_read(self, tmp_path):
        """Test write then read."""
        # Arrange
        store = JsonStore(tmp_path / "db.json")
        data = store.read()
        data["patients"].append({"id": "PT-1", "name": "Jane Doe"})

        # Act
        store.write(data)

        # Assert
        assert store.read()["patients"] == [{"id": "PT-1", "name": "Jane Doe"}]

    def test_write_leaves_no_temp_files(self, tmp_path):
        """Test write leaves no temp files."""
        # Arrange
        store = JsonStore(tmp_path / "db.json")

        # Act
        store.write({"patients": []})

        # Assert
        assert [p.name for p in tmp_path.iterdir()] == ["db.json"]

    def test_corrupt_file_raises_store_error(self, tmp_path):
        """Test corrupt file raises store error."""
        # Arrange
        path = tmp_path / "db.json"
        path.write_text("{not json")
        store = JsonStore(path)

        # Act & Assert
        with pytest.raises(StoreError, match="Corrupt store file"):
            store.read()

    def test_non_object_document_raises_store_error(self, tmp_path):
        """Test non object document raises store error."""
        # Arrange
        path = tmp_path / "db.json"
        path.write_text("[]")

        # Act & Assert
        with pytest.raises(StoreError, match="must contain a JSON object"):
            JsonStore(path).read()


class TestFindById:
    """Tests for find_by_id."""

    def test_finds_record(self):
        """Test finds record."""
        # Arrange
        records = [{"id": "a"}, {"id": "b"}]

        # Act & Assert
        assert find_by_id(records, "b") == {"id": "b"}

    def test_missing_returns_none(self):
        """Test missing returns none."""
        # Arrange & Act & Assert
        assert find_by_id([{"id": "a"}], "z") is None
