"""Unit tests for key-value stores."""

import pytest
from decimal import Decimal
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from shared.storage import InMemoryStore, JsonFileStore, create_store, APP_ID
from shared.exceptions import StorageError


class TestInMemoryStore:
    """Test cases for InMemoryStore."""

    def test_missing_key_is_none(self):
        """Test absent keys load as None."""
        assert InMemoryStore().load('expenses') is None

    def test_save_and_load(self):
        """Test values round trip and are decoupled from the caller."""
        store = InMemoryStore()
        value = {'monthly': {'2025-03': Decimal('15000')}}

        store.save('budgets', value)
        value['monthly']['2025-03'] = 1

        assert store.load('budgets') == {'monthly': {'2025-03': 15000.0}}

    def test_remove(self):
        """Test removing a key, twice."""
        store = InMemoryStore()
        store.save('expenses', [])

        store.remove('expenses')
        store.remove('expenses')

        assert store.load('expenses') is None

    def test_unserializable_value(self):
        """Test non-JSON values raise StorageError."""
        with pytest.raises(StorageError):
            InMemoryStore().save('expenses', [object()])


class TestJsonFileStore:
    """Test cases for JsonFileStore."""

    def test_save_writes_namespaced_file(self, tmp_path):
        """Test each key is stored as its own JSON file."""
        store = JsonFileStore(str(tmp_path / 'data'))

        store.save('expenses', [{'id': 'd1'}])

        assert (tmp_path / 'data' / f'{APP_ID}-expenses.json').exists()
        assert store.load('expenses') == [{'id': 'd1'}]

    def test_missing_file_is_none(self, tmp_path):
        """Test absent files load as None."""
        assert JsonFileStore(str(tmp_path)).load('budgets') is None

    def test_corrupt_file(self, tmp_path):
        """Test undecodable files raise StorageError."""
        (tmp_path / f'{APP_ID}-expenses.json').write_text('{not json', encoding='utf-8')

        with pytest.raises(StorageError):
            JsonFileStore(str(tmp_path)).load('expenses')

    def test_remove(self, tmp_path):
        """Test removing existing and missing files."""
        store = JsonFileStore(str(tmp_path))
        store.save('budgets', {})

        store.remove('budgets')
        store.remove('budgets')

        assert store.load('budgets') is None


class TestCreateStore:
    """Test cases for the store factory."""

    def test_memory_backend(self):
        """Test explicit memory backend."""
        assert isinstance(create_store('memory'), InMemoryStore)

    def test_file_backend_from_env(self, monkeypatch, tmp_path):
        """Test the file backend reads STORAGE_DIR."""
        monkeypatch.setenv('STORAGE_BACKEND', 'file')
        monkeypatch.setenv('STORAGE_DIR', str(tmp_path))

        store = create_store()

        assert isinstance(store, JsonFileStore)
        assert store.directory == tmp_path

    def test_s3_backend_requires_bucket(self, monkeypatch):
        """Test the s3 backend needs a bucket name."""
        monkeypatch.delenv('EXPENSE_TRACKER_BUCKET', raising=False)

        with pytest.raises(StorageError):
            create_store('s3')

    def test_unknown_backend(self):
        """Test unknown backends are rejected."""
        with pytest.raises(StorageError):
            create_store('floppy')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
