"""
Tests for storage backends
"""

import pytest

from retail_banking.config import RetailBankingConfig
from retail_banking.exceptions import ValidationError
from retail_banking.storage import (
    FileStorage, InMemoryStorage, SQLiteStorage, StorageMode, create_storage
)


@pytest.fixture(params=["memory", "sqlite", "file"])
def storage(request, tmp_path):
    if request.param == "memory":
        backend = InMemoryStorage()
    elif request.param == "sqlite":
        backend = SQLiteStorage(tmp_path / "test.db")
    else:
        backend = FileStorage(tmp_path / "data")
    yield backend
    backend.close()


class TestStorageBackends:
    """Behaviour shared by every backend"""

    def test_save_and_load(self, storage):
        storage.save("customers", "c1", {"id": "c1", "first_name": "Ada"})
        assert storage.load("customers", "c1") == {"id": "c1", "first_name": "Ada"}
        assert storage.load("customers", "missing") is None

    def test_save_overwrites(self, storage):
        storage.save("customers", "c1", {"id": "c1", "first_name": "Ada"})
        storage.save("customers", "c1", {"id": "c1", "first_name": "Grace"})
        assert storage.load("customers", "c1")["first_name"] == "Grace"
        assert storage.count("customers") == 1

    def test_load_all_keeps_insertion_order(self, storage):
        for record_id in ["b", "a", "c"]:
            storage.save("bank_managers", record_id, {"id": record_id})
        assert [r["id"] for r in storage.load_all("bank_managers")] == ["b", "a", "c"]

    def test_find_delete_exists(self, storage):
        storage.save("account_requests", "r1", {"id": "r1", "account_number": "SAV-1"})
        storage.save("account_requests", "r2", {"id": "r2", "account_number": "CHK-2"})

        found = storage.find("account_requests", {"account_number": "CHK-2"})
        assert [r["id"] for r in found] == ["r2"]

        assert storage.exists("account_requests", "r1")
        assert storage.delete("account_requests", "r1")
        assert not storage.delete("account_requests", "r1")
        assert not storage.exists("account_requests", "r1")

    def test_clear_table(self, storage):
        storage.save("accounts", "a1", {"id": "a1"})
        storage.clear_table("accounts")
        assert storage.count("accounts") == 0

    def test_loaded_records_are_copies(self, storage):
        storage.save("customers", "c1", {"id": "c1", "inbox": []})
        loaded = storage.load("customers", "c1")
        loaded["inbox"].append("tampered")
        assert storage.load("customers", "c1")["inbox"] == []

    def test_invalid_table_name(self, storage):
        with pytest.raises(ValueError):
            storage.save("bad table; drop", "x", {"id": "x"})


class TestDurability:

    def test_sqlite_survives_reopen(self, tmp_path):
        path = tmp_path / "bank.db"
        first = SQLiteStorage(path)
        first.save("customers", "c1", {"id": "c1"})
        first.close()

        second = SQLiteStorage(path)
        assert second.load("customers", "c1") == {"id": "c1"}
        second.close()

    def test_file_storage_survives_reopen(self, tmp_path):
        FileStorage(tmp_path).save("customers", "c1", {"id": "c1", "amount": "10.00"})
        assert FileStorage(tmp_path).load("customers", "c1") == {"id": "c1", "amount": "10.00"}
        assert (tmp_path / "customers.json").exists()
        assert not list(tmp_path.glob("*.tmp"))


class TestStorageMode:

    def test_parse(self):
        assert StorageMode.parse("SQLite") == StorageMode.SQLITE
        assert StorageMode.parse(StorageMode.FILE) == StorageMode.FILE

    def test_parse_unknown(self):
        with pytest.raises(ValidationError):
            StorageMode.parse("postgres")

    def test_create_storage_uses_config_paths(self, tmp_path):
        config = RetailBankingConfig(
            sqlite_path=str(tmp_path / "x.db"),
            file_storage_dir=str(tmp_path / "files"),
        )
        assert isinstance(create_storage("memory", config), InMemoryStorage)

        sqlite = create_storage(StorageMode.SQLITE, config)
        assert isinstance(sqlite, SQLiteStorage)
        assert sqlite.db_path == str(tmp_path / "x.db")
        sqlite.close()

        files = create_storage("file", config)
        assert isinstance(files, FileStorage)
        assert (tmp_path / "files").is_dir()
