"""
Unit tests for provider configuration persistence

Tests cover:
- InMemoryConfigStore isolation
- SqlConfigStore upserts, plaintext and encrypted payloads
- Credential masking and encryption helpers
- Factory save/load through SQLite

Run: pytest backend/tests/test_provider_config_store.py -v
"""

import json

import pytest

from travel_hub.providers.config_store import storage_key


DOCUMENT = {
    "providers": {
        "duffel": {
            "name": "duffel",
            "enabled": True,
            "credentials": {"accessToken": "duffel_live_secret_token", "endpoint": "http://b/api/duffel"},
            "settings": {"timeout": 30000},
        }
    },
    "active": {"flight": "duffel"},
}

MASTER_KEY = b"unit-test-master-key"


class TestStorageKey:
    def test_default_and_user_keys(self):
        assert storage_key() == "provider_configs_default"
        assert storage_key("42") == "provider_configs_42"


class TestInMemoryConfigStore:
    """Tests for the process-local store."""

    def test_missing_key_is_none(self):
        from travel_hub.providers import InMemoryConfigStore

        assert InMemoryConfigStore().load("provider_configs_default") is None

    def test_loaded_document_is_detached(self):
        from travel_hub.providers import InMemoryConfigStore

        store = InMemoryConfigStore()
        data = json.loads(json.dumps(DOCUMENT))
        store.save("k", data)
        data["active"]["flight"] = "changed"
        loaded = store.load("k")
        loaded["active"]["hotel"] = "x"

        assert store.load("k") == DOCUMENT


class TestDatabaseSetup:
    """Tests for engine creation and schema setup."""

    def test_file_database_creates_directory_and_table(self, tmp_path):
        from sqlalchemy import inspect
        from db import get_engine, init_database

        engine = get_engine(f"sqlite:///{tmp_path}/nested/providers.db")
        try:
            init_database(engine)
            tables = inspect(engine).get_table_names()
        finally:
            engine.dispose()

        assert (tmp_path / "nested").is_dir()
        assert "provider_settings" in tables


class TestSqlConfigStore:
    """Tests for the SQLAlchemy-backed store."""

    def test_plaintext_round_trip(self, test_engine):
        from travel_hub.providers import SqlConfigStore

        store = SqlConfigStore(test_engine)
        store.save("provider_configs_default", DOCUMENT)

        assert store.load("provider_configs_default") == DOCUMENT
        assert store.load("provider_configs_other") is None

    def test_save_upserts_single_row(self, test_engine):
        from sqlalchemy.orm import sessionmaker
        from models import ProviderSettingsRecord
        from travel_hub.providers import SqlConfigStore

        store = SqlConfigStore(test_engine)
        store.save("provider_configs_default", {"providers": {}, "active": {}})
        store.save("provider_configs_default", DOCUMENT)

        session = sessionmaker(bind=test_engine)()
        try:
            rows = session.query(ProviderSettingsRecord).all()
        finally:
            session.close()

        assert len(rows) == 1
        assert store.load("provider_configs_default") == DOCUMENT

    def test_encrypted_payload_hides_secrets(self, test_engine):
        from sqlalchemy.orm import sessionmaker
        from models import ProviderSettingsRecord
        from travel_hub.providers import SqlConfigStore
        from travel_hub.security import CredentialEncryption

        store = SqlConfigStore(test_engine, encryption=CredentialEncryption(MASTER_KEY))
        store.save("provider_configs_u1", DOCUMENT)

        session = sessionmaker(bind=test_engine)()
        try:
            record = session.query(ProviderSettingsRecord).filter_by(key="provider_configs_u1").first()
        finally:
            session.close()

        assert record.is_encrypted is True
        assert "duffel_live_secret_token" not in record.payload
        assert store.load("provider_configs_u1") == DOCUMENT

    def test_encrypted_payload_without_key_raises(self, test_engine):
        from travel_hub.providers import SqlConfigStore
        from travel_hub.security import CredentialEncryption

        SqlConfigStore(test_engine, encryption=CredentialEncryption(MASTER_KEY)).save("k", DOCUMENT)

        with pytest.raises(ValueError):
            SqlConfigStore(test_engine).load("k")

    def test_wrong_key_raises(self, test_engine):
        from travel_hub.providers import SqlConfigStore
        from travel_hub.security import CredentialEncryption

        SqlConfigStore(test_engine, encryption=CredentialEncryption(MASTER_KEY)).save("k", DOCUMENT)
        other = SqlConfigStore(test_engine, encryption=CredentialEncryption(b"another-master-key"))

        with pytest.raises(ValueError):
            other.load("k")

    def test_factory_round_trip_through_sqlite(self, test_engine, hotelbeds_config):
        from travel_hub.providers import ProviderFactory, SqlConfigStore, initialize_providers
        from travel_hub.security import CredentialEncryption

        store = SqlConfigStore(test_engine, encryption=CredentialEncryption(MASTER_KEY))
        factory = ProviderFactory(store=store)
        initialize_providers(factory)
        factory.set_provider_config("hotelbeds", hotelbeds_config)
        factory.set_active_provider("hotel", "hotelbeds", user_id="7")
        factory.save_configurations(user_id="7")

        restored = ProviderFactory()
        initialize_providers(restored, store=store, user_id="7")

        assert restored.get_provider_config("hotelbeds") == hotelbeds_config
        assert restored.get_hotel_provider(user_id="7").is_configured()


class TestSecurityHelpers:
    """Tests for masking and encryption helpers."""

    def test_mask_token(self):
        from travel_hub.security import mask_token

        assert mask_token("duffel_test_abc123def456") == "duff...f456"
        assert mask_token("short") == "***"
        assert mask_token("") == "***"

    def test_mask_credentials_keeps_endpoint_and_blanks(self):
        from travel_hub.security import mask_credentials

        masked = mask_credentials({
            "apiKey": "abcd12345678wxyz",
            "secret": "",
            "endpoint": "http://localhost:3001",
        })

        assert masked == {"apiKey": "abcd...wxyz", "secret": "", "endpoint": "http://localhost:3001"}

    def test_store_keys_are_isolated(self):
        from travel_hub.security import CredentialEncryption

        encryption = CredentialEncryption(MASTER_KEY)
        token = encryption.encrypt("payload", "provider_configs_a")

        assert encryption.decrypt(token, "provider_configs_a") == "payload"
        with pytest.raises(ValueError):
            encryption.decrypt(token, "provider_configs_b")
