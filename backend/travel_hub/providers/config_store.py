"""
Provider configuration stores.

The factory only depends on the load/save contract: a JSON-compatible dict
{"providers": {name: ProviderConfig-dict}, "active": {type: name}} saved
under a string key. Storage technology is pluggable.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, sessionmaker

from models import ProviderSettingsRecord
from travel_hub.security import CredentialEncryption


logger = logging.getLogger(__name__)


def storage_key(user_id: Optional[str] = None) -> str:
    return f"provider_configs_{user_id or 'default'}"


class ConfigStore(ABC):
    """Keyed JSON document store used by ProviderFactory."""

    @abstractmethod
    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored document, or None when the key is absent."""
        pass

    @abstractmethod
    def save(self, key: str, data: Dict[str, Any]) -> None:
        """Replace the document stored under key."""
        pass


class InMemoryConfigStore(ConfigStore):
    """Process-local store; documents are serialized so callers never share references."""

    def __init__(self):
        self._documents: Dict[str, str] = {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._documents.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self._documents[key] = json.dumps(data)

    def keys(self):
        return list(self._documents.keys())


class SqlConfigStore(ConfigStore):
    """
    SQLAlchemy-backed store (provider_settings table).

    When an encryption helper is supplied, payloads are Fernet-encrypted with
    a key derived from the storage key, so credentials never sit in plaintext.
    """

    def __init__(self, engine, encryption: Optional[CredentialEncryption] = None):
        self._session_factory = sessionmaker(bind=engine)
        self.encryption = encryption

    def _get_record(self, session: Session, key: str) -> Optional[ProviderSettingsRecord]:
        return session.query(ProviderSettingsRecord).filter(ProviderSettingsRecord.key == key).first()

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        session = self._session_factory()
        try:
            record = self._get_record(session, key)
            if not record:
                return None

            payload = record.payload
            if record.is_encrypted:
                if not self.encryption:
                    raise ValueError(
                        f"Provider settings '{key}' are encrypted but no encryption key is configured"
                    )
                payload = self.encryption.decrypt(payload, key)

            return json.loads(payload)
        finally:
            session.close()

    def save(self, key: str, data: Dict[str, Any]) -> None:
        payload = json.dumps(data)
        encrypted = self.encryption is not None
        if encrypted:
            payload = self.encryption.encrypt(payload, key)

        session = self._session_factory()
        try:
            record = self._get_record(session, key)
            if record:
                record.payload = payload
                record.is_encrypted = encrypted
                record.updated_at = datetime.utcnow()
            else:
                session.add(ProviderSettingsRecord(key=key, payload=payload, is_encrypted=encrypted))
            session.commit()
            logger.debug(f"Saved provider settings '{key}' (encrypted={encrypted})")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
