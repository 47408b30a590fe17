from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class ProviderSettingsRecord(Base):
    """
    Key/value row holding one tenant's provider configuration blob.

    key is "provider_configs_<user_id|default>"; payload is the JSON document
    {"providers": {...}, "active": {...}}, Fernet-encrypted when is_encrypted.
    """
    __tablename__ = "provider_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(200), nullable=False, unique=True, index=True)
    payload = Column(Text, nullable=False)
    is_encrypted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ProviderSettingsRecord key={self.key} encrypted={self.is_encrypted}>"
