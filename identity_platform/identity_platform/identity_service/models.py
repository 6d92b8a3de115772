from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid

from sqlalchemy import Column, String

from .db import Base


@dataclass(frozen=True)
class CredentialRecord:
    """One user's authentication material, keyed by email."""

    email: str
    identifier: str
    display_name: str
    created_at: str
    password_hash: Optional[str] = None
    apple_user_id: Optional[str] = None

    @classmethod
    def new(
        cls,
        email: str,
        display_name: str,
        password_hash: Optional[str] = None,
        apple_user_id: Optional[str] = None,
    ) -> "CredentialRecord":
        return cls(
            email=email,
            identifier=str(uuid.uuid4()),
            display_name=display_name,
            created_at=datetime.now(timezone.utc).isoformat(),
            password_hash=password_hash,
            apple_user_id=apple_user_id,
        )

    def to_item(self) -> Dict[str, Any]:
        """Persisted shape. Optional attributes are omitted rather than stored as null."""
        item = {
            "email": self.email,
            "identifier": self.identifier,
            "displayName": self.display_name,
            "createdAt": self.created_at,
        }
        if self.password_hash:
            item["passwordHash"] = self.password_hash
        if self.apple_user_id:
            item["appleUserId"] = self.apple_user_id
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "CredentialRecord":
        return cls(
            email=item["email"],
            identifier=item["identifier"],
            display_name=item["displayName"],
            created_at=item["createdAt"],
            password_hash=item.get("passwordHash") or None,
            apple_user_id=item.get("appleUserId") or None,
        )


class CredentialRow(Base):
    __tablename__ = "credentials"
    email = Column(String, primary_key=True)
    identifier = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    display_name = Column(String, nullable=False)
    apple_user_id = Column(String, nullable=True)
    # ISO 8601, same representation as the DynamoDB item
    created_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: CredentialRecord) -> "CredentialRow":
        return cls(
            email=record.email,
            identifier=record.identifier,
            password_hash=record.password_hash,
            display_name=record.display_name,
            apple_user_id=record.apple_user_id,
            created_at=record.created_at,
        )

    def to_record(self) -> CredentialRecord:
        return CredentialRecord(
            email=self.email,
            identifier=self.identifier,
            display_name=self.display_name,
            created_at=self.created_at,
            password_hash=self.password_hash,
            apple_user_id=self.apple_user_id,
        )
