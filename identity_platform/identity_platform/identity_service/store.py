"""
Credential Store backends.

Both backends enforce one record per email with a conditional insert, so the
existence check done by the sign-up handler is an early exit and never the
uniqueness guarantee.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional
import logging

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .db import create_db_engine, create_session_factory, init_db
from .models import CredentialRecord, CredentialRow

logger = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """The store could not complete a request."""


class CredentialExistsError(Exception):
    """A record for this email is already on file."""

    def __init__(self, email: str):
        super().__init__(f"Credential record already exists for {email}")
        self.email = email


class CredentialStore(ABC):
    @abstractmethod
    def get(self, email: str) -> Optional[CredentialRecord]:
        """Fetch the record stored under ``email``."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[CredentialRecord]:
        """Query by key, returning at most one record."""

    @abstractmethod
    def create(self, record: CredentialRecord) -> None:
        """
        Insert ``record`` if no record exists for its email.

        Raises:
            CredentialExistsError: If the email is already taken
            CredentialStoreError: On any other store failure
        """


class DynamoCredentialStore(CredentialStore):
    """Single-table DynamoDB store with ``email`` as the partition key."""

    def __init__(self, table: Any):
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoCredentialStore":
        config = BotoConfig(
            connect_timeout=settings.STORE_CONNECT_TIMEOUT_SECONDS,
            read_timeout=settings.STORE_READ_TIMEOUT_SECONDS,
            retries={"mode": "standard", "total_max_attempts": 1},
        )
        dynamodb = boto3.resource(
            "dynamodb",
            region_name=settings.AWS_REGION,
            endpoint_url=settings.DYNAMODB_ENDPOINT_URL,
            config=config,
        )
        return cls(dynamodb.Table(settings.USERS_TABLE))

    def get(self, email: str) -> Optional[CredentialRecord]:
        try:
            response = self.table.get_item(Key={"email": email})
        except (ClientError, BotoCoreError) as e:
            logger.error("DynamoDB get_item failed: %s", e)
            raise CredentialStoreError("Failed to read credential record") from e

        item = response.get("Item")
        return CredentialRecord.from_item(item) if item else None

    def find_by_email(self, email: str) -> Optional[CredentialRecord]:
        try:
            response = self.table.query(
                KeyConditionExpression=Key("email").eq(email),
                Limit=1,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("DynamoDB query failed: %s", e)
            raise CredentialStoreError("Failed to query credential records") from e

        items = response.get("Items", [])
        if not items:
            return None
        return CredentialRecord.from_item(items[0])

    def create(self, record: CredentialRecord) -> None:
        try:
            self.table.put_item(
                Item=record.to_item(),
                ConditionExpression=Attr("email").not_exists(),
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.warning("Conditional put rejected, email already registered")
                raise CredentialExistsError(record.email) from None
            logger.error("DynamoDB put_item failed: %s", e)
            raise CredentialStoreError("Failed to write credential record") from e
        except BotoCoreError as e:
            logger.error("DynamoDB put_item failed: %s", e)
            raise CredentialStoreError("Failed to write credential record") from e


class SqlCredentialStore(CredentialStore):
    """SQLAlchemy store for local development, keyed by the ``email`` primary key."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlCredentialStore":
        engine = create_db_engine(settings.DATABASE_URL)
        init_db(engine)
        return cls(create_session_factory(engine))

    def get(self, email: str) -> Optional[CredentialRecord]:
        try:
            with self.session_factory() as db:
                row = db.get(CredentialRow, email)
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            logger.error("Credential lookup failed: %s", e)
            raise CredentialStoreError("Failed to read credential record") from e

    def find_by_email(self, email: str) -> Optional[CredentialRecord]:
        try:
            with self.session_factory() as db:
                row = (
                    db.query(CredentialRow)
                    .filter(CredentialRow.email == email)
                    .limit(1)
                    .first()
                )
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            logger.error("Credential query failed: %s", e)
            raise CredentialStoreError("Failed to query credential records") from e

    def create(self, record: CredentialRecord) -> None:
        with self.session_factory() as db:
            try:
                db.add(CredentialRow.from_record(record))
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning("Insert rejected, email already registered")
                raise CredentialExistsError(record.email) from None
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Credential insert failed: %s", e)
                raise CredentialStoreError("Failed to write credential record") from e


def build_store(settings: Settings) -> CredentialStore:
    if settings.CREDENTIAL_STORE == "sql":
        logger.info("Using SQL credential store at %s", settings.DATABASE_URL)
        return SqlCredentialStore.from_settings(settings)
    logger.info("Using DynamoDB credential store table=%s region=%s", settings.USERS_TABLE, settings.AWS_REGION)
    return DynamoCredentialStore.from_settings(settings)
