import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import Database
from enums.webhook_result_status import WebhookResultStatus
from exceptions.auth import InvalidIdentityEventException
from models.payment import WebhookResultDTO
from models.user import UserDTO
from repositories.user import UserRepository
from utils.transaction_manager import TransactionManager
from utils.webhook_signature import verify_webhook_signature

logger = logging.getLogger(__name__)

USER_LIFECYCLE_EVENTS = ("user.created", "user.updated")


class UserService:
    """Keeps the users table in sync with the identity provider."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    async def create_if_not_exist(user_dto: UserDTO, session: AsyncSession) -> int:
        user = await UserRepository.get_by_external_id(user_dto.external_id, session)
        match user:
            case None:
                user_id = await UserRepository.create(user_dto, session)
                logger.info(f"[Users] Created user {user_id} for {user_dto.external_id}")
                return user_id
            case _:
                update_user_dto = UserDTO(**user.model_dump())
                update_user_dto.email = user_dto.email
                update_user_dto.first_name = user_dto.first_name
                update_user_dto.last_name = user_dto.last_name
                await UserRepository.update(update_user_dto, session)
                logger.info(f"[Users] Updated user {user.id} for {user_dto.external_id}")
                return user.id

    @staticmethod
    def parse_user_payload(data: dict) -> UserDTO:
        """
        Map the provider's user object to a UserDTO.

        The primary email address wins, otherwise the first one listed.
        """
        external_id = data.get("id")
        if not external_id:
            raise InvalidIdentityEventException("user id missing")

        email_addresses = data.get("email_addresses") or []
        primary_id = data.get("primary_email_address_id")
        email_entry = next((entry for entry in email_addresses if entry.get("id") == primary_id),
                           email_addresses[0] if email_addresses else {})
        email = email_entry.get("email_address")
        if not email:
            raise InvalidIdentityEventException(f"user {external_id} has no email address")

        return UserDTO(
            external_id=str(external_id),
            email=email,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )

    async def handle_identity_event(self, raw_body: bytes, signature_header: str | None) -> WebhookResultDTO:
        """
        Apply a signed user lifecycle event.

        Raises:
            InvalidIdentityEventException: bad signature, malformed body or conflicting email
        """
        if not verify_webhook_signature(raw_body, signature_header, config.IDENTITY_WEBHOOK_SECRET):
            logger.warning("[Users] Identity webhook rejected: invalid signature")
            raise InvalidIdentityEventException("invalid signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise InvalidIdentityEventException("body is not valid JSON")
        if not isinstance(event, dict):
            raise InvalidIdentityEventException("body is not a JSON object")

        event_type = event.get("type")
        if event_type not in USER_LIFECYCLE_EVENTS:
            logger.info(f"[Users] Identity event {event_type} ignored")
            return WebhookResultDTO(status=WebhookResultStatus.IGNORED, event_type=event_type)

        user_dto = self.parse_user_payload(event.get("data") or {})
        try:
            async with TransactionManager.atomic_transaction(self.database) as session:
                await self.create_if_not_exist(user_dto, session)
        except IntegrityError:
            raise InvalidIdentityEventException(f"email of {user_dto.external_id} belongs to another user")

        return WebhookResultDTO(status=WebhookResultStatus.PROCESSED, event_type=event_type)
