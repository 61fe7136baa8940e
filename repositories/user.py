from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import UserDTO, User


class UserRepository:
    @staticmethod
    async def get_by_external_id(external_id: str, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.external_id == external_id)
        user = await session.execute(stmt)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def get_by_id(user_id: int, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        user = await session.execute(stmt)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def update(user_dto: UserDTO, session: AsyncSession) -> None:
        user_dto_dict = user_dto.model_dump(exclude={'id', 'created_at', 'updated_at'})
        none_keys = [k for k, v in user_dto_dict.items() if v is None]
        for k in none_keys:
            user_dto_dict.pop(k)

        # Update by id if available (preferred), otherwise by external_id
        if user_dto.id is not None:
            stmt = update(User).where(User.id == user_dto.id).values(**user_dto_dict)
        else:
            stmt = update(User).where(User.external_id == user_dto.external_id).values(**user_dto_dict)

        await session.execute(stmt)

    @staticmethod
    async def create(user_dto: UserDTO, session: AsyncSession) -> int:
        user = User(**user_dto.model_dump(exclude={'id', 'created_at', 'updated_at'}))
        session.add(user)
        await session.flush()
        return user.id
