from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from models.models import DuplicateListing, Property


class DuplicateListingRepo:
    def __init__(self, db):
        self.db = db

    async def create(
        self,
        attempted_title: str,
        attempted_location: str,
        attempted_by_user_id: str,
        existing_property_id: int,
    ) -> DuplicateListing:
        duplicate = DuplicateListing(
            attempted_title=attempted_title,
            attempted_location=attempted_location,
            attempted_by_user_id=attempted_by_user_id,
            existing_property_id=existing_property_id,
            reviewed=False,
        )
        self.db.add(duplicate)
        try:
            await self.db.commit()
            await self.db.refresh(duplicate)
            return duplicate
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def get_by_id(self, duplicate_id: int) -> Optional[DuplicateListing]:
        result = await self.db.execute(
            select(DuplicateListing).where(DuplicateListing.id == duplicate_id)
        )
        return result.scalar_one_or_none()

    async def get_unreviewed_with_details(self) -> List[DuplicateListing]:
        result = await self.db.execute(
            select(DuplicateListing)
            .options(
                selectinload(DuplicateListing.attempted_by),
                selectinload(DuplicateListing.existing_property).selectinload(
                    Property.owner
                ),
            )
            .where(DuplicateListing.reviewed.is_(False))
            .order_by(DuplicateListing.attempted_at.desc(), DuplicateListing.id.desc())
        )
        return result.scalars().all()

    async def mark_reviewed(self, duplicate: DuplicateListing) -> DuplicateListing:
        duplicate.reviewed = True
        try:
            await self.db.commit()
            await self.db.refresh(duplicate)
            return duplicate
        except SQLAlchemyError:
            await self.db.rollback()
            raise
