from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from models.enums import (
    ListingStatus,
    ListingType,
    PropertyStatus,
    PropertyType,
)
from models.models import Property, PropertyImage
from models.utils import utcnow


class PropertyRepo:
    def __init__(self, db):
        self.db = db

    def _with_relations(self):
        return (
            select(Property)
            .options(
                selectinload(Property.owner),
                selectinload(Property.images),
            )
            .execution_options(populate_existing=True)
        )

    def _newest_first(self, stmt):
        return stmt.order_by(Property.created_at.desc(), Property.id.desc())

    async def get_by_id(self, property_id: int) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    async def get_property_with_relations(self, property_id: int) -> Optional[Property]:
        result = await self.db.execute(
            self._with_relations().where(Property.id == property_id)
        )
        return result.scalars().first()

    async def find_active_duplicate(
        self, title: str, location: str
    ) -> Optional[Property]:
        result = await self.db.execute(
            select(Property)
            .where(
                Property.title == title,
                Property.location == location,
                Property.listing_status == ListingStatus.ACTIVE,
            )
            .order_by(Property.id)
        )
        return result.scalars().first()

    async def find_other_active_duplicate(
        self, property_obj: Property
    ) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(
                Property.id != property_obj.id,
                Property.title == property_obj.title,
                Property.location == property_obj.location,
                Property.listing_status == ListingStatus.ACTIVE,
            )
        )
        return result.scalars().first()

    async def create_first(
        self,
        owner_id: str,
        title: str,
        description: str | None,
        price: Decimal,
        location: str,
        property_type: PropertyType,
        listing_type: ListingType,
        bedrooms: int | None,
        bathrooms: int | None,
        image_urls: List[str],
    ) -> Property:
        new_property = Property(
            owner_id=owner_id,
            title=title,
            description=description,
            price=price,
            location=location,
            property_type=property_type,
            listing_type=listing_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            status=PropertyStatus.PENDING,
            listing_status=ListingStatus.ACTIVE,
            is_verified=False,
            needs_review=False,
            images=[
                PropertyImage(image_url=url, display_order=index)
                for index, url in enumerate(image_urls)
            ],
        )
        self.db.add(new_property)
        try:
            await self.db.commit()
            return new_property
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def get_approved_active(self) -> List[Property]:
        result = await self.db.execute(
            self._newest_first(
                self._with_relations().where(
                    Property.status == PropertyStatus.APPROVED,
                    Property.listing_status == ListingStatus.ACTIVE,
                )
            )
        )
        return result.scalars().all()

    async def search(
        self,
        *,
        location: str | None = None,
        property_type: PropertyType | None = None,
        listing_type: ListingType | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        bedrooms: int | None = None,
    ) -> List[Property]:
        conditions = [
            Property.status == PropertyStatus.APPROVED,
            Property.listing_status == ListingStatus.ACTIVE,
        ]

        if location:
            conditions.append(Property.location.icontains(location, autoescape=True))

        if property_type is not None:
            conditions.append(Property.property_type == property_type)

        if listing_type is not None:
            conditions.append(Property.listing_type == listing_type)

        if min_price is not None:
            conditions.append(Property.price >= min_price)

        if max_price is not None:
            conditions.append(Property.price <= max_price)

        if bedrooms is not None:
            conditions.append(Property.bedrooms == bedrooms)

        result = await self.db.execute(
            self._newest_first(self._with_relations().where(*conditions))
        )
        return result.scalars().all()

    async def get_all_by_owner(self, owner_id: str) -> List[Property]:
        result = await self.db.execute(
            self._newest_first(
                self._with_relations().where(Property.owner_id == owner_id)
            )
        )
        return result.scalars().all()

    async def get_all_properties(self) -> List[Property]:
        result = await self.db.execute(self._newest_first(self._with_relations()))
        return result.scalars().all()

    async def get_pending(self) -> List[Property]:
        result = await self.db.execute(
            self._newest_first(
                self._with_relations().where(
                    Property.status == PropertyStatus.PENDING
                )
            )
        )
        return result.scalars().all()

    async def get_needing_review(self) -> List[Property]:
        result = await self.db.execute(
            self._newest_first(
                self._with_relations().where(Property.needs_review.is_(True))
            )
        )
        return result.scalars().all()

    async def update_status(
        self,
        property_obj: Property,
        status: PropertyStatus,
        is_verified: bool | None = None,
    ) -> Property:
        property_obj.status = status
        if is_verified is not None:
            property_obj.is_verified = is_verified
        return await self._commit(property_obj)

    async def set_verified(self, property_obj: Property, is_verified: bool) -> Property:
        property_obj.is_verified = is_verified
        return await self._commit(property_obj)

    async def update_listing_status(
        self, property_obj: Property, listing_status: ListingStatus
    ) -> Property:
        property_obj.listing_status = listing_status
        return await self._commit(property_obj)

    async def mark_for_review(self, property_obj: Property) -> Property:
        property_obj.needs_review = True
        return await self._commit(property_obj)

    async def clear_review(self, property_obj: Property) -> Property:
        property_obj.needs_review = False
        property_obj.last_reviewed_at = utcnow()
        return await self._commit(property_obj)

    async def _commit(self, property_obj: Property) -> Property:
        try:
            await self.db.commit()
            return property_obj
        except SQLAlchemyError:
            await self.db.rollback()
            raise
