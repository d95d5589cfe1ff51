from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from models.models import PropertyImage


class PropertyImageRepo:
    def __init__(self, db):
        self.db = db

    async def get_all(self, property_id: int) -> list[PropertyImage]:
        result = await self.db.execute(
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.display_order, PropertyImage.id)
        )
        return result.scalars().all()

    async def replace_all(
        self, property_id: int, image_urls: List[str]
    ) -> list[PropertyImage]:
        try:
            await self.db.execute(
                delete(PropertyImage).where(PropertyImage.property_id == property_id)
            )
            self.db.add_all(
                [
                    PropertyImage(
                        property_id=property_id,
                        image_url=url,
                        display_order=index,
                    )
                    for index, url in enumerate(image_urls)
                ]
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return await self.get_all(property_id)
