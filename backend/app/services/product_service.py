"""Product Service - business rules for the product catalog"""
import logging
import math
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate, ProductRead, OperationResult

logger = logging.getLogger(__name__)

DUPLICATE_SKU_MESSAGE = "SKU already registered"
NOT_FOUND_MESSAGE = "Product not found"
UPDATED_MESSAGE = "Product updated successfully"


def coerce_price(value) -> float:
    """Numeric view of a stored price; anything non-numeric becomes NaN."""
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def to_product_read(product: Optional[Product]) -> ProductRead:
    """Shape a record for callers, defaulting null strings to ''."""
    if product is None:
        return ProductRead.empty()

    return ProductRead(
        id=product.id,
        sku=product.sku or "",
        name=product.name or "",
        price=coerce_price(product.price),
        description=product.description or "",
        image=product.image or "",
    )


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ProductService:
    """
    Service for the product catalog.

    Business rejections (duplicate SKU, unknown product) are returned as
    values, not raised. Store failures other than a unique-constraint
    violation propagate to the caller.

    The existence check and the mutation are separate round trips, so two
    concurrent creates of the same SKU can both pass the pre-check; the
    unique constraint on ``product.sku`` turns the loser into the same
    duplicate-SKU result.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_product(
        self,
        data: ProductCreate,
        image: Optional[str] = None,
    ) -> OperationResult:
        """Insert a product unless its SKU is already taken."""
        sku = _blank_to_none(data.sku)

        if sku is not None and await self._find_by_sku(sku):
            logger.info("Create rejected: SKU %s already registered", sku)
            return OperationResult(success=False, message=DUPLICATE_SKU_MESSAGE)

        product = Product(
            sku=sku,
            name=data.name,
            price=data.price,
            description=data.description,
            image=image,
        )
        self.db.add(product)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Create lost SKU race for %s", sku)
            return OperationResult(success=False, message=DUPLICATE_SKU_MESSAGE)

        await self.db.refresh(product)
        logger.info("Created product %s (sku=%s)", product.id, sku)

        return OperationResult(success=product.id is not None)

    async def list_products(self) -> List[ProductRead]:
        result = await self.db.execute(select(Product).order_by(Product.created_at))
        return [to_product_read(p) for p in result.scalars().all()]

    async def get_product_by_id(self, product_id: str) -> ProductRead:
        """Look up by id; a miss returns ``ProductRead.empty()``."""
        return to_product_read(await self._find_by_id(product_id))

    async def get_product_by_sku(self, sku: str) -> ProductRead:
        """Look up by SKU; a miss returns ``ProductRead.empty()``."""
        return to_product_read(await self._find_by_sku(sku))

    async def update_product(
        self,
        data: ProductUpdate,
        image: Optional[str] = None,
    ) -> OperationResult:
        """
        Overwrite sku, name, price and description of an existing product.

        An omitted description clears the stored one. The image is only
        replaced when a new filename is supplied.
        """
        product = await self._find_by_id(data.id)

        if not product:
            logger.info("Update rejected: product %s not found", data.id)
            return OperationResult(success=False, message=NOT_FOUND_MESSAGE)

        product.sku = _blank_to_none(data.sku)
        product.name = data.name
        product.price = data.price
        product.description = data.description

        if image:
            product.image = image

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("Update rejected: SKU %s belongs to another product", data.sku)
            return OperationResult(success=False, message=DUPLICATE_SKU_MESSAGE)

        logger.info("Updated product %s", data.id)
        return OperationResult(success=True, message=UPDATED_MESSAGE)

    async def delete_product(self, product_id: str) -> bool:
        return await self._delete(await self._find_by_id(product_id))

    async def delete_product_by_sku(self, sku: str) -> bool:
        return await self._delete(await self._find_by_sku(sku))

    async def _delete(self, product: Optional[Product]) -> bool:
        if not product:
            return False

        await self.db.delete(product)
        await self.db.commit()
        logger.info("Deleted product %s", product.id)
        return True

    async def _find_by_id(self, product_id: str) -> Optional[Product]:
        return await self.db.get(Product, product_id)

    async def _find_by_sku(self, sku: str) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.sku == sku))
        return result.scalar_one_or_none()
