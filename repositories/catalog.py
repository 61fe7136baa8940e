from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.product import Product, ProductDTO, ProductVariant


class CatalogRepository:
    @staticmethod
    async def list_active_products(session: AsyncSession) -> list[ProductDTO]:
        stmt = select(Product).where(Product.active == True).order_by(Product.created_at, Product.id)
        products = await session.execute(stmt)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products.scalars().all()]

    @staticmethod
    async def get_product(product_id: str, session: AsyncSession) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session.execute(stmt)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_products_by_ids(product_ids: list[str], session: AsyncSession) -> dict[str, ProductDTO]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(set(product_ids)), Product.active == True)
        products = await session.execute(stmt)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True)
                for product in products.scalars().all()}

    @staticmethod
    async def upsert_product(product_dto: ProductDTO, session: AsyncSession) -> bool:
        """
        Insert a product with its variants unless it already exists.

        Returns:
            True when the product was created
        """
        existing = await session.get(Product, product_dto.id)
        if existing is not None:
            return False
        product = Product(**product_dto.model_dump(exclude={'variants', 'created_at'}))
        product.variants = [ProductVariant(label=variant.label, price=variant.price)
                            for variant in product_dto.variants]
        session.add(product)
        await session.flush()
        return True
