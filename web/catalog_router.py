from fastapi import APIRouter, Depends

from db import Database
from exceptions.catalog import ProductNotFoundException
from models.product import ProductDTO
from repositories.catalog import CatalogRepository
from utils.transaction_manager import TransactionManager
from web.dependencies import get_database

catalog_router = APIRouter(prefix="/products", tags=["catalog"])


@catalog_router.get("", response_model=list[ProductDTO])
async def list_products(database: Database = Depends(get_database)):
    """Active menu with variants, as rendered by the storefront page."""
    async with TransactionManager.atomic_transaction(database) as session:
        return await CatalogRepository.list_active_products(session)


@catalog_router.get("/{product_id}", response_model=ProductDTO)
async def get_product(product_id: str, database: Database = Depends(get_database)):
    async with TransactionManager.atomic_transaction(database) as session:
        product = await CatalogRepository.get_product(product_id, session)
    if product is None or not product.active:
        raise ProductNotFoundException(product_id)
    return product
