from fastapi import APIRouter, Depends, status

from unilib.api.middleware.auth import get_store, require_staff
from unilib.api.schemas import CategoryCreateRequest, CategoryUpdateRequest
from unilib.domain.records import Category
from unilib.ports.auth import Principal
from unilib.ports.store import StorePort
from unilib.services.catalog import CatalogService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=list[Category])
async def list_categories(store: StorePort = Depends(get_store)) -> list[Category]:
    return await CatalogService(store).list_categories()


@router.post("", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreateRequest,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> Category:
    return await CatalogService(store).create_category(data.name, data.description)


@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: str,
    data: CategoryUpdateRequest,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> Category:
    return await CatalogService(store).update_category(category_id, data.model_dump(exclude_unset=True))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> None:
    await CatalogService(store).delete_category(category_id)
