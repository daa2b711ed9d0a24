"""Product endpoints - CRUD for the storefront admin"""
from typing import List, Optional, Tuple, Type, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.core.database import get_db
from app.core.rate_limit import limiter, WRITE_LIMIT
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductRead,
    OperationResult,
    MessageResponse,
)
from app.services.image_storage import ImageStorage, get_image_storage
from app.services.product_service import ProductService, NOT_FOUND_MESSAGE

router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


async def _read_payload(
    request: Request,
    schema: Type[PayloadT],
    storage: ImageStorage,
) -> Tuple[PayloadT, Optional[str]]:
    """
    Parse a JSON or form body into ``schema`` and store any uploaded image.

    Multipart bodies may carry an ``image`` file part; JSON bodies never do.
    Returns the payload and the stored image filename (or None).
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError
            raise HTTPException(status_code=400, detail="Malformed JSON body")
        if not isinstance(data, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object")
        return _validate(schema, data), None

    # Closing the form releases the spooled upload files
    async with request.form() as form:
        data = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
        data.pop("image", None)
        payload = _validate(schema, data)

        image = form.get("image")
        # Browsers send an empty part when no file was picked
        if isinstance(image, UploadFile) and image.filename:
            return payload, await storage.save(image)

    return payload, None


def _validate(schema: Type[PayloadT], data: dict) -> PayloadT:
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False)]
        )


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": message})


@router.post(
    "",
    response_model=OperationResult,
    response_model_exclude_none=True,
    status_code=201,
)
@limiter.limit(WRITE_LIMIT)
async def create_product(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Create a product, optionally with an image (multipart field ``image``).

    A duplicate SKU is not an HTTP error: the body carries
    ``success: false`` and a message.
    """
    payload, image = await _read_payload(request, ProductCreate, storage)

    return await ProductService(db).create_product(payload, image=image)


@router.get("", response_model=List[ProductRead])
async def list_products(db: AsyncSession = Depends(get_db)):
    """List every product."""
    return await ProductService(db).list_products()


@router.get(
    "/byId",
    response_model=ProductRead,
    responses={404: {"model": MessageResponse}},
)
async def get_product_by_id(
    id: str = Query(..., description="Product id"),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product_by_id(id)
    if not product.exists:
        return _not_found(NOT_FOUND_MESSAGE)
    return product


@router.get(
    "/bySku",
    response_model=ProductRead,
    responses={404: {"model": MessageResponse}},
)
async def get_product_by_sku(
    sku: str = Query(..., description="Product SKU"),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product_by_sku(sku)
    if not product.exists:
        return _not_found(NOT_FOUND_MESSAGE)
    return product


@router.get(
    "/image/{filename}",
    response_class=FileResponse,
    responses={404: {"model": MessageResponse}},
)
async def get_product_image(
    filename: str,
    storage: ImageStorage = Depends(get_image_storage),
):
    """Stream a stored product image."""
    path = storage.resolve(filename)
    if path is None:
        return _not_found("Image not found")
    return FileResponse(path)


@router.put(
    "",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
@limiter.limit(WRITE_LIMIT)
async def update_product(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Overwrite sku, name, price and description of the product ``id``.

    The stored image is replaced only when a new file is uploaded.
    """
    payload, image = await _read_payload(request, ProductUpdate, storage)

    return await ProductService(db).update_product(payload, image=image)


@router.delete("/delete", response_model=bool)
@limiter.limit(WRITE_LIMIT)
async def delete_product(
    request: Request,
    id: Optional[str] = Query(None, description="Product id"),
    sku: Optional[str] = Query(None, description="Product SKU (used when id is absent)"),
    db: AsyncSession = Depends(get_db),
):
    """Delete by id (or SKU). Returns false when nothing matched."""
    service = ProductService(db)

    if id:
        return await service.delete_product(id)
    if sku:
        return await service.delete_product_by_sku(sku)

    raise HTTPException(status_code=422, detail="Either id or sku is required")
