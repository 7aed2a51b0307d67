import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from database import new_id, utcnow
from schemas import Number, Product
from store import Container, DuplicateRecordError, get_products
from validators import validate_product, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

SKU_CONFLICT = "SKU already exists. SKU must be unique."
ID_CONFLICT = "Product id already exists"


class ProductIn(BaseModel):
    id: Optional[str] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Number] = None
    category: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    stock: Optional[Number] = None


class ProductUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Number] = None
    category: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    stock: Optional[Number] = None


def _find_product(products: Container, product_id: str, category: Optional[str]) -> Dict[str, Any]:
    if category:
        product = products.get_by_id(product_id, category)
    else:
        # partition unknown: resolve it by scanning for the id
        product = products.find_by_id(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _check_sku_free(products: Container, sku: Optional[str], current_sku: Optional[str] = None):
    if sku and sku != current_sku and products.get_by_unique_field("sku", sku):
        logger.warning("Rejected duplicate SKU %s", sku)
        raise HTTPException(status_code=409, detail=SKU_CONFLICT)


def _save(products: Container, existing: Dict[str, Any], record: Dict[str, Any]) -> Dict[str, Any]:
    result = validate_product(record)
    if not result.is_valid:
        raise validation_error(result.errors)
    _check_sku_free(products, record["sku"], existing["sku"])

    record["updatedAt"] = utcnow()
    document = Product(**record).model_dump()
    try:
        saved = products.replace(existing["id"], existing["category"], document)
    except DuplicateRecordError:
        raise HTTPException(status_code=409, detail=SKU_CONFLICT)
    if saved is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return saved


@router.get("")
def list_products(products: Container = Depends(get_products)):
    return products.list_all(order_by="createdAt")


@router.get("/category/{category}")
def list_products_by_category(category: str, products: Container = Depends(get_products)):
    return products.get_by_partition(category, order_by="createdAt")


@router.get("/sku/{sku}")
def get_product_by_sku(sku: str, products: Container = Depends(get_products)):
    product = products.get_by_unique_field("sku", sku)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{product_id}")
def get_product(product_id: str, category: Optional[str] = Query(None), products: Container = Depends(get_products)):
    return _find_product(products, product_id, category)


@router.post("", status_code=201)
def create_product(data: ProductIn, products: Container = Depends(get_products)):
    now = utcnow()
    record = {
        "id": data.id or new_id(),
        "sku": data.sku,
        "name": data.name,
        "price": data.price,
        "category": data.category,
        "image": data.image,
        "description": data.description or "",
        "stock": data.stock if data.stock is not None else 0,
        "createdAt": now,
        "updatedAt": now,
    }
    result = validate_product(record)
    if not result.is_valid:
        raise validation_error(result.errors)
    _check_sku_free(products, record["sku"])

    try:
        created = products.create(Product(**record).model_dump())
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=ID_CONFLICT if e.field == "_id" else SKU_CONFLICT)
    logger.info("Created product %s (%s)", created["id"], created["sku"])
    return created


@router.put("/{product_id}")
def update_product(
    product_id: str,
    data: ProductUpdate,
    category: Optional[str] = Query(None),
    products: Container = Depends(get_products),
):
    existing = _find_product(products, product_id, category)
    # every field sent in the body wins, even null; the rest is kept
    record = {**existing, **data.model_dump(exclude_unset=True)}
    if record.get("description") is None:
        record["description"] = ""
    if record.get("stock") is None:
        record["stock"] = 0
    return _save(products, existing, record)


@router.patch("/{product_id}")
def partial_update_product(
    product_id: str,
    data: ProductUpdate,
    category: Optional[str] = Query(None),
    products: Container = Depends(get_products),
):
    existing = _find_product(products, product_id, category)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    record = {**existing, **changes}
    return _save(products, existing, record)


@router.delete("/{product_id}")
def delete_product(product_id: str, category: Optional[str] = Query(None), products: Container = Depends(get_products)):
    product = _find_product(products, product_id, category)
    if not products.delete(product["id"], product["category"]):
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Deleted product %s", product["id"])
    return {"message": "Product deleted successfully"}
