import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from auth_helper import is_admin
from repositories import ProductRepository, get_product_repository
from schemas import Product, slugify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/product", tags=["product"])

MAX_PHOTO_BYTES = 1_000_000


def _required(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


def _is_number(value: str) -> bool:
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


@router.post("/create-product", dependencies=[Depends(is_admin)])
def create_product(
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    category: str = Form(""),
    quantity: str = Form(""),
    shipping: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    products: ProductRepository = Depends(get_product_repository),
):
    if not name.strip():
        return _required("Name is Required")
    if not description.strip():
        return _required("Description is Required")
    if not _is_number(price):
        return _required("Price is Required")
    if not category.strip():
        return _required("Category is Required")
    if not _is_number(quantity):
        return _required("Quantity is Required")

    photo_data = photo.file.read() if photo is not None else b""
    if len(photo_data) > MAX_PHOTO_BYTES:
        return _required("photo is Required and should be less then 1mb")

    try:
        product = Product(
            name=name.strip(),
            slug=slugify(name),
            description=description,
            price=float(price),
            quantity=int(float(quantity)),
            category=category,
            shipping=(shipping or "").lower() in ("1", "true", "yes"),
        )
        doc = product.model_dump()
        if photo_data:
            doc["photo"] = {"data": photo_data, "content_type": photo.content_type}
        created = products.insert(doc)
    except Exception as e:
        logger.exception("Error in creating product")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error in creating product", "error": str(e)},
        )

    logger.info("Created product %s", created["_id"])
    return JSONResponse(
        status_code=201,
        content={"success": True, "message": "Product Created Successfully", "products": created},
    )


@router.get("/get-product")
def get_products(products: ProductRepository = Depends(get_product_repository)):
    try:
        items = products.find_recent(limit=12)
    except Exception as e:
        logger.exception("Error in getting products")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error in getting products", "error": str(e)},
        )
    return {"success": True, "countTotal": len(items), "message": "All Products", "products": items}


@router.get("/product-photo/{pid}")
def product_photo(pid: str, products: ProductRepository = Depends(get_product_repository)):
    try:
        photo = products.find_photo(pid)
    except Exception as e:
        logger.exception("Error while getting photo")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error while getting photo", "error": str(e)},
        )
    if photo is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "Photo Not Found"})
    data, content_type = photo
    return Response(content=data, media_type=content_type)
