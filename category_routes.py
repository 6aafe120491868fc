import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from auth_helper import is_admin
from repositories import CategoryRepository, get_category_repository
from schemas import Category, CategoryIn, slugify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/category", tags=["category"])


@router.post("/create-category", dependencies=[Depends(is_admin)])
def create_category(payload: CategoryIn, categories: CategoryRepository = Depends(get_category_repository)):
    name = (payload.name or "").strip()
    if not name:
        return JSONResponse(status_code=401, content={"message": "Name is required"})
    exists = {"success": False, "message": "Category Already Exists"}
    try:
        if categories.find_one({"name": name}):
            return JSONResponse(status_code=200, content=exists)
        category = categories.insert(Category(name=name, slug=slugify(name)).model_dump())
    except DuplicateKeyError:
        return JSONResponse(status_code=200, content=exists)
    except Exception as e:
        logger.exception("Error in Category")
        return JSONResponse(
            status_code=500, content={"success": False, "message": "Error in Category", "error": str(e)}
        )
    logger.info("Created category %s", category["slug"])
    return JSONResponse(
        status_code=201, content={"success": True, "message": "new category created", "category": category}
    )


@router.get("/get-category")
def get_categories(categories: CategoryRepository = Depends(get_category_repository)):
    try:
        items = categories.find_all()
    except Exception as e:
        logger.exception("Error while getting all categories")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error while getting all categories", "error": str(e)},
        )
    return {"success": True, "message": "All Categories List", "category": items}


@router.get("/single-category/{slug}")
def get_category(slug: str, categories: CategoryRepository = Depends(get_category_repository)):
    try:
        category = categories.find_one({"slug": slug})
    except Exception as e:
        logger.exception("Error While getting Single Category")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error While getting Single Category", "error": str(e)},
        )
    if not category:
        return JSONResponse(status_code=404, content={"success": False, "message": "Category Not Found"})
    return {"success": True, "message": "Get Single Category Successfully", "category": category}
