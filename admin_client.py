"""Admin-side "create product" form.

Mirrors the dashboard form: on mount it loads the category list, on submit it
posts the product as multipart form data and reports the outcome through a
notifier (anything with ``success(msg)`` and ``error(msg)``).
"""
import os
import logging
import mimetypes
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

CATEGORY_URL = "/api/v1/category/get-category"
CREATE_PRODUCT_URL = "/api/v1/product/create-product"
PRODUCTS_PAGE = "/dashboard/admin/products"


class LogNotifier:
    """Default notifier: writes notifications to the log."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)


class CreateProductForm:
    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        notifier: Any = None,
        navigate: Optional[Callable[[str], None]] = None,
        token: Optional[str] = None,
    ):
        self.client = client or httpx.Client(base_url=API_BASE_URL, timeout=10.0)
        self.notifier = notifier or LogNotifier()
        self.navigate = navigate or (lambda path: None)
        self.token = token

        self.categories: List[Dict[str, Any]] = []
        self.name = ""
        self.description = ""
        self.price = ""
        self.quantity = ""
        self.category = ""
        self.shipping = ""
        self.photo: Optional[Union[str, Path, bytes]] = None

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.token} if self.token else {}

    @property
    def category_options(self) -> List[Dict[str, str]]:
        return [{"value": c.get("_id"), "label": c.get("name")} for c in self.categories]

    def mount(self) -> None:
        try:
            data = self.client.get(CATEGORY_URL).json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Fetching categories failed: %s", e)
            self.notifier.error("Something went wrong in getting category")
            return
        if not isinstance(data, dict):
            logger.warning("Unexpected category response: %r", data)
            self.notifier.error("Something went wrong in getting category")
            return
        if data.get("success"):
            self.categories = data.get("category") or []
        else:
            self.notifier.error("Something went wrong in getting category")

    def _photo_file(self):
        if self.photo is None:
            return None
        if isinstance(self.photo, bytes):
            return ("photo", self.photo, "application/octet-stream")
        path = Path(self.photo)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return (path.name, path.read_bytes(), content_type)

    def submit(self) -> bool:
        form = {
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "quantity": str(self.quantity),
            "category": self.category,
            "shipping": str(self.shipping),
        }
        try:
            photo = self._photo_file()
            files = {"photo": photo} if photo else None
            response = self.client.post(CREATE_PRODUCT_URL, data=form, files=files, headers=self._headers())
            data = response.json()
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.warning("Creating product failed: %s", e)
            self.notifier.error("something went wrong")
            return False

        if not isinstance(data, dict):
            logger.warning("Unexpected create-product response: %r", data)
            self.notifier.error("something went wrong")
            return False
        if data.get("success"):
            self.notifier.success("Product Created Successfully")
            self.navigate(PRODUCTS_PAGE)
            return True
        self.notifier.error(data.get("message") or data.get("error") or "something went wrong")
        return False
