"""Tests for the create-product admin form client."""

from unittest.mock import MagicMock

import httpx
import pytest

from admin_client import CATEGORY_URL, CREATE_PRODUCT_URL, PRODUCTS_PAGE, CreateProductForm

CATEGORIES = {"success": True, "category": [{"_id": "1", "name": "Test Category"}]}


def _client(handler):
    return httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def navigate():
    return MagicMock()


def _fill(form):
    form.name = "New Product"
    form.description = "This is a test product"
    form.price = "50"
    form.quantity = "10"
    form.category = "1"


class TestMount:
    def test_fetches_and_lists_categories(self, notifier):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=CATEGORIES)

        form = CreateProductForm(client=_client(handler), notifier=notifier)
        form.mount()

        assert [r.url.path for r in requests] == [CATEGORY_URL]
        assert form.category_options == [{"value": "1", "label": "Test Category"}]
        notifier.error.assert_not_called()

    def test_unsuccessful_response(self, notifier):
        form = CreateProductForm(
            client=_client(lambda r: httpx.Response(200, json={"success": False})), notifier=notifier
        )
        form.mount()

        assert form.categories == []
        notifier.error.assert_called_once_with("Something went wrong in getting category")

    def test_network_failure(self, notifier):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        form = CreateProductForm(client=_client(handler), notifier=notifier)
        form.mount()

        notifier.error.assert_called_once_with("Something went wrong in getting category")

    @pytest.mark.parametrize("payload", [b'[{"_id": "1"}]', b"null", b'"ok"'])
    def test_non_object_json(self, notifier, payload):
        form = CreateProductForm(client=_client(lambda r: httpx.Response(200, content=payload)), notifier=notifier)
        form.mount()

        assert form.categories == []
        notifier.error.assert_called_once_with("Something went wrong in getting category")


class TestSubmit:
    def test_success_notifies_and_navigates(self, notifier, navigate):
        posted = []

        def handler(request):
            posted.append(request)
            return httpx.Response(201, json={"success": True, "message": "Product Created Successfully"})

        form = CreateProductForm(client=_client(handler), notifier=notifier, navigate=navigate, token="tok")
        _fill(form)
        form.photo = b"image-bytes"

        assert form.submit() is True
        request, = posted
        assert request.method == "POST"
        assert request.url.path == CREATE_PRODUCT_URL
        assert request.headers["Authorization"] == "tok"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b"New Product" in body and b"image-bytes" in body
        notifier.success.assert_called_once_with("Product Created Successfully")
        navigate.assert_called_once_with(PRODUCTS_PAGE)

    def test_server_message_is_shown(self, notifier, navigate):
        form = CreateProductForm(
            client=_client(lambda r: httpx.Response(200, json={"success": False, "message": "test fail"})),
            notifier=notifier,
            navigate=navigate,
        )
        _fill(form)

        assert form.submit() is False
        notifier.error.assert_called_once_with("test fail")
        navigate.assert_not_called()

    def test_unexpected_failure(self, notifier):
        def handler(request):
            raise httpx.ReadTimeout("timeout", request=request)

        form = CreateProductForm(client=_client(handler), notifier=notifier)
        _fill(form)

        assert form.submit() is False
        notifier.error.assert_called_once_with("something went wrong")

    def test_non_json_response(self, notifier):
        form = CreateProductForm(
            client=_client(lambda r: httpx.Response(502, text="Bad Gateway")), notifier=notifier
        )
        _fill(form)

        assert form.submit() is False
        notifier.error.assert_called_once_with("something went wrong")

    @pytest.mark.parametrize("payload", [b'[{"success": true}]', b"null"])
    def test_non_object_json(self, notifier, navigate, payload):
        form = CreateProductForm(
            client=_client(lambda r: httpx.Response(200, content=payload)), notifier=notifier, navigate=navigate
        )
        _fill(form)

        assert form.submit() is False
        notifier.error.assert_called_once_with("something went wrong")
        navigate.assert_not_called()


def test_form_against_api(client, categories, products, admin_headers, notifier, navigate):
    """The form drives the real routes end to end."""
    categories.insert({"name": "Books", "slug": "books"})
    form = CreateProductForm(
        client=client, notifier=notifier, navigate=navigate, token=admin_headers["Authorization"]
    )

    form.mount()
    _fill(form)
    form.category = form.category_options[0]["value"]
    form.photo = b"img"

    assert form.submit() is True
    assert products.docs[0]["name"] == "New Product"
    assert products.docs[0]["category"] == form.category
