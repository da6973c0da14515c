"""Request client: headers, auth, envelope parsing and error mapping."""

import httpx
import pytest

from adapters.http_client import RequestClient, build_async_client
from core.domain.models import Product
from core.errors import ApiError, TransportError
from core.interfaces.transport import RequestDescriptor, RequestSender

from conftest import fail, json_body, ok


def test_request_client_satisfies_sender_protocol(settings):
    client = build_async_client(settings)
    assert isinstance(RequestClient(client), RequestSender)


@pytest.mark.asyncio
async def test_json_request_carries_content_type_and_bearer_token(settings, backend):
    backend.on("POST", "/api/buyer/cart", ok({"id": "c-1", "quantity": 2, "productId": "p-1"}))

    async with build_async_client(settings, transport=backend.transport) as client:
        sender = RequestClient(client, token_provider=lambda: "tok-123")
        envelope = await sender.send(
            RequestDescriptor("/buyer/cart", "POST", body={"productId": "p-1", "quantity": 2}),
        )

    request = backend.requests[0]
    assert str(request.url) == "http://api.test/api/buyer/cart"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Authorization"] == "Bearer tok-123"
    assert request.headers["Accept"] == "application/json"
    assert json_body(request) == {"productId": "p-1", "quantity": 2}
    assert envelope.success is True
    assert envelope.data["quantity"] == 2


@pytest.mark.asyncio
async def test_no_authorization_header_without_token(settings, backend):
    backend.on("GET", "/api/products/featured", ok([]))

    async with build_async_client(settings, transport=backend.transport) as client:
        await RequestClient(client, token_provider=lambda: None).send(RequestDescriptor("/products/featured"))

    assert "Authorization" not in backend.requests[0].headers


@pytest.mark.asyncio
async def test_query_string_is_sent_in_given_order(settings, backend):
    backend.on("GET", "/api/products", ok({"data": [], "total": 0, "page": 1, "limit": 20, "totalPages": 0}))

    async with build_async_client(settings, transport=backend.transport) as client:
        await RequestClient(client).send(
            RequestDescriptor("/products", query=(("page", "1"), ("limit", "20"), ("category", "Home & Garden"))),
        )

    assert backend.requests[0].url.query == b"page=1&limit=20&category=Home+%26+Garden"


@pytest.mark.asyncio
async def test_envelope_data_is_validated_against_type(settings, backend):
    backend.on("GET", "/api/products/1", ok({"id": "1", "title": "Test Product", "price": 99.99}))

    async with build_async_client(settings, transport=backend.transport) as client:
        envelope = await RequestClient(client).send(RequestDescriptor("/products/1"), Product)

    assert isinstance(envelope.data, Product)
    assert envelope.data.price == 99.99


@pytest.mark.asyncio
async def test_unsuccessful_envelope_is_returned_not_raised(settings, backend):
    backend.on("POST", "/api/auth/login", fail("Invalid credentials"))

    async with build_async_client(settings, transport=backend.transport) as client:
        envelope = await RequestClient(client).send(RequestDescriptor("/auth/login", "POST", body={}))

    assert envelope.success is False
    assert envelope.data is None
    assert envelope.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_non_2xx_raises_api_error_with_backend_message(settings, backend):
    backend.on("GET", "/api/auth/me", fail("Token expired"), status=401)

    async with build_async_client(settings, transport=backend.transport) as client:
        with pytest.raises(ApiError) as excinfo:
            await RequestClient(client).send(RequestDescriptor("/auth/me"))

    assert excinfo.value.status == 401
    assert excinfo.value.message == "Token expired"
    assert excinfo.value.payload == {"success": False, "message": "Token expired"}


@pytest.mark.asyncio
async def test_non_json_error_body_gives_empty_payload(settings, backend):
    backend.on_call("GET", "/api/products", lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))

    async with build_async_client(settings, transport=backend.transport) as client:
        with pytest.raises(ApiError) as excinfo:
            await RequestClient(client).send(RequestDescriptor("/products"))

    assert excinfo.value.status == 502
    assert excinfo.value.message == "HTTP 502"
    assert excinfo.value.payload == {}


@pytest.mark.asyncio
async def test_network_failure_raises_transport_error(settings):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with build_async_client(settings, transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(TransportError) as excinfo:
            await RequestClient(client).send(RequestDescriptor("/products"))

    assert isinstance(excinfo.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_redirect_loop_raises_transport_error(settings, backend):
    backend.on_call(
        "GET",
        "/api/products",
        lambda request: httpx.Response(302, headers={"Location": str(request.url)}),
    )

    async with build_async_client(settings, transport=backend.transport) as client:
        with pytest.raises(TransportError) as excinfo:
            await RequestClient(client).send(RequestDescriptor("/products"))

    assert isinstance(excinfo.value.cause, httpx.TooManyRedirects)


@pytest.mark.asyncio
async def test_corrupt_content_encoding_raises_transport_error(settings, backend):
    backend.on_call(
        "GET",
        "/api/products",
        lambda request: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"),
    )

    async with build_async_client(settings, transport=backend.transport) as client:
        with pytest.raises(TransportError) as excinfo:
            await RequestClient(client).send(RequestDescriptor("/products"))

    assert isinstance(excinfo.value.cause, httpx.DecodingError)


@pytest.mark.asyncio
async def test_success_with_non_json_body_raises_transport_error(settings, backend):
    backend.on_call("GET", "/api/products", lambda request: httpx.Response(200, text="not json"))

    async with build_async_client(settings, transport=backend.transport) as client:
        with pytest.raises(TransportError, match="not valid JSON"):
            await RequestClient(client).send(RequestDescriptor("/products"))


@pytest.mark.asyncio
async def test_multipart_upload_has_no_json_content_type(settings, backend):
    backend.on("POST", "/api/seller/documents", ok({"url": "https://cdn.test/doc.pdf"}))

    async with build_async_client(settings, transport=backend.transport) as client:
        await RequestClient(client, token_provider=lambda: "tok").send(
            RequestDescriptor(
                "/seller/documents",
                "POST",
                files=(("file", ("id.pdf", b"%PDF-1.4", "application/pdf")),),
                form=(("type", "identity"),),
            )
        )

    request = backend.requests[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert request.headers["Authorization"] == "Bearer tok"
    assert b'name="file"; filename="id.pdf"' in request.content
    assert b'name="type"' in request.content
    assert b"identity" in request.content
