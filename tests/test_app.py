"""
Application shell tests - root endpoint and the catch-all error handler
"""
import json

import pytest
from starlette.requests import Request

from app.main import unhandled_exception_handler


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/api/v1/docs"


@pytest.mark.asyncio
async def test_unhandled_errors_become_generic_500(caplog):
    request = Request({
        "type": "http",
        "method": "PATCH",
        "path": "/api/v1/user/update/test@example.com",
        "headers": [],
        "query_string": b"",
    })

    response = await unhandled_exception_handler(request, RuntimeError("connection reset"))

    assert response.status_code == 500
    assert json.loads(response.body) == {"detail": "Internal server error"}
    assert "connection reset" not in response.body.decode()
    assert "/api/v1/user/update/test@example.com" in caplog.text
