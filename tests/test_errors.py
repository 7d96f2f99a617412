from pydantic import BaseModel

from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError
from app.core.permission_listener import PermissionErrorListener


def test_404_not_found(client):
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure(app, client):
    class Item(BaseModel):
        name: str
        price: int

    @app.post("/test-validation")
    def create_item(item: Item):
        return item

    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception(app, client):
    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise ResourceNotFoundError(message="Item not found")

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_missing_token_is_401(client):
    response = client.get("/api/v1/users/alice/qarzs")
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"


def test_permission_error_in_development_returns_rule_context(app, client):
    @app.get("/test-denied")
    def denied():
        raise PermissionDeniedError("users/bob/qarzs", "list")

    response = client.get("/test-denied")
    assert response.status_code == 403
    data = response.json()
    assert data["code"] == "PERMISSION_DENIED"
    assert data["details"] == {"path": "users/bob/qarzs", "operation": "list"}


def test_permission_error_in_production_returns_generic_toast(app, client, production_settings):
    app.state.permission_listener.unmount()
    PermissionErrorListener(app.state.emitter, production_settings).mount()

    @app.post("/test-denied-write")
    def denied_write():
        raise PermissionDeniedError("users/bob/qarzs", "create", {"amount": 10})

    response = client.post("/test-denied-write")
    assert response.status_code == 403
    data = response.json()
    assert data["code"] == "PERMISSION_DENIED"
    toasts = data["details"]["toasts"]
    assert len(toasts) == 1
    assert toasts[0]["title"] == "Permission Denied"
    assert toasts[0]["variant"] == "destructive"
    # No rule context leaks
    assert "users/bob" not in response.text
