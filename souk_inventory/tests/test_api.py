from dataclasses import replace

from souk_inventory.app.api.deps import get_app_settings
from souk_inventory.app.core.config import get_settings


def test_list_products_triggers_lazy_reorder(client, build):
    wid = build.warehouse(capacity=100, name="Tangier Hub")
    low = build.product(wid, qty=4, threshold=10, sku="SKU-LOW")
    build.product(wid, qty=40, threshold=10, sku="SKU-OK")

    res = client.get("/v1/products")
    assert res.status_code == 200
    rows = {p["sku"]: p for p in res.json()}
    assert rows["SKU-LOW"]["warehouse_name"] == "Tangier Hub"
    assert rows["SKU-LOW"]["supplier_name"] is None

    orders = client.get("/v1/orders").json()
    assert len(orders) == 1
    assert orders[0]["product_id"] == low
    assert orders[0]["product_sku"] == "SKU-LOW"
    assert orders[0]["supplier_name"] == "Default Supplier"
    assert orders[0]["warehouse_name"] == "Tangier Hub"
    assert orders[0]["quantity_ordered"] == 16
    assert orders[0]["capacity_issue"] is False
    assert orders[0]["status"] == "pending"

    # pas de doublon au second passage
    client.get("/v1/products")
    client.get(f"/v1/products/{low}")
    assert len(client.get("/v1/orders").json()) == 1


def test_lazy_reorder_can_be_disabled(client, build):
    wid = build.warehouse(capacity=100)
    low = build.product(wid, qty=0, threshold=10)
    client.app.dependency_overrides[get_app_settings] = lambda: replace(
        get_settings(), auto_reorder_on_read=False
    )

    assert client.get("/v1/products").status_code == 200
    assert client.get(f"/v1/products/{low}").status_code == 200
    assert client.get("/v1/orders").json() == []


def test_unknown_product_is_404(client, build):
    res = client.get("/v1/products/9999")
    assert res.status_code == 404
    assert "not found" in res.json()["detail"]


def test_adjust_stock_sale_and_reorder(client, build):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=12, threshold=10)

    res = client.post(f"/v1/products/{pid}/adjust-stock", json={"delta": -8, "reason": "sale"})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["product"]["quantity_in_stock"] == 4
    assert body["reorder"]["created"] is True
    assert body["reorder"]["quantity_ordered"] == 16
    assert body["reorder"]["capacity_issue"] is False


def test_adjust_stock_negative_result_is_400(client, build):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=5, threshold=0)

    res = client.post(f"/v1/products/{pid}/adjust-stock", json={"delta": -10})

    assert res.status_code == 400
    assert client.get(f"/v1/products/{pid}").json()["quantity_in_stock"] == 5


def test_adjust_stock_requires_integer_delta(client, build):
    wid = build.warehouse(capacity=100)
    pid = build.product(wid, qty=5, threshold=0)

    assert client.post(f"/v1/products/{pid}/adjust-stock", json={"delta": "5"}).status_code == 422
    assert client.post(f"/v1/products/{pid}/adjust-stock", json={}).status_code == 422
    assert client.post("/v1/products/9999/adjust-stock", json={"delta": 1}).status_code == 404


def test_manual_order_then_receive(client, build):
    wid = build.warehouse(capacity=30)
    pid = build.product(wid, qty=20, threshold=0)

    res = client.post("/v1/orders", json={"product_id": pid, "quantity_ordered": 25})
    assert res.status_code == 200
    created = res.json()
    assert created["created"] is True
    assert created["quantity_ordered"] == 10
    assert created["capacity_issue"] is True

    dup = client.post("/v1/orders", json={"product_id": pid, "quantity_ordered": 1})
    assert dup.status_code == 409

    order = client.get(f"/v1/orders/{created['id']}").json()
    assert order["status"] == "pending"

    rec = client.post(f"/v1/orders/{created['id']}/receive")
    assert rec.status_code == 200
    assert rec.json() == {
        "received": True,
        "added_quantity": 10,
        "capacity_limited": False,
        "reorder": None,
    }

    again = client.post(f"/v1/orders/{created['id']}/receive")
    assert again.status_code == 400

    assert client.get(f"/v1/orders/{created['id']}").json()["status"] == "received"
    assert client.get(f"/v1/products/{pid}").json()["quantity_in_stock"] == 30


def test_order_errors(client, build):
    assert client.post("/v1/orders/4242/receive").status_code == 404
    assert client.get("/v1/orders/4242").status_code == 404
    assert client.post("/v1/orders", json={"product_id": 4242, "quantity_ordered": 1}).status_code == 404
    assert client.post("/v1/orders", json={"quantity_ordered": 1}).status_code == 422
    assert client.post("/v1/orders", json={"product_id": 1, "quantity_ordered": -3}).status_code == 422


def test_warehouses_report_available_space(client, build):
    wid = build.warehouse(capacity=50, name="Agadir Cold Store")
    build.product(wid, qty=12, threshold=0)

    res = client.get("/v1/warehouses")

    assert res.status_code == 200
    assert res.json() == [
        {"id": wid, "name": "Agadir Cold Store", "capacity": 50, "available_space": 38}
    ]
