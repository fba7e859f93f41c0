import json

import pytest

from src.database.orders import JsonFileOrderStore
from src.integrations.contracts.interfaces import OrderStatus, POSProvider
from src.integrations.contracts.orders import order_from_record, parse_order_status


def record(**overrides):
    base = {
        "transactionId": "tx-1",
        "amount": "1250",
        "status": "SUBMITTED",
        "createdAt": "2024-05-01T09:30:00Z",
        "receiptUrl": "https://receipts.test/tx-1",
        "orderId": "sq-order-1",
        "merchantId": "M1",
        "coffeeShopData": {"id": "1", "name": "Lakeside Roasters", "merchantId": "M1", "posType": "square"},
        "items": [{"id": "latte", "name": "Latte", "quantity": 2, "price": 450, "customizations": "Oat"}],
        "userId": "u-9",
    }
    base.update(overrides)
    return base


def test_record_is_decoded_with_dollar_amounts():
    order = order_from_record(record())

    assert order.id == order.transaction_id == "tx-1"
    assert order.total_amount == 12.5
    assert order.items[0].price == 4.5
    assert order.items[0].quantity == 2
    assert order.pos_order_id == "sq-order-1"
    assert order.status == OrderStatus.SUBMITTED
    assert order.coffee_shop.pos_type is POSProvider.SQUARE
    assert order.date.year == 2024 and order.date.tzinfo is not None
    assert order.extra == {"userId": "u-9"}


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, OrderStatus.AUTHORIZED),
        ("NOT_A_STATUS", OrderStatus.AUTHORIZED),
        ("ready", OrderStatus.READY),
        ("DRAFT", OrderStatus.DRAFT),
        ("PENDING", OrderStatus.PENDING),
        ("active", OrderStatus.ACTIVE),
    ],
)
def test_status_decoding(raw, expected):
    assert parse_order_status(raw) == expected


def test_missing_status_decodes_as_authorized():
    data = record()
    del data["status"]
    assert order_from_record(data).status == OrderStatus.AUTHORIZED


def test_missing_transaction_id_is_rejected():
    data = record()
    del data["transactionId"]
    with pytest.raises(KeyError):
        order_from_record(data)


def test_epoch_created_at_and_missing_shop():
    order = order_from_record(record(createdAt=1714555800, coffeeShopData=None))

    assert order.date.year == 2024
    assert order.coffee_shop.merchant_id == "M1"
    assert order.coffee_shop.pos_type is POSProvider.SQUARE


@pytest.mark.asyncio
async def test_json_store_updates_status_on_disk(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps([record(), record(transactionId="tx-2", orderId=None)]), encoding="utf-8")
    store = JsonFileOrderStore(path)

    await store.update_status("tx-1", OrderStatus.READY)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk[0]["status"] == "READY"
    assert on_disk[0]["userId"] == "u-9"
    assert on_disk[1]["status"] == "SUBMITTED"
    orders = await store.list_orders()
    assert [o.status for o in orders] == [OrderStatus.READY, OrderStatus.SUBMITTED]


@pytest.mark.asyncio
async def test_json_store_skips_bad_records_and_rejects_unknown_ids(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps([record(), {"amount": "100"}, "junk"]), encoding="utf-8")
    store = JsonFileOrderStore(path)

    assert [o.id for o in await store.list_orders()] == ["tx-1"]
    with pytest.raises(KeyError):
        await store.update_status("missing", OrderStatus.READY)


@pytest.mark.asyncio
async def test_json_store_missing_file_is_empty(tmp_path):
    assert await JsonFileOrderStore(tmp_path / "none.json").list_orders() == []


@pytest.mark.asyncio
async def test_json_store_update_only_touches_status(tmp_path):
    path = tmp_path / "orders.json"
    shop_data = {"id": "1", "name": "Lakeside Roasters", "merchantId": "M1", "posType": "square", "loyaltyTier": "gold"}
    item = {"id": "latte", "name": "Latte", "quantity": 1, "price": 450, "note": "extra hot"}
    original = [
        "junk",
        record(coffeeShopData=shop_data, items=[item]),
        {"amount": "100"},
    ]
    path.write_text(json.dumps(original), encoding="utf-8")
    store = JsonFileOrderStore(path)

    await store.update_status("tx-1", OrderStatus.COMPLETED)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    expected = json.loads(json.dumps(original))
    expected[1]["status"] = "COMPLETED"
    assert on_disk == expected
