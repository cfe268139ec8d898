import asyncio

import httpx

from fakes import FakeCMS, GatedFetch, snapshot
from schemas.cart import CartItem
from services.cart_store import CartStore
from services.stock import (
    StockReconciler, check_stock, distinct_product_ids, has_stock_issues, reconcile_stock,
)
from utils.sanity_client import SanityClient


def item(product_id, quantity=1, price=10.0):
    return CartItem(product_id=product_id, name=f"Item {product_id}", price=price, quantity=quantity)


# ---- pure reconciliation ----

def test_one_entry_per_distinct_product():
    items = [item("a", 1), item("b", 2), item("a", 3)]
    stock_map = reconcile_stock(items, [snapshot("a", quantity=5), snapshot("b", quantity=5)])

    assert set(stock_map) == {"a", "b"}
    # last line for a product wins
    assert stock_map["a"].available_quantity == 3


def test_available_quantity_is_min_of_requested_and_stock():
    items = [item("a", 2), item("b", 7), item("c", 4)]
    products = [snapshot("a", quantity=5), snapshot("b", quantity=3), snapshot("c", quantity=4)]
    stock_map = reconcile_stock(items, products)

    for it in items:
        info = stock_map[it.product_id]
        assert info.available_quantity == min(it.quantity, info.current_stock)
    assert stock_map["b"].exceeds_stock
    assert not stock_map["c"].exceeds_stock
    assert reconcile_stock(items, products) == stock_map


def test_missing_product_counts_as_out_of_stock():
    stock_map = reconcile_stock([item("gone", 1)], [])

    info = stock_map["gone"]
    assert info.current_stock == 0
    assert info.is_out_of_stock
    assert info.exceeds_stock
    assert info.available_quantity == 0


def test_has_stock_issues():
    assert not has_stock_issues({})
    ok = reconcile_stock([item("a", 1)], [snapshot("a", quantity=1)])
    assert not has_stock_issues(ok)
    short = reconcile_stock([item("a", 2)], [snapshot("a", quantity=1)])
    assert has_stock_issues(short)


def test_distinct_product_ids_keeps_first_seen_order():
    assert distinct_product_ids([item("b"), item("a"), item("b")]) == ["b", "a"]


def test_check_stock_uses_one_batched_fetch():
    cms = FakeCMS([snapshot("a", quantity=0), snapshot("b", quantity=9)])
    report = asyncio.run(check_stock([item("a"), item("b"), item("a", 2)], cms.fetch_products_by_ids))

    assert cms.product_requests == [["a", "b"]]
    assert report.has_stock_issues
    assert report.stock["a"].is_out_of_stock


def test_check_stock_with_empty_cart_skips_fetch():
    cms = FakeCMS()
    report = asyncio.run(check_stock([], cms.fetch_products_by_ids))

    assert cms.product_requests == []
    assert report.stock == {}
    assert not report.has_stock_issues


def test_stock_report_serializes_camel_case():
    cms = FakeCMS([snapshot("a", quantity=3)])
    report = asyncio.run(check_stock([item("a", 1)], cms.fetch_products_by_ids))

    data = report.model_dump(by_alias=True)
    assert data["hasStockIssues"] is False
    assert data["stock"]["a"] == {
        "productId": "a",
        "currentStock": 3,
        "isOutOfStock": False,
        "exceedsStock": False,
        "availableQuantity": 1,
    }


# ---- reactive reconciler ----

def test_reconciler_fetches_on_start_and_on_quantity_change():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)

        reconciler.start()
        await asyncio.sleep(0)
        assert reconciler.is_loading
        assert not reconciler.can_checkout
        fetch.resolve(0, [snapshot("a", quantity=2)])
        await reconciler.wait_idle()
        assert reconciler.get("a").current_stock == 2
        assert reconciler.can_checkout

        store.update_quantity("a", 3)
        await asyncio.sleep(0)
        fetch.resolve(1, [snapshot("a", quantity=2)])
        await reconciler.wait_idle()

        assert fetch.calls == [["a"], ["a"]]
        assert reconciler.get("a").exceeds_stock
        assert reconciler.has_stock_issues
        assert not reconciler.can_checkout
        reconciler.stop()

    asyncio.run(scenario())


def test_reconciler_ignores_changes_that_do_not_touch_items():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await asyncio.sleep(0)
        fetch.resolve(0, [snapshot("a", quantity=2)])
        await reconciler.wait_idle()

        store.open_cart()
        await asyncio.sleep(0)
        assert len(fetch.calls) == 1
        reconciler.stop()

    asyncio.run(scenario())


def test_removed_item_does_not_reappear_from_stale_response():
    async def scenario():
        store = CartStore()
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await asyncio.sleep(0)

        store.add_item(item("a"))
        await asyncio.sleep(0)
        assert reconciler.is_loading

        store.remove_item("a")
        await asyncio.sleep(0)
        assert reconciler.stock_map == {}
        assert not reconciler.is_loading

        fetch.resolve(0, [snapshot("a", quantity=5)])
        await reconciler.wait_idle()

        assert fetch.calls == [["a"]]
        assert reconciler.stock_map == {}
        assert not reconciler.has_stock_issues
        reconciler.stop()

    asyncio.run(scenario())


def test_latest_request_wins_when_responses_arrive_out_of_order():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await asyncio.sleep(0)

        store.update_quantity("a", 4)
        await asyncio.sleep(0)
        assert len(fetch.pending) == 2

        fetch.resolve(1, [snapshot("a", quantity=4)])
        await asyncio.sleep(0)
        fetch.resolve(0, [snapshot("a", quantity=0)])
        await reconciler.wait_idle()

        info = reconciler.get("a")
        assert info.current_stock == 4
        assert info.available_quantity == 4
        assert not reconciler.has_stock_issues
        assert not reconciler.is_loading
        reconciler.stop()

    asyncio.run(scenario())


def test_fetch_failure_keeps_previous_mapping():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await asyncio.sleep(0)
        fetch.resolve(0, [snapshot("a", quantity=0)])
        await reconciler.wait_idle()
        previous = reconciler.stock_map

        await_refetch = asyncio.ensure_future(reconciler.refetch())
        await asyncio.sleep(0)
        fetch.fail(1)
        result = await await_refetch

        assert result is previous
        assert reconciler.stock_map is previous
        assert reconciler.has_stock_issues
        assert reconciler.last_error is not None
        assert not reconciler.is_loading
        reconciler.stop()

    asyncio.run(scenario())


def test_stop_unsubscribes_from_store():
    async def scenario():
        store = CartStore()
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await reconciler.wait_idle()
        reconciler.stop()

        store.add_item(item("a"))
        await asyncio.sleep(0)
        assert fetch.calls == []

    asyncio.run(scenario())


def test_maintenance_page_is_recorded_as_fetch_failure():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    cms = SanityClient(project_id="proj", dataset="shop", api_version="2024-11-20", token="",
                       transport=httpx.MockTransport(handler))

    async def scenario():
        store = CartStore([item("a", 1)])
        reconciler = StockReconciler(store, cms.fetch_products_by_ids)
        reconciler.start()
        await reconciler.wait_idle()

        assert reconciler.stock_map == {}
        assert reconciler.last_error is not None
        assert not reconciler.is_loading
        reconciler.stop()

    asyncio.run(scenario())


def test_emptying_the_cart_clears_last_error():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)
        reconciler.start()
        await asyncio.sleep(0)
        fetch.fail(0)
        await reconciler.wait_idle()
        assert reconciler.last_error is not None

        store.clear_cart()
        await reconciler.wait_idle()

        assert reconciler.last_error is None
        assert reconciler.stock_map == {}
        reconciler.stop()

    asyncio.run(scenario())


def test_manual_refetch_follows_cart_changes_made_while_loading():
    async def scenario():
        store = CartStore([item("a", 1)])
        fetch = GatedFetch()
        reconciler = StockReconciler(store, fetch)

        pending = asyncio.ensure_future(reconciler.refetch())
        await asyncio.sleep(0)
        store.update_quantity("a", 3)
        fetch.resolve(0, [snapshot("a", quantity=2)])
        while len(fetch.pending) < 2:
            await asyncio.sleep(0)
        fetch.resolve(1, [snapshot("a", quantity=2)])
        stock_map = await pending

        assert fetch.calls == [["a"], ["a"]]
        assert stock_map["a"].exceeds_stock
        assert reconciler.stock_map is stock_map
        assert not reconciler.is_loading

    asyncio.run(scenario())
