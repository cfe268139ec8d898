# backend/services/stock.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

from schemas.cart import CartItem, StockInfo, StockReport
from schemas.product import ProductSnapshot
from services.cart_store import CartStore
from utils.sanity_client import CMSError

logger = logging.getLogger(__name__)

FetchProducts = Callable[[List[str]], Awaitable[List[ProductSnapshot]]]
StockMap = Dict[str, StockInfo]


def distinct_product_ids(items: Iterable[CartItem]) -> List[str]:
    # Preserve first-seen order so batched queries are stable
    return list(dict.fromkeys(it.product_id for it in items))


def reconcile_stock(items: Iterable[CartItem], products: Iterable[ProductSnapshot]) -> StockMap:
    """Compare requested quantities against live stock.

    Products missing from ``products`` (deleted or unpublished) count as zero
    stock. When the same product appears on several lines the last line wins.
    """
    levels = {p.id: max(p.stock, 0) for p in products}
    stock_map: StockMap = {}
    for item in items:
        current = levels.get(item.product_id, 0)
        stock_map[item.product_id] = StockInfo(
            product_id=item.product_id,
            current_stock=current,
            is_out_of_stock=current == 0,
            exceeds_stock=item.quantity > current,
            available_quantity=min(item.quantity, current),
        )
    return stock_map


def has_stock_issues(stock_map: StockMap) -> bool:
    return any(info.has_issue for info in stock_map.values())


async def check_stock(items: List[CartItem], fetch_products: FetchProducts) -> StockReport:
    # One-shot reconciliation for stateless callers
    product_ids = distinct_product_ids(items)
    products = await fetch_products(product_ids) if product_ids else []
    stock_map = reconcile_stock(items, products)
    return StockReport(stock=stock_map, has_stock_issues=has_stock_issues(stock_map))


class StockReconciler:
    """Keeps a stock map in sync with a session's cart.

    Each fetch is tagged with a request number and the cart fingerprint it was
    computed for. Only the newest request may publish its result, and only if
    the cart still has that fingerprint when the response arrives.
    """

    def __init__(self, store: CartStore, fetch_products: FetchProducts):
        self._store = store
        self._fetch_products = fetch_products
        self._stock_map: StockMap = {}
        self._request_seq = 0
        self._watched = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._tasks: Set[asyncio.Task] = set()
        self.is_loading = False
        self.last_error: Optional[Exception] = None

    @property
    def stock_map(self) -> StockMap:
        return self._stock_map

    @property
    def has_stock_issues(self) -> bool:
        return has_stock_issues(self._stock_map)

    @property
    def can_checkout(self) -> bool:
        return not self.is_loading and not self.has_stock_issues

    def get(self, product_id: str) -> Optional[StockInfo]:
        return self._stock_map.get(product_id)

    def start(self) -> asyncio.Task:
        """Subscribe to the cart and schedule the initial fetch (needs a running loop)."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_cart_change)
        self._watched = self._store.fingerprint()
        return self._schedule()

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._tasks):
            task.cancel()

    async def wait_idle(self) -> None:
        # Let every scheduled fetch settle
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_cart_change(self, store: CartStore) -> None:
        fingerprint = store.fingerprint()
        if fingerprint == self._watched:
            return
        self._watched = fingerprint
        self._schedule()

    def _schedule(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.refetch())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_latest(self, request_id: int, fingerprint) -> bool:
        return request_id == self._request_seq and fingerprint == self._store.fingerprint()

    async def refetch(self) -> StockMap:
        """Fetch stock for the current cart and publish it unless superseded."""
        self._request_seq += 1
        request_id = self._request_seq
        items = self._store.items
        fingerprint = self._store.fingerprint()
        product_ids = distinct_product_ids(items)

        if not product_ids:
            self._stock_map = {}
            self.is_loading = False
            self.last_error = None
            return self._stock_map

        self.is_loading = True
        try:
            products = await self._fetch_products(product_ids)
        except CMSError as e:
            logger.warning("Failed to fetch stock for %d products: %s", len(product_ids), e)
            if request_id == self._request_seq:
                self.last_error = e
            return self._stock_map
        finally:
            if request_id == self._request_seq:
                self.is_loading = False

        if not self._is_latest(request_id, fingerprint):
            logger.debug("Discarding stale stock response (request %s, latest %s)", request_id, self._request_seq)
            # Without a subscription nothing else will fetch for the new cart
            if request_id == self._request_seq and self._unsubscribe is None:
                return await self.refetch()
            return self._stock_map

        self._stock_map = reconcile_stock(items, products)
        self.last_error = None
        return self._stock_map
