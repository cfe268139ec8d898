# backend/services/cart_store.py
from typing import Callable, Iterable, List, Optional, Tuple

from schemas.cart import CartItem

Listener = Callable[["CartStore"], None]


class CartStore:
    """Observable cart state owned by one browsing session.

    Every UI surface of the session (cart sheet, checkout page, header badge)
    shares the same instance; it is passed to collaborators explicitly rather
    than kept as a module global. Items are never mutated in place: each
    action swaps in a new list and then notifies the subscribers.
    """

    def __init__(self, items: Optional[Iterable[CartItem]] = None):
        self._items: Tuple[CartItem, ...] = tuple(items or ())
        self._is_open = False
        self._listeners: List[Listener] = []

    # ---- selectors ----

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return self._items

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def total_items(self) -> int:
        return sum(it.quantity for it in self._items)

    @property
    def total_price(self) -> float:
        return round(sum(it.price * it.quantity for it in self._items), 2)

    def get_item(self, product_id: str) -> Optional[CartItem]:
        return next((it for it in self._items if it.product_id == product_id), None)

    def fingerprint(self) -> Tuple[Tuple[str, int], ...]:
        # Stock depends only on which products are requested and how many
        return tuple((it.product_id, it.quantity) for it in self._items)

    # ---- actions ----

    def add_item(self, item: CartItem, quantity: int = 1) -> None:
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        existing = self.get_item(item.product_id)
        if existing:
            self._replace(item.product_id, existing.model_copy(update={"quantity": existing.quantity + quantity}))
        else:
            self._set(self._items + (item.model_copy(update={"quantity": quantity}),))

    def remove_item(self, product_id: str) -> None:
        self._set(tuple(it for it in self._items if it.product_id != product_id))

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return
        existing = self.get_item(product_id)
        if existing is None:
            return
        self._replace(product_id, existing.model_copy(update={"quantity": quantity}))

    def clear_cart(self) -> None:
        self._set(())

    def open_cart(self) -> None:
        self._is_open = True
        self._notify()

    def close_cart(self) -> None:
        self._is_open = False
        self._notify()

    def toggle_cart(self) -> None:
        self._is_open = not self._is_open
        self._notify()

    # ---- subscriptions ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, product_id: str, new_item: CartItem) -> None:
        self._set(tuple(new_item if it.product_id == product_id else it for it in self._items))

    def _set(self, items: Tuple[CartItem, ...]) -> None:
        self._items = items
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
