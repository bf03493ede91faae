import threading
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    # Seul état défini: aucune transition après la création
    PENDING = "PENDING"


class Order(BaseModel):
    id: int
    user_id: int  # référence faible vers le Users Service, pas de clé étrangère
    product_name: str
    quantity: int
    total_price: float
    status: OrderStatus
    order_date: datetime


class OrderRepository:
    """Stockage en mémoire des commandes, séparé de celui des utilisateurs."""

    def __init__(self):
        self._lock = threading.Lock()
        self._orders: Dict[int, Order] = {}
        self._next_id = 1

    def list(self) -> List[Order]:
        with self._lock:
            return list(self._orders.values())

    def get(self, order_id: int) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def list_by_user(self, user_id: int) -> List[Order]:
        with self._lock:
            return [o for o in self._orders.values() if o.user_id == user_id]

    def add(self, user_id: int, product_name: str, quantity: int, total_price: float,
            status: OrderStatus, order_date: datetime) -> Order:
        with self._lock:
            order = Order(
                id=self._next_id,
                user_id=user_id,
                product_name=product_name,
                quantity=quantity,
                total_price=total_price,
                status=status,
                order_date=order_date,
            )
            self._orders[order.id] = order
            self._next_id += 1
            return order

    def clear(self):
        with self._lock:
            self._orders.clear()
            self._next_id = 1


orders_db = OrderRepository()
