from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger

from .models import Order, OrderRepository, OrderStatus
from .schemas import OrderCreate
from .user_lookup import UserLookup


class OrderWorkflow:
    """Création et lecture des commandes.

    Une commande n'est enregistrée que si le Users Service a confirmé
    l'existence de l'utilisateur au moment de la création. Aucune garantie
    ensuite: l'utilisateur peut disparaître sans effet sur ses commandes.
    """

    def __init__(self, orders: OrderRepository, users: UserLookup):
        self.orders = orders
        self.users = users

    def list_orders(self) -> List[Order]:
        return self.orders.list()

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.orders.get(order_id)

    def list_orders_by_user(self, user_id: int) -> List[Order]:
        return self.orders.list_by_user(user_id)

    async def create_order(self, order: OrderCreate, trace_id: Optional[str] = None) -> Order:
        # Lève UserNotFound ou UserServiceUnavailable: rien n'est enregistré
        await self.users.get_user(order.user_id, trace_id=trace_id)

        # Valeurs par défaut appliquées ici, une seule fois, avant l'écriture.
        # Ni verrou ni transaction compensatoire entre la validation et
        # l'écriture: écart de cohérence connu entre les deux services.
        order_date = order.order_date or datetime.now(timezone.utc)
        new_order = self.orders.add(
            user_id=order.user_id,
            product_name=order.product_name,
            quantity=order.quantity,
            total_price=order.total_price,
            status=OrderStatus.PENDING,
            order_date=order_date,
        )
        logger.info(f"Order created with ID {new_order.id}")
        return new_order
