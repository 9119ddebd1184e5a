"""
Checkout: turns a cart into a placed order.

A checkout reads the snapshot, works on that copy, and saves it with a single
write. If any step fails, nothing is written: stock levels, the user's order
history, a code minted for this order, and the redeemed code all stay as they
were.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from accounts import count_orders, find_user
from database import DocumentStore
from discounts import maybe_issue_code, redeem
from errors import InsufficientStock, ProductNotFound, UserNotFound, ValidationError
from inventory import find_product, replace_products
from schemas import CartItem, CheckoutOutcome, Order, OrderItem, Product

logger = logging.getLogger(__name__)


async def process_checkout(
    store: DocumentStore,
    user_id: str,
    cart_items: List[CartItem],
    discount_code: Optional[str] = None,
) -> CheckoutOutcome:
    if not user_id or not cart_items:
        raise ValidationError("Invalid request. userId and non-empty cartItems are required.")

    async with store.lock:
        snapshot = await store.read()

        user = find_user(snapshot, user_id)
        if user is None:
            raise UserNotFound()

        # The cadence counts orders across all users, not just this one.
        new_code = maybe_issue_code(count_orders(snapshot), snapshot.discount_order, snapshot.discount_codes)
        if new_code is not None:
            snapshot.discount_codes.append(new_code)

        total_amount = 0.0
        items: List[OrderItem] = []
        updated: Dict[str, Product] = {}
        for line in cart_items:
            product = updated.get(line.product_id) or find_product(snapshot, line.product_id)
            if product is None:
                raise ProductNotFound(line.product_id)
            if product.quantity < line.quantity:
                raise InsufficientStock(product.name)

            total_amount += line.ordered_price * line.quantity
            product.quantity -= line.quantity
            updated[product.product_id] = product
            items.append(OrderItem(
                product_id=product.product_id,
                name=product.name,
                quantity=line.quantity,
                ordered_price=line.ordered_price,
                price=product.price,
            ))

        discount_applied = 0.0
        if discount_code:
            discount_applied, _ = redeem(discount_code, snapshot.discount_codes, total_amount)

        order = Order(
            order_id=str(uuid.uuid4()),
            items=items,
            total_amount=total_amount,
            discount_applied=discount_applied,
            final_amount=total_amount - discount_applied,
            date=datetime.now(timezone.utc).isoformat(),
            applied_discount_code=discount_code or None,
        )
        user.orders.append(order)
        replace_products(snapshot, updated.values())

        await store.write(snapshot)

    logger.info("Order %s placed by %s: %.2f (discount %.2f)",
                order.order_id, user_id, order.final_amount, discount_applied)
    if new_code is not None:
        logger.info("Order %s earned discount code %s", order.order_id, new_code.code)
    return CheckoutOutcome(order=order, new_discount_code=new_code)
