"""
Discount codes: issuing one every Nth order and redeeming them at checkout.

The cadence ("discount order") N is stored in the snapshot and only admins can
change it. Codes are single-use: once redeemed, a code stays unavailable.
"""

from __future__ import annotations
import logging
import secrets
import string
from typing import Any, Iterable, List, Optional, Tuple

from accounts import count_orders, find_user
from database import DocumentStore, settings
from errors import InvalidDiscountCode, Unauthorized, UserNotFound, ValidationError
from schemas import DiscountCode

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def effective_cadence(value: Optional[int]) -> int:
    if not value or value <= 0:
        return settings.DEFAULT_DISCOUNT_ORDER
    return value


def is_due(orders_so_far: int, cadence: Optional[int]) -> bool:
    """True when the next order is a multiple of the cadence."""
    return (orders_so_far + 1) % effective_cadence(cadence) == 0


def mint_code(existing: Iterable[DiscountCode] = ()) -> DiscountCode:
    taken = {c.code for c in existing}
    while True:
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(settings.DISCOUNT_CODE_LENGTH))
        if code not in taken:
            break
    return DiscountCode(code=code, discount=settings.DISCOUNT_PERCENT, is_available=True)


def maybe_issue_code(total_orders_so_far: int, cadence: Optional[int],
                     existing: Iterable[DiscountCode] = ()) -> Optional[DiscountCode]:
    if not is_due(total_orders_so_far, cadence):
        return None
    return mint_code(existing)


def redeem(code: str, codes: List[DiscountCode], total_amount: float) -> Tuple[float, DiscountCode]:
    """Consume the first available code equal to ``code`` (case-sensitive).

    Flips the matched code to unavailable in ``codes`` and returns the amount
    to take off ``total_amount``.
    """
    for discount in codes:
        if discount.code == code and discount.is_available:
            discount.is_available = False
            return total_amount * (discount.discount / 100), discount
    raise InvalidDiscountCode()


async def check_eligibility_and_issue(store: DocumentStore, user_id: str) -> Optional[DiscountCode]:
    """Return a code if the user's next order earns one, else None.

    Hands out an already-available code when there is one; otherwise a new
    code is minted and saved.
    """
    async with store.lock:
        snapshot = await store.read()
        user = find_user(snapshot, user_id)
        if user is None:
            raise UserNotFound()

        if settings.ELIGIBILITY_COUNTER == "global":
            orders_so_far = count_orders(snapshot)
        else:
            orders_so_far = len(user.orders)
        if not is_due(orders_so_far, snapshot.discount_order):
            return None

        code = next((c for c in snapshot.discount_codes if c.is_available), None)
        if code is None:
            code = mint_code(snapshot.discount_codes)
            snapshot.discount_codes.append(code)
            await store.write(snapshot)
            logger.info("Minted discount code %s for user %s", code.code, user_id)
    return code


async def set_discount_order(store: DocumentStore, requesting_user_id: str, value: Any) -> int:
    async with store.lock:
        snapshot = await store.read()
        user = find_user(snapshot, requesting_user_id)
        if user is None or user.role != "admin":
            raise Unauthorized()
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError("Invalid discount order. Must be a positive number.")
        snapshot.discount_order = value
        await store.write(snapshot)
    logger.info("Discount order set to %d by %s", value, requesting_user_id)
    return value


async def get_discount_order(store: DocumentStore) -> int:
    snapshot = await store.read()
    return effective_cadence(snapshot.discount_order)


async def list_discount_codes(store: DocumentStore) -> List[DiscountCode]:
    snapshot = await store.read()
    return snapshot.discount_codes
