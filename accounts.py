"""
Signup, login and order-history lookups.

Passwords are stored and compared as plain text; there are no sessions or
tokens. The client keeps the returned user and sends its id back.
"""

from __future__ import annotations
import logging
import uuid
from typing import List, Optional

from database import DocumentStore
from errors import AuthenticationFailed, UserExists, UserNotFound
from schemas import Order, PublicUser, SignupRequest, Snapshot, StoreOrder, User

logger = logging.getLogger(__name__)


def find_user(snapshot: Snapshot, user_id: str) -> Optional[User]:
    return next((u for u in snapshot.users if u.user_id == user_id), None)


def count_orders(snapshot: Snapshot) -> int:
    """Orders placed by every user so far."""
    return sum(len(u.orders) for u in snapshot.users)


async def create_user(store: DocumentStore, data: SignupRequest) -> PublicUser:
    async with store.lock:
        snapshot = await store.read()
        if any(u.email == data.email for u in snapshot.users):
            raise UserExists()
        user = User(
            user_id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            password=data.password,
            role="user",
        )
        snapshot.users.append(user)
        await store.write(snapshot)
    logger.info("Created user %s", user.user_id)
    return user.public()


async def login_user(store: DocumentStore, email: str, password: str) -> PublicUser:
    snapshot = await store.read()
    user = next((u for u in snapshot.users if u.email == email), None)
    if user is None:
        raise AuthenticationFailed("User doesn't exist. Please sign up.")
    if user.password != password:
        raise AuthenticationFailed("Password is incorrect.")
    return user.public()


async def list_users(store: DocumentStore) -> List[PublicUser]:
    """Customers only; admins are left out."""
    snapshot = await store.read()
    return [u.public() for u in snapshot.users if u.role != "admin"]


async def list_all_users(store: DocumentStore) -> List[PublicUser]:
    snapshot = await store.read()
    return [u.public() for u in snapshot.users]


async def get_user_orders(store: DocumentStore, user_id: str) -> List[Order]:
    snapshot = await store.read()
    user = find_user(snapshot, user_id)
    if user is None:
        raise UserNotFound()
    return user.orders


async def get_user_order_count(store: DocumentStore, user_id: str) -> int:
    return len(await get_user_orders(store, user_id))


async def list_all_orders(store: DocumentStore) -> List[StoreOrder]:
    """Every order in the store, newest first, tagged with who placed it."""
    snapshot = await store.read()
    orders = [
        StoreOrder(**order.model_dump(), user_id=user.user_id, user_name=user.name)
        for user in snapshot.users
        for order in user.orders
    ]
    orders.sort(key=lambda o: o.date, reverse=True)
    return orders
