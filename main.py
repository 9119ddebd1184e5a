from __future__ import annotations
import logging
import os
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Type, TypeVar

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

import accounts
import discounts
import inventory
from checkout import process_checkout
from database import DocumentStore, get_store, settings
from errors import StorefrontError, ValidationError
from schemas import (
    CheckoutRequest, DiscountOrderRequest, EligibilityRequest, LoginRequest,
    ProductCreate, ProductUpdate, SignupRequest,
)

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront API")

# Allow all origins for dev preview
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


M = TypeVar("M", bound=BaseModel)

def parse_body(model: Type[M], body: Any) -> M:
    try:
        return model.model_validate(body if body is not None else {})
    except SchemaError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        message = f"{field}: {first['msg']}" if field else first["msg"]
        raise ValidationError(message) from e


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be JSON") from e


# ----- Actions -----
# One endpoint per method; the ?action= query parameter picks the handler.

Handler = Callable[[DocumentStore, dict], Awaitable[Any]]


class Action(NamedTuple):
    handler: Handler
    status_code: int = 200


def require(params: dict, name: str) -> str:
    value = params.get(name)
    if not value:
        raise ValidationError(f"{name} is required")
    return value


async def list_products_action(store, params):
    return {"products": await inventory.list_products(store)}

async def get_product_action(store, params):
    product = await inventory.get_product(store, require(params, "productId"))
    return {"product": product}

async def get_user_orders_action(store, params):
    return {"orders": await accounts.get_user_orders(store, require(params, "userId"))}

async def get_users_action(store, params):
    return {"users": await accounts.list_users(store)}

async def get_all_users_action(store, params):
    return {"users": await accounts.list_all_users(store)}

async def get_user_order_count_action(store, params):
    return {"orderCount": await accounts.get_user_order_count(store, require(params, "userId"))}

async def get_discount_order_action(store, params):
    return {"discountOrder": await discounts.get_discount_order(store)}

async def get_discount_codes_action(store, params):
    return {"discountCodes": await discounts.list_discount_codes(store)}

async def get_all_orders_action(store, params):
    return {"orders": await accounts.list_all_orders(store)}


async def login_action(store, body):
    data = parse_body(LoginRequest, body)
    user = await accounts.login_user(store, data.email, data.password)
    return {"message": "Login successful", "user": user}

async def create_user_action(store, body):
    user = await accounts.create_user(store, parse_body(SignupRequest, body))
    return {"message": "User created successfully", "user": user}

async def checkout_action(store, body):
    data = parse_body(CheckoutRequest, body)
    try:
        outcome = await process_checkout(store, data.user_id, data.cart_items, data.discount_code)
    except StorefrontError as e:
        logger.warning("Checkout rejected for %s: %s", data.user_id, e.message)
        raise
    return {
        "success": True,
        "message": "Order placed successfully",
        "order": outcome.order,
        "newDiscountCode": outcome.new_discount_code,
    }

async def generate_discount_code_action(store, body):
    data = parse_body(EligibilityRequest, body)
    code = await discounts.check_eligibility_and_issue(store, data.user_id)
    if code is None:
        return {"message": "User is not eligible for a discount", "isEligible": False}
    return {"message": "Discount code found", "isEligible": True, "discountCode": code}

async def set_discount_order_action(store, body):
    data = parse_body(DiscountOrderRequest, body)
    value = await discounts.set_discount_order(store, data.user_id, data.discount_order)
    return {"message": "Discount order updated successfully", "discountOrder": value}

async def create_product_action(store, body):
    product = await inventory.create_product(store, parse_body(ProductCreate, body))
    return {"message": "Product created successfully", "product": product}


GET_ACTIONS: dict[str, Action] = {
    "getUserOrders": Action(get_user_orders_action),
    "getProduct": Action(get_product_action),
    "getUsers": Action(get_users_action),
    "getUserOrderCount": Action(get_user_order_count_action),
    "getDiscountOrder": Action(get_discount_order_action),
    "getDiscountCodes": Action(get_discount_codes_action),
    "getAllOrders": Action(get_all_orders_action),
    "getAllUsers": Action(get_all_users_action),
}
DEFAULT_GET = Action(list_products_action)

POST_ACTIONS: dict[str, Action] = {
    "login": Action(login_action),
    "createUser": Action(create_user_action, 201),
    "checkout": Action(checkout_action),
    "generateDiscountCode": Action(generate_discount_code_action),
    "setDiscountOrder": Action(set_discount_order_action),
}
DEFAULT_POST = Action(create_product_action, 201)


async def run_action(action: Action, store: DocumentStore, payload: Any) -> JSONResponse:
    result = await action.handler(store, payload)
    return JSONResponse(status_code=action.status_code, content=jsonable_encoder(result))


# ----- Routes -----

@app.get("/")
async def root():
    return {"message": "Storefront Backend Running"}


@app.get("/test")
async def test(store: DocumentStore = Depends(get_store)):
    try:
        snapshot = await store.read()
    except StorefrontError as e:
        return {"backend": "Running", "store": "Not Available", "error": e.message}
    return {
        "backend": "Running",
        "store": "Available",
        "store_backend": settings.STORE_BACKEND,
        "products": len(snapshot.products),
        "users": len(snapshot.users),
    }


@app.post("/seed")
async def seed(store: DocumentStore = Depends(get_store)):
    inserted = await inventory.seed_products(store)
    return {"seeded": inserted > 0, "count": inserted}


@app.get("/api")
async def api_get(request: Request, action: Optional[str] = Query(None),
                  store: DocumentStore = Depends(get_store)):
    handler = GET_ACTIONS.get(action or "", DEFAULT_GET)
    return await run_action(handler, store, dict(request.query_params))


@app.post("/api")
async def api_post(request: Request, action: Optional[str] = Query(None),
                   store: DocumentStore = Depends(get_store)):
    handler = POST_ACTIONS.get(action or "", DEFAULT_POST)
    return await run_action(handler, store, await read_json(request))


@app.put("/api")
async def api_put(request: Request, store: DocumentStore = Depends(get_store)):
    body = await read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    updates = dict(body)
    product_id = updates.pop("productId", None)
    if not product_id:
        raise ValidationError("productId is required")
    product = await inventory.update_product(store, product_id, parse_body(ProductUpdate, updates))
    return {"message": "Product updated successfully", "product": jsonable_encoder(product)}


@app.delete("/api")
async def api_delete(productId: Optional[str] = Query(None),
                     store: DocumentStore = Depends(get_store)):
    if not productId:
        raise ValidationError("Product ID is required")
    product = await inventory.delete_product(store, productId)
    return {"message": "Product deleted successfully", "productId": productId,
            "product": jsonable_encoder(product)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
