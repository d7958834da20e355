# Routes package init
"""
LocalMarket Backend: API Routes Package
========================================

What:  HTTP route handlers, one module per resource.
How:   Every HTTP router is mounted on `api_router`, whose single router-level
       dependency is the authorization interceptor, so no handler can be
       reached without passing the policy table. The notification WebSocket
       is mounted separately and authenticates its query-string token itself.

Route Inventory:
    - health.py          GET /, GET /health
    - users.py           /users
    - parcels.py         /parcels, /rider/parcels, /rider/completed-parcels
    - riders.py          /riders, /riders/cashout/{parcel_id}
    - tracking.py        /tracking
    - payments.py        /create-payment-intent, /payments
    - products.py        /products, /vendor/products, /admin/products, reviews
    - orders.py          /orders, /admin/orders
    - advertisements.py  /advertisements, /vendor/..., /admin/...
    - watchlist.py       /watchlist
    - notifications.py   /notifications, WS /ws/notifications
    - contact.py         /contact

Routes are THIN: read the request, call a service, shape the response.
"""

from fastapi import APIRouter, Depends

from localmarket.auth.policy import authorize
from localmarket.routes import (
    advertisements,
    contact,
    health,
    notifications,
    orders,
    parcels,
    payments,
    products,
    riders,
    tracking,
    users,
    watchlist,
)

api_router = APIRouter(dependencies=[Depends(authorize)])
for module in (
    health,
    users,
    parcels,
    riders,
    tracking,
    payments,
    products,
    orders,
    advertisements,
    watchlist,
    notifications,
    contact,
):
    api_router.include_router(module.router)

ws_router = notifications.ws_router
