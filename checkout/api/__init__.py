# checkout/api/__init__.py
from checkout.api.routers import carts, health, orders, promo_codes, users, wallet

ROUTERS = [
    health.router,
    users.router,
    carts.router,
    orders.router,
    wallet.router,
    promo_codes.router,
]
