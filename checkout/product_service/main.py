# checkout/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "sku": "KB-001", "price": 199.99, "discounted_price": 179.99, "stock_quantity": 25, "is_active": True},
    2: {"id": 2, "name": "Mouse", "sku": "MS-002", "price": 49.50, "discounted_price": None, "stock_quantity": 100, "is_active": True},
    3: {"id": 3, "name": "Monitor", "sku": "MN-003", "price": 899.00, "discounted_price": None, "stock_quantity": 5, "is_active": True},
    4: {"id": 4, "name": "Webcam", "sku": "WC-004", "price": 120.00, "discounted_price": None, "stock_quantity": 0, "is_active": False},
}

@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
