# product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    "vase-01": {"id": 1, "slug": "vase-01", "title": "Ceramic Vase", "price": "49.99", "currency": "USD"},
    "bowl-02": {"id": 2, "slug": "bowl-02", "title": "Carved Bowl", "price": "35.00", "currency": "USD"},
    "rug-03": {"id": 3, "slug": "rug-03", "title": "Woven Rug", "price": "240.00", "currency": "USD"},
    "print-04": {"id": 4, "slug": "print-04", "title": "Linen Print", "price": "60.00", "currency": "EUR"},
}

@app.get("/products/{slug}")
def get_product(slug: str):
    product = PRODUCTS.get(slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
