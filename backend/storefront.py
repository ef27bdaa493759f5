"""
KrishiMitra - Storefront catalogue, cart pricing and invoices.
The cart lives in the browser; the server only prices it, validates the delivery address,
acknowledges orders (nothing is stored) and renders the invoice PDF.
"""
import io
import math
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

FREE_DELIVERY_THRESHOLD = 500
DELIVERY_CHARGE = 40

PINCODE_RE = re.compile(r"^[0-9]{6}$")

_PEXELS = "https://images.pexels.com/photos/{path}?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1"

PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Fresh Tomatoes",
        "image": _PEXELS.format(path="1327838/pexels-photo-1327838.jpeg"),
        "price": 40,
        "unit": "kg",
        "description": "Premium quality, vine-ripened red tomatoes. Fresh, juicy, and perfect for daily cooking.",
        "stock": 100,
    },
    {
        "id": 2,
        "name": "Premium Basmati Rice",
        "image": _PEXELS.format(path="2686809/pexels-photo-2686809.jpeg"),
        "price": 75,
        "unit": "kg",
        "description": "High-quality basmati rice with long grains, aromatic flavor, and perfect texture when cooked.",
        "stock": 500,
    },
    {
        "id": 3,
        "name": "Fresh Green Chilies",
        "image": _PEXELS.format(path="4110456/pexels-photo-4110456.jpeg"),
        "price": 30,
        "unit": "250g",
        "description": "Farm-fresh green chilies with the perfect balance of heat and flavor. Ideal for all Indian dishes.",
        "stock": 50,
    },
    {
        "id": 4,
        "name": "Farm-Fresh Potatoes",
        "image": _PEXELS.format(path="144248/potatoes-vegetables-erdfrucht-bio-144248.jpeg"),
        "price": 25,
        "unit": "kg",
        "description": "Premium quality potatoes, freshly harvested. Clean, uniform size, and perfect for all cooking needs.",
        "stock": 200,
    },
    {
        "id": 5,
        "name": "Fresh Red Onions",
        "image": _PEXELS.format(path="135529/pexels-photo-135529.jpeg"),
        "price": 35,
        "unit": "kg",
        "description": "Crisp red onions, essential for salads, curries, and various culinary uses.",
        "stock": 150,
    },
    {
        "id": 6,
        "name": "Ripe Bananas",
        "image": _PEXELS.format(path="1093038/pexels-photo-1093038.jpeg"),
        "price": 50,
        "unit": "dozen",
        "description": "Naturally ripened bananas, perfect for a quick energy boost or adding to smoothies.",
        "stock": 80,
    },
    {
        "id": 7,
        "name": "Crisp Apples",
        "image": _PEXELS.format(path="102104/pexels-photo-102104.jpeg"),
        "price": 120,
        "unit": "kg",
        "description": "Sweet and crunchy apples, great for snacking or baking.",
        "stock": 90,
    },
]

_PRODUCTS_BY_ID = {p["id"]: p for p in PRODUCTS}


def list_products() -> List[Dict[str, Any]]:
    return PRODUCTS


def _product_id(key: Any) -> int:
    try:
        return int(str(key).strip())
    except ValueError:
        raise ValueError(f"Unknown product: {key}")


def _quantity(value: Any, product: Dict[str, Any]) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or int(value) != value
        or value <= 0
    ):
        raise ValueError(f"Quantity for {product['name']} must be a positive whole number")
    if value > product["stock"]:
        raise ValueError(f"Only {product['stock']} {product['unit']} of {product['name']} in stock")
    return int(value)


def delivery_charges(subtotal: float) -> int:
    """Free delivery for orders of ₹500 and above."""
    return 0 if subtotal >= FREE_DELIVERY_THRESHOLD else DELIVERY_CHARGE


def price_cart(cart: Any) -> Dict[str, Any]:
    """
    Price a browser cart {productId: quantity}.
    Raises ValueError for an empty cart, unknown products, bad quantities or insufficient stock.
    """
    if not isinstance(cart, dict) or not cart:
        raise ValueError("Cart is empty")

    lines = []
    for key, qty in cart.items():
        product = _PRODUCTS_BY_ID.get(_product_id(key))
        if product is None:
            raise ValueError(f"Unknown product: {key}")
        quantity = _quantity(qty, product)
        lines.append({
            "productId": product["id"],
            "name": product["name"],
            "unit": product["unit"],
            "price": product["price"],
            "quantity": quantity,
            "lineTotal": product["price"] * quantity,
        })

    subtotal = sum(line["lineTotal"] for line in lines)
    delivery = delivery_charges(subtotal)
    return {"items": lines, "subtotal": subtotal, "deliveryCharges": delivery, "total": subtotal + delivery}


def validate_address(address: Any) -> Dict[str, str]:
    if not isinstance(address, dict):
        raise ValueError("Delivery address is required")
    for field in ("street", "city", "state"):
        if not str(address.get(field) or "").strip():
            raise ValueError(f"Delivery {field} is required")
    if not PINCODE_RE.match(str(address.get("pincode") or "")):
        raise ValueError("Please enter a valid 6-digit PIN code")
    return {f: str(address[f]).strip() for f in ("street", "city", "state", "pincode")}


def _validate_customer(customer: Any) -> Dict[str, str]:
    if not isinstance(customer, dict):
        raise ValueError("Customer details are required")
    for field in ("firstName", "lastName"):
        if not str(customer.get(field) or "").strip():
            raise ValueError(f"Customer {field} is required")
    return {"firstName": str(customer["firstName"]).strip(), "lastName": str(customer["lastName"]).strip()}


def place_order(order: Any) -> Dict[str, Any]:
    """Validate and price an order. Acknowledged with a generated id; nothing is persisted."""
    if not isinstance(order, dict):
        raise ValueError("Invalid order data")
    priced = price_cart(order.get("cart"))
    customer = _validate_customer(order.get("customer"))
    address = validate_address(order.get("address"))
    order_id = "ORDER_" + "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(10))
    return {
        "orderId": order_id,
        "placedAt": datetime.now(timezone.utc).isoformat(),
        "customer": customer,
        "address": address,
        **priced,
    }


def render_invoice(order: Dict[str, Any]) -> bytes:
    """Invoice PDF for a placed order (output of place_order)."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=40, rightMargin=40, topMargin=60, bottomMargin=40)
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph("KrishiMitra - Invoice", styles["Title"]))
    elements.append(Spacer(1, 12))

    # Paragraph text is parsed as markup
    customer = {k: escape(v) for k, v in order["customer"].items()}
    address = {k: escape(v) for k, v in order["address"].items()}
    elements.append(Paragraph("Bill To:", styles["Heading2"]))
    elements.append(Paragraph(f"{customer['firstName']} {customer['lastName']}", styles["Normal"]))
    elements.append(Paragraph(address["street"], styles["Normal"]))
    elements.append(Paragraph(f"{address['city']}, {address['state']} - {address['pincode']}", styles["Normal"]))
    elements.append(Paragraph(f"Order: {escape(order['orderId'])}", styles["Normal"]))
    elements.append(Spacer(1, 12))

    # Base fonts lack the rupee sign
    rows = [["Item", "Qty", "Price (Rs)", "Amount (Rs)"]]
    for line in order["items"]:
        rows.append([line["name"], f"{line['quantity']} {line['unit']}", str(line["price"]), str(line["lineTotal"])])
    rows.append(["Subtotal", "", "", str(order["subtotal"])])
    rows.append(["Delivery Charges", "", "", str(order["deliveryCharges"])])
    rows.append(["Total", "", "", str(order["total"])])

    elements.append(Paragraph("Items", styles["Heading2"]))
    t = Table(rows, colWidths=[220, 90, 90, 110])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    elements.append(t)

    doc.build(elements)
    return buffer.getvalue()
