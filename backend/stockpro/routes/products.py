# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockpro/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's company.
The company_id is derived from g.company_id (set by @require_auth).

SECURITY: All routes require authentication. Hard delete requires the
ADMIN role; deactivation is the everyday way to retire a product.
"""
from flask import Blueprint, g, request

from ..decorators import require_auth, require_role
from ..models import Product
from ..services import products_service
from ..services.tenant_service import TenantAccessError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_CREATE_FIELDS),
    required_on_create={"name", "cost_price_cents", "sale_price_cents"},
)

# quantity_on_hand only changes through movements after creation
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - active: "true" to list active products only
    - category: exact category
    - search: substring of name, code or barcode
    """
    active_only = request.args.get("active", "false").lower() == "true"
    return products_service.list_products(
        g.company_id,
        active_only=active_only,
        category=request.args.get("category") or None,
        search=request.args.get("search") or None,
    ), 200


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"items": products_service.list_categories(g.company_id)}, 200


@products_bp.get("/low-stock")
@require_auth
def list_low_stock():
    items = products_service.list_low_stock(g.company_id)
    return {"items": items, "count": len(items)}, 200


@products_bp.get("/out-of-stock")
@require_auth
def list_out_of_stock():
    items = products_service.list_out_of_stock(g.company_id)
    return {"items": items, "count": len(items)}, 200


@products_bp.get("/next-code")
@require_auth
def next_code():
    return {"code": products_service.next_product_code(g.company_id)}, 200


@products_bp.get("/lookup")
@require_auth
def lookup_product():
    """POS lookup by barcode or code (active products only)."""
    term = request.args.get("term", "")
    if not term.strip():
        return {"error": "term is required"}, 400
    product = products_service.lookup_product(g.company_id, term)
    if product is None:
        return {"error": "Product not found"}, 404
    return product, 200


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        return products_service.get_product(g.company_id, product_id), 200
    except TenantAccessError:
        return {"error": "Product not found"}, 404


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        if not patch.get("name"):
            raise ValidationError("name cannot be blank")
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(g.company_id, patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        if "name" in patch and not patch["name"]:
            raise ValidationError("name cannot be blank")
        enforce_rules_product(patch, products_service.current_values(g.company_id, product_id))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    try:
        updated = products_service.update_product(g.company_id, product_id, patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.post("/<int:product_id>/deactivate")
@require_auth
def deactivate_product_route(product_id: int):
    try:
        return products_service.deactivate_product(g.company_id, product_id), 200
    except TenantAccessError:
        return {"error": "Product not found"}, 404


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("ADMIN")
def delete_product_route(product_id: int):
    """Hard delete. Movements keep their captured code and name."""
    try:
        products_service.delete_product(g.company_id, product_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
