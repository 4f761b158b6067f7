# Overview: Flask API routes for the supplier registry.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..models import Supplier
from ..services import suppliers_service
from ..services.tenant_service import TenantAccessError
from ..validation import ModelValidationPolicy, ValidationError, validate_payload


SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields=set(suppliers_service.SUPPLIER_MUTABLE_FIELDS),
    required_on_create={"name"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers():
    active_only = request.args.get("active", "false").lower() == "true"
    items = suppliers_service.list_suppliers(g.company_id, active_only=active_only)
    return {"items": items, "count": len(items)}, 200


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier(supplier_id: int):
    try:
        return suppliers_service.get_supplier(g.company_id, supplier_id), 200
    except TenantAccessError:
        return {"error": "Supplier not found"}, 404


@suppliers_bp.post("")
@require_auth
def create_supplier():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return suppliers_service.create_supplier(g.company_id, patch), 201


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier(supplier_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
        if "name" in patch and not patch["name"]:
            raise ValidationError("name cannot be blank")
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return suppliers_service.update_supplier(g.company_id, supplier_id, patch), 200
    except TenantAccessError:
        return {"error": "Supplier not found"}, 404


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
def deactivate_supplier(supplier_id: int):
    try:
        return suppliers_service.deactivate_supplier(g.company_id, supplier_id), 200
    except TenantAccessError:
        return {"error": "Supplier not found"}, 404
