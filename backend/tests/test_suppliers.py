# Overview: Pytest coverage for the supplier registry endpoints.


class TestSuppliers:
    def test_crud(self, client, headers_a):
        created = client.post("/api/suppliers", headers=headers_a, json={
            "name": "Distribuidora Sul",
            "legal_name": "Distribuidora Sul Ltda",
            "tax_id": "12.345.678/0001-90",
            "email": "vendas@sul.com",
        })
        assert created.status_code == 201
        supplier_id = created.json["id"]

        updated = client.put(f"/api/suppliers/{supplier_id}", headers=headers_a, json={"phone": "(11) 99999-0000"})
        assert updated.status_code == 200
        assert updated.json["phone"] == "(11) 99999-0000"

        removed = client.delete(f"/api/suppliers/{supplier_id}", headers=headers_a)
        assert removed.status_code == 200
        assert removed.json["is_active"] is False

        assert client.get("/api/suppliers", headers=headers_a).json["count"] == 1
        assert client.get("/api/suppliers?active=true", headers=headers_a).json["count"] == 0

    def test_name_required(self, client, headers_a):
        assert client.post("/api/suppliers", headers=headers_a, json={"email": "x@y.com"}).status_code == 400
        assert client.post("/api/suppliers", headers=headers_a, json={"name": "  "}).status_code == 400

    def test_other_company_supplier_is_not_found(self, client, headers_a, headers_b):
        created = client.post("/api/suppliers", headers=headers_b, json={"name": "Fornecedor B"})
        supplier_id = created.json["id"]

        assert client.get(f"/api/suppliers/{supplier_id}", headers=headers_a).status_code == 404
        assert client.put(f"/api/suppliers/{supplier_id}", headers=headers_a, json={"name": "X"}).status_code == 404
        assert client.delete(f"/api/suppliers/{supplier_id}", headers=headers_a).status_code == 404
