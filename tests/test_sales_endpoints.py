"""
Integration tests for the sales API endpoints.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from api.auth.dependencies import get_current_user
from api.auth.schemas import AuthenticatedUser
from conftest import make_doc


def _sales_query(mock_firestore, docs):
    """Route collection('sales').where(...).stream() to the given documents."""
    sales_collection = MagicMock()
    sales_collection.where.return_value.stream.return_value = docs

    products_collection = MagicMock()
    products_collection.document.return_value.get.return_value = make_doc(
        "prod1", {"name": "Pan", "price": 500}
    )

    sellers_collection = MagicMock()
    sellers_collection.document.return_value.get.return_value = make_doc(
        "seller123", {"name": "Ana Torres", "code": "V001"}
    )

    collections = {"sales": sales_collection, "products": products_collection, "sellers": sellers_collection}
    mock_firestore.collection.side_effect = lambda name: collections[name]
    return collections


def _sale_doc(sale_id, sale_date, total, quantity, seller_id="seller123", **fields):
    data = {
        "sellerId": seller_id,
        "customerName": "Maria Lopez",
        "paymentMethod": "efectivo",
        "total": total,
        "items": [{"productId": "prod1", "name": "Pan", "quantity": quantity, "price": 500}],
        "saleDate": sale_date,
        "createdAt": sale_date,
    }
    data.update(fields)
    return make_doc(sale_id, data)


class TestListSalesEndpoint:
    """Test GET /sales."""

    def test_list_sales_success(self, seller_client, mock_firestore):
        collections = _sales_query(mock_firestore, [
            _sale_doc("s1", datetime(2024, 3, 10, 12, tzinfo=timezone.utc), 1000, 2),
            _sale_doc("s2", datetime(2024, 3, 15, 12, tzinfo=timezone.utc), 1500, 3),
            _sale_doc("s3", datetime(2024, 4, 1, 12, tzinfo=timezone.utc), 500, 1),
        ])

        response = seller_client.get(
            "/sales?startDate=2024-03-01&endDate=2024-03-31",
            headers={"Authorization": "Bearer valid_token"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [sale["id"] for sale in data["data"]] == ["s2", "s1"]
        assert data["data"][0]["items"][0]["product"] == {"id": "prod1", "name": "Pan", "price": 500.0}
        assert data["summary"] == {"totalVentas": 2500.0, "cantidadVentas": 2, "totalProductos": 5}
        collections["sales"].where.assert_called_with("sellerId", "==", "seller123")

    def test_list_sales_filters_customer_and_payment(self, seller_client, mock_firestore):
        _sales_query(mock_firestore, [
            _sale_doc("s1", datetime(2024, 3, 10, 12, tzinfo=timezone.utc), 1000, 2),
            _sale_doc("s2", datetime(2024, 3, 11, 12, tzinfo=timezone.utc), 1000, 2, customerName="Juan"),
            _sale_doc("s3", datetime(2024, 3, 12, 12, tzinfo=timezone.utc), 1000, 2, paymentMethod="otro"),
        ])

        response = seller_client.get("/sales?customerName=maria&paymentMethod=efectivo")

        assert response.status_code == 200
        assert [sale["id"] for sale in response.json()["data"]] == ["s1"]

    def test_list_sales_with_numeric_text_fields(self, seller_client, mock_firestore):
        collections = _sales_query(mock_firestore, [
            _sale_doc(
                "s1", datetime(2024, 3, 10, 12, tzinfo=timezone.utc), 1000, 2,
                customerName=12345, customerPhone=3001234567,
                items=[{"productId": 42, "name": 7, "quantity": 2, "price": 500}]
            ),
        ])

        response = seller_client.get("/sales")

        assert response.status_code == 200
        sale = response.json()["data"][0]
        assert sale["customerName"] == "12345"
        assert sale["customerPhone"] == "3001234567"
        assert sale["items"][0]["productId"] == "42"
        assert sale["items"][0]["name"] == "7"
        assert sale["items"][0]["product"] is None
        collections["products"].document.assert_not_called()

    def test_list_sales_invalid_date(self, seller_client):
        response = seller_client.get("/sales?startDate=not-a-date")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["field"] == "startDate"
        assert "fecha de inicio" in body["error"]

    def test_list_sales_requires_seller_role(self, test_app, client):
        test_app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="admin1", role="admin")

        response = client.get("/sales")

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "No autorizado"}

    def test_list_sales_without_token(self, client, monkeypatch):
        monkeypatch.setenv("ENV", "test")

        response = client.get("/sales")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_list_sales_store_failure(self, seller_client, mock_firestore, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        mock_firestore.collection.side_effect = RuntimeError("firestore unavailable")

        response = seller_client.get("/sales")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Error interno al obtener ventas"}


class TestSalesReportEndpoint:
    """Test GET /sales/report."""

    def test_report_download(self, seller_client, mock_firestore):
        _sales_query(mock_firestore, [
            _sale_doc("s1", datetime(2024, 3, 10, 12, tzinfo=timezone.utc), 1000, 2),
        ])

        response = seller_client.get("/sales/report?startDate=2024-03-01&endDate=2024-03-31")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment; filename=reporte_ventas_V001_")
        assert disposition.endswith(".pdf")
        assert response.content.startswith(b"%PDF")
        assert response.headers["content-length"] == str(len(response.content))

    def test_report_without_sales(self, seller_client, mock_firestore):
        _sales_query(mock_firestore, [])

        response = seller_client.get("/sales/report")

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_report_invalid_date(self, seller_client):
        response = seller_client.get("/sales/report?endDate=2024-02-31")

        assert response.status_code == 400
        assert response.json()["field"] == "endDate"

    def test_report_rendering_failure(self, seller_client, mock_firestore):
        _sales_query(mock_firestore, [])

        with patch('api.sales.services.render_report_pdf', side_effect=RuntimeError("font missing")):
            response = seller_client.get("/sales/report")

        assert response.status_code == 500
        assert response.json()["error"] == "Error generando el reporte"


class TestCreateSaleEndpoint:
    """Test POST /sales."""

    def _catalog(self, mock_firestore):
        products_collection = MagicMock()
        products_collection.stream.return_value = [make_doc("prod1", {"name": "Pan", "price": 500})]
        sales_collection = MagicMock()
        sales_collection.document.return_value.id = "newsale1"
        collections = {"products": products_collection, "sales": sales_collection}
        mock_firestore.collection.side_effect = lambda name: collections[name]
        return collections

    def test_create_sale_success(self, seller_client, mock_firestore):
        collections = self._catalog(mock_firestore)

        response = seller_client.post("/sales", json={
            "customerName": "María",
            "products": "pan",
            "quantity": 2,
            "totalPrice": 1000,
            "paymentMethod": "efectivo",
            "saleDate": "2024-03-15",
        })

        assert response.status_code == 201
        assert response.json()["success"] is True
        assert response.json()["message"] == "Venta registrada correctamente"

        saved = collections["sales"].document.return_value.set.call_args.args[0]
        assert saved["id"] == "newsale1"
        assert saved["sellerId"] == "seller123"
        assert saved["saleDate"] == datetime(2024, 3, 15, 12, tzinfo=timezone.utc)
        assert saved["items"] == [{"productId": "prod1", "name": "Pan", "quantity": 2, "price": 500.0}]

    def test_create_sale_missing_fields(self, seller_client, mock_firestore):
        collections = self._catalog(mock_firestore)

        response = seller_client.post("/sales", json={"customerName": "María"})

        assert response.status_code == 400
        assert response.json()["error"] == "Faltan campos requeridos"
        collections["sales"].document.return_value.set.assert_not_called()

    def test_create_sale_unknown_product(self, seller_client, mock_firestore):
        collections = self._catalog(mock_firestore)

        response = seller_client.post("/sales", json={
            "customerName": "María", "products": "pan, arepa", "quantity": 1, "totalPrice": 1000,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Producto no encontrado: arepa"
        collections["sales"].document.return_value.set.assert_not_called()

    def test_create_proxy_sale_forbidden(self, seller_client, mock_firestore):
        sellers_collection = MagicMock()
        sellers_collection.document.return_value.get.return_value = make_doc(
            "seller123", {"name": "Ana Torres", "code": "V001"}
        )
        sellers_collection.where.return_value.stream.return_value = [
            make_doc("vend2", {"name": "Luis Gómez", "code": "V002", "jefe": "seller123"})
        ]
        sales_collection = MagicMock()
        mock_firestore.collection.side_effect = lambda name: {
            "sellers": sellers_collection, "sales": sales_collection
        }[name]

        response = seller_client.post("/sales", json={
            "mode": "proxy", "sellerName": "Pedro", "products": "Canasta", "quantity": 1, "totalPrice": 1000,
        })

        assert response.status_code == 403
        sales_collection.document.assert_not_called()

    def test_create_proxy_sale_for_subordinate(self, seller_client, mock_firestore):
        sellers_collection = MagicMock()
        sellers_collection.document.return_value.get.return_value = make_doc(
            "seller123", {"name": "Ana Torres", "code": "V001"}
        )
        sellers_collection.where.return_value.stream.return_value = [
            make_doc("vend2", {"name": "Luis Gómez", "code": "V002", "jefe": "seller123"})
        ]
        sales_collection = MagicMock()
        sales_collection.document.return_value.id = "newsale2"
        mock_firestore.collection.side_effect = lambda name: {
            "sellers": sellers_collection, "sales": sales_collection
        }[name]

        response = seller_client.post("/sales", json={
            "mode": "proxy", "sellerName": " LUIS GÓMEZ ", "products": "Canasta", "quantity": 1,
            "totalPrice": 1000,
        })

        assert response.status_code == 201
        saved = sales_collection.document.return_value.set.call_args.args[0]
        assert saved["sellerId"] == "vend2"
        sellers_collection.where.assert_called_with("jefe", "==", "seller123")

    def test_create_sale_rejects_nan_total(self, seller_client, mock_firestore):
        collections = self._catalog(mock_firestore)

        response = seller_client.post(
            "/sales",
            content='{"customerName": "María", "products": "pan", "quantity": 1, "totalPrice": NaN}',
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["field"] == "totalPrice"
        collections["sales"].document.return_value.set.assert_not_called()

    def test_create_sale_invalid_body(self, seller_client):
        response = seller_client.post("/sales", json={
            "customerName": "María", "products": "pan", "quantity": "muchos", "totalPrice": 1000,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Datos de entrada inválidos"

    def test_root(self, client):
        assert client.get("/").json() == {"message": "Sales Tracking API"}
