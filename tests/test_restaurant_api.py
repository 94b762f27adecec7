from datetime import datetime

import pytest

import database


def place_order(client, headers, menu_items, table=1, **extra):
    body = {"table": table, "items": [{"menu_item": menu_items["pizza"], "quantity": 2}], **extra}
    return client.post("/api/orders", json=body, headers=headers)


@pytest.fixture
def order(restaurant_client, waiter_headers, menu_items, tables):
    resp = place_order(restaurant_client, waiter_headers, menu_items)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["order"]


def table_doc(db, number):
    return db["table"].find_one({"table_number": number})


class TestAuth:

    def test_register_login_me(self, restaurant_client, make_user):
        user, headers = make_user("waiter", email="walter@restaurant.com", name="Walter")
        assert user["role"] == "waiter"
        assert "password" not in user

        login = restaurant_client.post("/api/auth/login", json={
            "email": "walter@restaurant.com", "password": "password123",
        })
        assert login.status_code == 200
        assert login.json()["status"] == "success"

        me = restaurant_client.get("/api/auth/me", headers=headers).json()
        assert me["data"]["user"]["name"] == "Walter"

    def test_login_errors(self, restaurant_client, make_user):
        make_user("waiter")
        missing = restaurant_client.post("/api/auth/login", json={"email": "waiter@restaurant.com"})
        assert missing.status_code == 400
        assert missing.json()["message"] == "Please provide email and password!"

        wrong = restaurant_client.post("/api/auth/login", json={
            "email": "waiter@restaurant.com", "password": "wrong-password",
        })
        assert wrong.status_code == 401
        assert wrong.json()["status"] == "fail"

    def test_duplicate_email(self, restaurant_client, make_user):
        make_user("waiter")
        resp = restaurant_client.post("/api/auth/register", json={
            "name": "Again", "email": "waiter@restaurant.com", "password": "password123",
        })
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email already exists"

    def test_no_token(self, restaurant_client):
        resp = restaurant_client.get("/api/tables")
        assert resp.status_code == 401
        assert resp.json()["message"] == "You are not logged in. Please log in to get access."

    def test_deleted_user(self, restaurant_client, restaurant_db, waiter):
        user, headers = waiter
        restaurant_db["user"].delete_many({})
        resp = restaurant_client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["message"] == "The user belonging to this token no longer exists."

    def test_role_gate(self, restaurant_client, waiter_headers):
        resp = restaurant_client.get("/api/users", headers=waiter_headers)
        assert resp.status_code == 403
        assert resp.json()["message"].endswith("Required roles: admin")


class TestUsers:

    def test_admin_manages_users(self, restaurant_client, admin_headers, waiter):
        user, _ = waiter
        listed = restaurant_client.get("/api/users", headers=admin_headers).json()
        assert {u["role"] for u in listed["data"]["users"]} == {"admin", "waiter"}

        patched = restaurant_client.patch(f"/api/users/{user['_id']}", json={"active": False},
                                          headers=admin_headers)
        assert patched.json()["data"]["user"]["active"] is False

        deleted = restaurant_client.delete(f"/api/users/{user['_id']}", headers=admin_headers)
        assert deleted.status_code == 204
        assert restaurant_client.get(f"/api/users/{user['_id']}", headers=admin_headers).status_code == 404

    def test_available_waiters(self, restaurant_client, make_user, restaurant_db, tables):
        busy, headers = make_user("waiter", email="busy@restaurant.com")
        make_user("waiter", email="free@restaurant.com")
        restaurant_db["table"].update_one({"table_number": 1}, {"$set": {"current_waiter": busy["_id"]}})

        resp = restaurant_client.get("/api/users/waiters/available", headers=headers).json()
        assert [u["email"] for u in resp["data"]["users"]] == ["free@restaurant.com"]


class TestMenu:

    def test_anyone_reads_only_admin_writes(self, restaurant_client, waiter_headers, admin_headers):
        item = {"name": "Tiramisu", "description": "Dessert", "category": "Desserts",
                "price": 7.0, "preparation_time": 5}
        assert restaurant_client.post("/api/menu", json=item, headers=waiter_headers).status_code == 403

        created = restaurant_client.post("/api/menu", json=item, headers=admin_headers)
        assert created.status_code == 201
        item_id = created.json()["data"]["menu_item"]["_id"]

        listed = restaurant_client.get("/api/menu", headers=waiter_headers).json()
        assert listed["results"] == 1

        patched = restaurant_client.patch(f"/api/menu/{item_id}", json={"available": False},
                                          headers=admin_headers)
        assert patched.json()["data"]["menu_item"]["available"] is False

        assert restaurant_client.delete(f"/api/menu/{item_id}", headers=admin_headers).status_code == 204
        missing = restaurant_client.get(f"/api/menu/{item_id}", headers=waiter_headers)
        assert missing.status_code == 404
        assert missing.json()["message"] == "No menu item found with that ID"

    def test_search_and_category(self, restaurant_client, waiter_headers, menu_items):
        found = restaurant_client.get("/api/menu/search", params={"query": "piz"}, headers=waiter_headers).json()
        assert [m["name"] for m in found["data"]["menu_items"]] == ["Pizza"]

        starters = restaurant_client.get("/api/menu/category/Starters", headers=waiter_headers).json()
        assert [m["name"] for m in starters["data"]["menu_items"]] == ["Soup"]


class TestCreateOrder:

    def test_totals_and_table_occupied(self, restaurant_client, restaurant_db, waiter, menu_items, tables):
        user, headers = waiter
        resp = restaurant_client.post("/api/orders", json={
            "table": 1,
            "items": [
                {"menu_item": menu_items["pizza"], "quantity": 2,
                 "customizations": [{"name": "Size", "option": "Large", "price": 2.0}]},
                {"menu_item": menu_items["soup"], "quantity": 1},
            ],
            "notes": "No onions",
        }, headers=headers)

        assert resp.status_code == 201
        order = resp.json()["data"]["order"]
        assert order["subtotal"] == 32.0
        assert order["tax"] == 3.2
        assert order["service_charge"] == 1.6
        assert order["total"] == 36.8
        assert order["items"][0]["subtotal"] == 26.0
        assert order["status"] == "pending"
        assert order["payment_status"] is False
        assert order["waiter"]["name"] == "Waiter"
        assert order["order_number"] == datetime.now().strftime("%y%m%d") + "001"

        table = table_doc(restaurant_db, 1)
        assert table["status"] == "occupied"
        assert table["current_order"] == order["order_number"]
        assert table["current_waiter"] == user["_id"]

    def test_sequence_increments(self, restaurant_client, waiter_headers, menu_items, tables):
        first = place_order(restaurant_client, waiter_headers, menu_items, table=1).json()
        second = place_order(restaurant_client, waiter_headers, menu_items, table=2).json()
        assert int(second["data"]["order"]["order_number"]) == int(first["data"]["order"]["order_number"]) + 1

    def test_missing_table_or_items(self, restaurant_client, waiter_headers, tables):
        for body in ({"items": []}, {"table": 1}, {"table": 1, "items": []}):
            resp = restaurant_client.post("/api/orders", json=body, headers=waiter_headers)
            assert resp.status_code == 400
            assert resp.json()["message"] == "Please provide table and at least one item"

    def test_unknown_table(self, restaurant_client, waiter_headers, menu_items, tables):
        resp = place_order(restaurant_client, waiter_headers, menu_items, table=9)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Table 9 not found"

    def test_table_not_available(self, restaurant_client, waiter_headers, menu_items, order):
        resp = place_order(restaurant_client, waiter_headers, menu_items, table=1)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Table 1 is not available"

    def test_unknown_menu_item(self, restaurant_client, restaurant_db, waiter_headers, tables):
        resp = restaurant_client.post("/api/orders", json={
            "table": 1, "items": [{"menu_item": "5f0c6c1e2a3b4c5d6e7f8a9b", "quantity": 1}],
        }, headers=waiter_headers)
        assert resp.status_code == 404
        assert table_doc(restaurant_db, 1)["status"] == "available"

    def test_chef_cannot_order(self, restaurant_client, make_user, menu_items, tables):
        _, headers = make_user("chef")
        assert place_order(restaurant_client, headers, menu_items).status_code == 403

    def test_customization_priced_from_menu(self, restaurant_client, waiter_headers, menu_items, tables):
        resp = restaurant_client.post("/api/orders", json={
            "table": 1,
            "items": [{"menu_item": menu_items["pizza"], "quantity": 1,
                       "customizations": [{"name": "Size", "option": "Large", "price": 0}]}],
        }, headers=waiter_headers)
        line = resp.json()["data"]["order"]["items"][0]
        assert line["customizations"][0]["price"] == 2.0
        assert line["subtotal"] == 14.0

    def test_unknown_customization(self, restaurant_client, waiter_headers, menu_items, tables):
        resp = restaurant_client.post("/api/orders", json={
            "table": 1,
            "items": [{"menu_item": menu_items["soup"], "quantity": 1,
                       "customizations": [{"name": "Size", "option": "Large"}]}],
        }, headers=waiter_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Soup has no Size option Large"

    def test_unavailable_menu_item(self, restaurant_client, restaurant_db, waiter_headers, menu_items, tables):
        restaurant_db["menu_item"].update_one({"name": "Soup"}, {"$set": {"available": False}})
        resp = restaurant_client.post("/api/orders", json={
            "table": 1, "items": [{"menu_item": menu_items["soup"], "quantity": 1}],
        }, headers=waiter_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Soup is not available"
        assert table_doc(restaurant_db, 1)["status"] == "available"


class TestOrderLifecycle:

    def test_complete_requires_payment(self, restaurant_client, waiter_headers, order):
        resp = restaurant_client.patch(f"/api/orders/{order['_id']}/status", json={"status": "completed"},
                                       headers=waiter_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot complete order before payment"

    def test_payment_frees_table_for_cleaning(self, restaurant_client, restaurant_db, waiter_headers, order):
        url = f"/api/orders/{order['_id']}/payment"
        paid = restaurant_client.patch(url, json={"payment_method": "card"}, headers=waiter_headers)
        assert paid.status_code == 200
        body = paid.json()["data"]["order"]
        assert body["status"] == "completed"
        assert body["payment_status"] is True

        table = table_doc(restaurant_db, 1)
        assert table["status"] == "cleaning"
        assert table["current_order"] is None
        assert table["last_cleaned"] is not None

        again = restaurant_client.patch(url, json={"payment_method": "cash"}, headers=waiter_headers)
        assert again.status_code == 400
        assert again.json()["message"] == "Order has already been paid"

    def test_cancel_makes_table_available(self, restaurant_client, restaurant_db, waiter_headers, order):
        resp = restaurant_client.patch(f"/api/orders/{order['_id']}/status", json={"status": "cancelled"},
                                       headers=waiter_headers)
        assert resp.json()["data"]["order"]["status"] == "cancelled"
        assert table_doc(restaurant_db, 1)["status"] == "available"

        pay = restaurant_client.patch(f"/api/orders/{order['_id']}/payment", json={"payment_method": "cash"},
                                      headers=waiter_headers)
        assert pay.status_code == 400

    def test_in_progress_keeps_table(self, restaurant_client, restaurant_db, waiter_headers, order):
        resp = restaurant_client.patch(f"/api/orders/{order['_id']}/status", json={"status": "in_progress"},
                                       headers=waiter_headers)
        assert resp.status_code == 200
        assert table_doc(restaurant_db, 1)["status"] == "occupied"

    def test_edit_items_recomputes_totals(self, restaurant_client, waiter_headers, menu_items, order):
        resp = restaurant_client.patch(f"/api/orders/{order['_id']}", json={
            "items": [{"menu_item": menu_items["soup"], "quantity": 2}], "notes": "Swap",
        }, headers=waiter_headers)
        body = resp.json()["data"]["order"]
        assert body["subtotal"] == 12.0
        assert body["total"] == 13.8
        assert body["notes"] == "Swap"

    def test_move_to_another_table(self, restaurant_client, restaurant_db, waiter_headers, order):
        resp = restaurant_client.patch(f"/api/orders/{order['_id']}/table", json={"table": 2},
                                       headers=waiter_headers)
        assert resp.json()["data"]["order"]["table"] == 2
        assert table_doc(restaurant_db, 1)["status"] == "available"
        assert table_doc(restaurant_db, 2)["current_order"] == order["order_number"]

    def test_queries(self, restaurant_client, waiter, order):
        user, headers = waiter
        by_table = restaurant_client.get("/api/orders/table/1", headers=headers).json()
        assert by_table["results"] == 1
        assert restaurant_client.get("/api/orders/table/x", headers=headers).status_code == 400

        by_waiter = restaurant_client.get(f"/api/orders/waiter/{user['_id']}", headers=headers).json()
        assert by_waiter["results"] == 1
        assert restaurant_client.get("/api/orders/mine", headers=headers).json()["results"] == 1

        fetched = restaurant_client.get(f"/api/orders/{order['_id']}", headers=headers).json()
        assert fetched["data"]["order"]["items"][0]["menu_item"]["name"] == "Pizza"

    def test_receipt(self, restaurant_client, waiter_headers, order):
        resp = restaurant_client.get(f"/api/orders/{order['_id']}/receipt", headers=waiter_headers)
        receipt = resp.json()["data"]["receipt"]
        assert f"Order #: {order['order_number']}" in receipt
        assert "Payment Status: UNPAID" in receipt


class TestTables:

    def test_manager_creates_and_deletes(self, restaurant_client, manager_headers, waiter_headers):
        body = {"table_number": 7, "capacity": 4}
        assert restaurant_client.post("/api/tables", json=body, headers=waiter_headers).status_code == 403

        created = restaurant_client.post("/api/tables", json=body, headers=manager_headers)
        assert created.status_code == 201
        table_id = created.json()["data"]["table"]["_id"]
        assert restaurant_client.post("/api/tables", json=body, headers=manager_headers).status_code == 400

        assert restaurant_client.delete(f"/api/tables/{table_id}", headers=manager_headers).status_code == 204

    def test_cannot_occupy_by_hand(self, restaurant_client, manager_headers, tables):
        resp = restaurant_client.patch(f"/api/tables/{tables[1]}/status", json={"status": "occupied"},
                                       headers=manager_headers)
        assert resp.status_code == 400

    def test_cleaning_then_available(self, restaurant_client, restaurant_db, manager_headers, waiter_headers,
                                     order):
        restaurant_client.patch(f"/api/orders/{order['_id']}/payment", json={"payment_method": "cash"},
                                headers=waiter_headers)
        table_id = str(table_doc(restaurant_db, 1)["_id"])
        resp = restaurant_client.patch(f"/api/tables/{table_id}/status", json={"status": "available"},
                                       headers=manager_headers)
        table = resp.json()["data"]["table"]
        assert table["status"] == "available"
        assert table["current_waiter"] is None

        available = restaurant_client.get("/api/tables/available", headers=waiter_headers).json()
        assert available["results"] == 2

    def test_assign_waiter(self, restaurant_client, manager_headers, waiter, tables):
        user, _ = waiter
        resp = restaurant_client.patch(f"/api/tables/{tables[2]}/waiter", json={"waiter_id": user["_id"]},
                                       headers=manager_headers)
        assert resp.json()["data"]["table"]["current_waiter"]["name"] == "Waiter"

    def test_open_order_keeps_table_occupied(self, restaurant_client, restaurant_db, manager_headers,
                                             waiter_headers, menu_items, order):
        table_id = str(table_doc(restaurant_db, 1)["_id"])
        for status in ("available", "cleaning", "reserved"):
            resp = restaurant_client.patch(f"/api/tables/{table_id}/status", json={"status": status},
                                           headers=manager_headers)
            assert resp.status_code == 400
        assert restaurant_client.delete(f"/api/tables/{table_id}", headers=manager_headers).status_code == 400

        table = table_doc(restaurant_db, 1)
        assert table["status"] == "occupied"
        assert table["current_order"] == order["order_number"]
        assert place_order(restaurant_client, waiter_headers, menu_items, table=1).status_code == 400


class TestReports:

    def test_restricted(self, restaurant_client, waiter_headers):
        assert restaurant_client.get("/api/reports/daily-sales", headers=waiter_headers).status_code == 403

    def test_daily_sales_counts_completed_orders(self, restaurant_client, manager_headers, waiter_headers,
                                                 menu_items, order):
        place_order(restaurant_client, waiter_headers, menu_items, table=2)
        restaurant_client.patch(f"/api/orders/{order['_id']}/payment", json={"payment_method": "cash"},
                                headers=waiter_headers)

        report = restaurant_client.get("/api/reports/daily-sales", headers=manager_headers).json()["data"]
        assert report["total_orders"] == 1
        assert report["total_sales"] == 27.6
        assert report["sales_by_category"] == {"Mains": 24.0}

    def test_monthly_revenue(self, restaurant_client, restaurant_db, manager_headers):
        database.create_document(restaurant_db, "order", {
            "order_number": "240301001", "table": 1, "waiter": "x", "items": [], "status": "completed",
            "subtotal": 100.0, "tax": 10.0, "service_charge": 5.0, "total": 115.0, "payment_status": True,
        })
        restaurant_db["order"].update_many({}, {"$set": {"created_at": datetime(2024, 3, 1, 12)}})

        rows = restaurant_client.get("/api/reports/monthly-revenue", params={"year": 2024},
                                     headers=manager_headers).json()["data"]["monthly_revenue"]
        assert len(rows) == 12
        assert rows[2]["total_revenue"] == 115.0
        assert rows[0]["total_orders"] == 0

    def test_daily_sales_for_a_past_day(self, restaurant_client, restaurant_db, manager_headers):
        database.create_document(restaurant_db, "order", {
            "order_number": "200102001", "table": 1, "waiter": "x", "items": [], "status": "completed",
            "subtotal": 20.0, "tax": 2.0, "service_charge": 1.0, "total": 23.0, "payment_status": True,
        })
        restaurant_db["order"].update_many({}, {"$set": {"created_at": datetime(2020, 1, 2, 18)}})

        past = restaurant_client.get("/api/reports/daily-sales", params={"date": "2020-01-02"},
                                     headers=manager_headers).json()["data"]
        assert past["date"] == "2020-01-02T00:00:00"
        assert past["total_orders"] == 1
        assert past["total_sales"] == 23.0

        today = restaurant_client.get("/api/reports/daily-sales", headers=manager_headers).json()["data"]
        assert today["total_orders"] == 0
