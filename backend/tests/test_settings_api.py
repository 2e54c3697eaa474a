"""API tests for settings, the admin PIN gate, broadcasts, waiters and table QR codes."""

import base64

API = "/api/v1"


# ============== Settings document ==============

class TestVenueSettings:
    def test_defaults(self, client):
        data = client.get(f"{API}/settings/").json()
        assert data["order_auto_hide_minutes"] == 6
        assert data["effective_auto_hide_minutes"] == 6
        assert data["counters"][0]["id"] == "counter-main"
        assert data["admin_pin_set"] is False
        assert "admin_pin_hash" not in data

    def test_short_auto_hide_is_clamped_for_display(self, client):
        res = client.put(f"{API}/settings/", json={"order_auto_hide_minutes": 2})
        assert res.status_code == 200
        assert res.json()["order_auto_hide_minutes"] == 2
        assert res.json()["effective_auto_hide_minutes"] == 5

    def test_counters_are_replaced(self, client):
        counters = [
            {"id": "theke-1", "name": "Theke 1", "assigned_tables": [1, 2, 3]},
            {"id": "theke-2", "name": "Theke 2", "assigned_tables": [4, 5]},
        ]
        res = client.put(f"{API}/settings/", json={"counters": counters})
        assert [c["id"] for c in res.json()["counters"]] == ["theke-1", "theke-2"]
        # Untouched fields are kept
        assert res.json()["order_auto_hide_minutes"] == 6

    def test_protected_settings_need_pin(self, client, pin_headers):
        client.put(f"{API}/settings/", json={"protected_actions": {"settings": True}}, headers=pin_headers)

        assert client.put(f"{API}/settings/", json={"order_auto_hide_minutes": 10}).status_code == 403
        res = client.put(f"{API}/settings/", json={"order_auto_hide_minutes": 10}, headers=pin_headers)
        assert res.status_code == 200


# ============== Admin PIN ==============

class TestAdminPin:
    def test_set_first_pin_without_header(self, client):
        assert client.post(f"{API}/settings/pin", json={"new_pin": "1234"}).status_code == 200
        assert client.get(f"{API}/settings/").json()["admin_pin_set"] is True

    def test_change_pin_needs_current_pin(self, client, pin_headers):
        assert client.post(f"{API}/settings/pin", json={"new_pin": "9999"}).status_code == 403
        res = client.post(f"{API}/settings/pin", json={"new_pin": "9999"}, headers=pin_headers)
        assert res.status_code == 200
        assert client.post(f"{API}/settings/pin/verify", headers={"X-Admin-Pin": "9999"}).json()["valid"] is True

    def test_pin_must_be_digits(self, client):
        assert client.post(f"{API}/settings/pin", json={"new_pin": "abcd"}).status_code == 422
        assert client.post(f"{API}/settings/pin", json={"new_pin": "12"}).status_code == 422

    def test_verify(self, client, admin_pin):
        assert client.post(f"{API}/settings/pin/verify", headers={"X-Admin-Pin": admin_pin}).json()["valid"]
        assert not client.post(f"{API}/settings/pin/verify", headers={"X-Admin-Pin": "0000"}).json()["valid"]
        assert not client.post(f"{API}/settings/pin/verify").json()["valid"]

    def test_reset_with_master_password(self, client, admin_pin):
        res = client.post(f"{API}/settings/pin/reset", json={"master_password": "wrong", "new_pin": "2222"})
        assert res.status_code == 403

        res = client.post(
            f"{API}/settings/pin/reset",
            json={"master_password": "test-master-password", "new_pin": "2222"},
        )
        assert res.status_code == 200
        assert client.post(f"{API}/settings/pin/verify", headers={"X-Admin-Pin": "2222"}).json()["valid"]
        assert not client.post(f"{API}/settings/pin/verify", headers={"X-Admin-Pin": admin_pin}).json()["valid"]


class TestPinGate:
    def test_products_page(self, client, menu, pin_headers):
        item = {"name": "Pils", "unit_price": "3.20", "category": "bier"}
        assert client.put(f"{API}/menu/items/pils", json=item).status_code == 200

        client.put(f"{API}/settings/", json={"protected_actions": {"products_page": True}})

        assert client.put(f"{API}/menu/items/pils", json=item).status_code == 403
        assert client.put(f"{API}/menu/items/pils", json=item, headers={"X-Admin-Pin": "0000"}).status_code == 403
        assert client.put(f"{API}/menu/items/pils", json=item, headers=pin_headers).status_code == 200

    def test_statistics_reset_always_needs_pin(self, client, admin_pin):
        assert client.post(f"{API}/statistics/reset").status_code == 403
        res = client.post(f"{API}/statistics/reset", headers={"X-Admin-Pin": admin_pin})
        assert res.status_code == 200
        assert res.json()["total_orders"] == 0

    def test_statistics_reset_without_configured_pin(self, client):
        assert client.post(f"{API}/statistics/reset", headers={"X-Admin-Pin": "1234"}).status_code == 403

    def test_system_shutdown_protection(self, client, pin_headers):
        client.put(f"{API}/settings/", json={"protected_actions": {"system_shutdown": True}})

        assert client.put(f"{API}/settings/system", json={"shutdown": True}).status_code == 403
        # Other flags are not covered by this action
        assert client.put(f"{API}/settings/system", json={"order_form_disabled": True}).status_code == 200

        res = client.put(f"{API}/settings/system", json={"shutdown": True}, headers=pin_headers)
        assert res.json() == {"shutdown": True, "order_form_disabled": True, "menu_version": None}


# ============== Broadcast ==============

class TestBroadcast:
    def test_send_read_clear(self, client):
        assert client.get(f"{API}/broadcast/").json() is None

        res = client.post(f"{API}/broadcast/", json={"message": "Letzte Runde!", "target": "tables"})
        assert res.status_code == 201
        assert res.json()["active"] is True

        client.post(f"{API}/broadcast/read", json={"table_number": 4})
        client.post(f"{API}/broadcast/read", json={"table_number": 4, "waiter_name": "anna"})
        read_by = client.get(f"{API}/broadcast/").json()["read_by"]
        assert read_by == {"tables": [4], "waiters": ["anna"], "bars": []}

        assert client.delete(f"{API}/broadcast/").status_code == 200
        assert client.get(f"{API}/broadcast/").json() is None

    def test_new_message_replaces_old(self, client):
        client.post(f"{API}/broadcast/", json={"message": "Eins"})
        client.post(f"{API}/broadcast/read", json={"bar_name": "theke-1"})
        client.post(f"{API}/broadcast/", json={"message": "Zwei"})

        data = client.get(f"{API}/broadcast/").json()
        assert data["message"] == "Zwei"
        assert data["read_by"]["bars"] == []

    def test_mark_read_without_broadcast(self, client):
        res = client.post(f"{API}/broadcast/read", json={"table_number": 1})
        assert res.status_code == 200
        assert res.json() is None


# ============== Waiters and tables ==============

class TestWaiters:
    def test_assignment(self, client):
        res = client.put(f"{API}/waiters/anna/assignment", json={"tables": [3, 1, 3]})
        assert res.status_code == 200
        assert res.json()["tables"] == [1, 3]

        assignments = client.get(f"{API}/waiters/assignments").json()
        assert [a["waiter_name"] for a in assignments] == ["anna"]

        assert client.delete(f"{API}/waiters/anna/assignment").status_code == 200
        assert client.get(f"{API}/waiters/anna/assignment").status_code == 404

    def test_register_token(self, client):
        res = client.put(f"{API}/waiters/anna/fcm-token", json={"token": "fcm-token-abcdef", "platform": "android"})
        assert res.status_code == 200
        assert res.json()["platform"] == "android"
        assert "token" not in res.json()

    def test_invalid_platform(self, client):
        res = client.put(f"{API}/waiters/anna/fcm-token", json={"token": "fcm-token-abcdef", "platform": "palm"})
        assert res.status_code == 422


class TestTableQRCode:
    def test_svg(self, client):
        res = client.post(f"{API}/tables/7/qr-code", json={"format": "svg"})
        assert res.status_code == 200
        data = res.json()
        assert data["url"].endswith("/table/7")
        assert "<svg" in data["qr_data"]

    def test_png(self, client):
        res = client.post(f"{API}/tables/12/qr-code", json={})
        data = res.json()
        assert data["format"] == "png"
        assert base64.b64decode(data["qr_data"]).startswith(b"\x89PNG")

    def test_table_number_must_be_positive(self, client):
        assert client.post(f"{API}/tables/0/qr-code", json={}).status_code == 422
