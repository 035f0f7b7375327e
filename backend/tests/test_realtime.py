import pytest

from automart.services.realtime import RealtimeHub, filter_matches, parse_filter, room_name


class TestFilters:
    def test_parse(self):
        assert parse_filter("order_id=eq.12") == ("order_id", "12")
        assert parse_filter("") is None

    def test_unsupported_operator(self):
        with pytest.raises(ValueError):
            parse_filter("order_id=gt.12")

    def test_matches_compare_as_strings(self):
        assert filter_matches(("order_id", "12"), {"order_id": 12})
        assert not filter_matches(("order_id", "12"), {"order_id": 13})
        assert not filter_matches(("order_id", "12"), {"user_id": 12})
        assert filter_matches(None, {})

    def test_room_name(self):
        assert room_name("orders") == "orders"
        assert room_name("orders", "user_id=eq.3") == "orders:user_id=eq.3"


class TestHub:
    def test_filtered_delivery(self):
        hub = RealtimeHub()
        mine, everything = [], []
        hub.subscribe("order_transactions", mine.append, "order_id=eq.1")
        hub.subscribe("order_transactions", everything.append)
        hub.publish("order_transactions", "INSERT", {"id": 10, "order_id": 1})
        hub.publish("order_transactions", "INSERT", {"id": 11, "order_id": 2})
        assert [p["new"]["id"] for p in mine] == [10]
        assert [p["new"]["id"] for p in everything] == [10, 11]
        assert mine[0] == {"table": "order_transactions", "event": "INSERT", "new": {"id": 10, "order_id": 1}, "old": {}}

    def test_filter_passed_by_keyword(self):
        hub = RealtimeHub()
        seen = []
        hub.subscribe("wallets", callback=seen.append, expr="user_id=eq.4")
        hub.publish("wallets", "UPDATE", {"id": 1, "user_id": 4})
        hub.publish("wallets", "UPDATE", {"id": 2, "user_id": 5})
        assert [p["new"]["id"] for p in seen] == [1]

    def test_other_tables_ignored(self):
        hub = RealtimeHub()
        seen = []
        hub.subscribe("wallets", seen.append)
        assert hub.publish("orders", "UPDATE", {"id": 1}) == 0
        assert seen == []

    def test_unsubscribe(self):
        hub = RealtimeHub()
        seen = []
        token = hub.subscribe("orders", seen.append)
        assert hub.unsubscribe(token) is True
        assert hub.unsubscribe(token) is False
        hub.publish("orders", "UPDATE", {"id": 1})
        assert seen == []
        assert hub.subscriber_count() == 0

    def test_failing_callback_does_not_stop_others(self, caplog):
        hub = RealtimeHub()
        seen = []

        def boom(payload):
            raise RuntimeError("subscriber crashed")

        hub.subscribe("orders", boom)
        hub.subscribe("orders", seen.append)
        assert hub.publish("orders", "UPDATE", {"id": 1}) == 1
        assert len(seen) == 1
        assert "failed for orders" in caplog.text

    def test_emitter_rooms(self):
        emitted = []
        hub = RealtimeHub(emitter=lambda room, payload: emitted.append(room))
        hub.publish("orders", "UPDATE", {"id": 5, "user_id": 2}, filter_columns=("user_id",))
        assert emitted == ["orders", "orders:user_id=eq.2", "orders:id=eq.5"]

    def test_emitter_failure_is_logged(self, caplog):
        def broken(room, payload):
            raise ConnectionError("socket down")

        hub = RealtimeHub(emitter=broken)
        hub.publish("wallets", "UPDATE", {"id": 1, "user_id": 4})
        assert "Realtime emit to wallets failed" in caplog.text
