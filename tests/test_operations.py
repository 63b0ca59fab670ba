"""Tests for TradingOperations: buy, sell, produce, accept_offer and order ids."""

import threading

import pytest

from src.core.errors import (
    AuthorizationDenied,
    IngredientsInsufficient,
    InputValidationError,
    InsufficientFunds,
    InsufficientInventory,
    RecipeNotFound,
    RoleUnavailable,
)
from src.core.models import Offer, OrderSide
from src.execution.order_ids import OrderIdSequence


class TestResolveProduct:
    def test_normalizes_name(self, operations):
        assert operations.resolve_product(" guacamole-premium ") == "GUACAMOLE_PREMIUM"

    def test_empty_name(self, operations):
        with pytest.raises(InputValidationError):
            operations.resolve_product("  ")

    def test_unknown_name(self, operations):
        with pytest.raises(AuthorizationDenied) as exc:
            operations.resolve_product("PLUTONIO")
        assert "GUACA" in exc.value.allowed


class TestBuy:
    def test_buy_dispatches_order_without_mutation(self, operations, store, connector, metrics):
        before = store.export_state()
        order = operations.buy("guaca", 5)
        assert order.side == OrderSide.BUY
        assert order.product == "GUACA"
        assert order.quantity == 5
        assert order.message == "buy order"
        assert order.client_order_id.startswith("ORD-")
        assert connector.orders == [order]
        assert store.export_state() == before
        assert metrics.orders_sent == 1

    def test_buy_keeps_custom_message(self, operations):
        assert operations.buy("GUACA", 1, "restock").message == "restock"

    def test_insufficient_funds(self, operations, store, connector):
        before = store.export_state()
        with pytest.raises(InsufficientFunds) as exc:
            operations.buy("SEBO", 60)  # 20 * 60 = 1200 > 1000
        assert exc.value.required == 1200.0
        assert exc.value.balance == 1000.0
        assert connector.orders == []
        assert store.export_state() == before

    def test_reference_price_floor(self, operations, store, connector):
        store.set_balance(5.0)
        with pytest.raises(InsufficientFunds):
            operations.buy("GUACAMOLE_PREMIUM", 6)
        operations.buy("GUACAMOLE_PREMIUM", 5)
        assert len(connector.orders) == 1

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity(self, operations, connector, quantity):
        with pytest.raises(InputValidationError):
            operations.buy("GUACA", quantity)
        assert connector.orders == []

    def test_known_but_unauthorized(self, operations, store, connector):
        store.add_inventory("PALTA_OIL", 1)
        with pytest.raises(AuthorizationDenied):
            operations.buy("PALTA_OIL", 1)
        assert connector.orders == []


class TestSell:
    def test_sell_dispatches(self, operations, store, connector):
        order = operations.sell("GUACA", 4, "  ")
        assert order.side == OrderSide.SELL
        assert order.message == "sell order"
        assert connector.orders == [order]
        # settlement arrives with the fill event
        assert store.available("GUACA") == 10
        assert operations.sellable("GUACA") == 6

    def test_insufficient_inventory(self, operations, store, connector):
        before = store.export_state()
        with pytest.raises(InsufficientInventory) as exc:
            operations.sell("GUACA", 11)
        assert (exc.value.available, exc.value.requested) == (10, 11)
        assert store.export_state() == before
        assert connector.orders == []

    def test_open_sell_reserves_units(self, operations):
        operations.sell("GUACA", 10)
        with pytest.raises(InsufficientInventory) as exc:
            operations.sell("GUACA", 1)
        assert exc.value.available == 0

    def test_fill_releases_reservation(self, operations, store):
        operations.sell("GUACA", 10)
        store.subtract_inventory("GUACA", 4)
        operations.release_sell("GUACA", 4)
        assert operations.sellable("GUACA") == 0
        store.subtract_inventory("GUACA", 6)
        operations.release_sell("GUACA", 6)
        assert operations.open_reservations() == []

    def test_rejected_ack_releases_reservation(self, operations):
        order = operations.sell("GUACA", 10)
        operations.on_order_status(order.client_order_id, "FILLED")
        assert operations.sellable("GUACA") == 0
        operations.on_order_status(order.client_order_id, "rejected")
        assert operations.sellable("GUACA") == 10

    def test_failed_send_drops_reservation(self, operations, connector):
        connector.fail_send = True
        with pytest.raises(RuntimeError):
            operations.sell("GUACA", 3)
        assert operations.open_reservations() == []
        assert operations.sellable("GUACA") == 10

    def test_clear_reservations(self, operations):
        operations.sell("GUACA", 3)
        operations.sell("GUACA", 2)
        assert operations.clear_reservations() == 2
        assert operations.sellable("GUACA") == 10
        assert operations.clear_reservations() == 0

    def test_concurrent_sells_of_one_unit(self, operations, store, connector):
        store.replace_inventory({"GUACA": 1})
        n = 16
        barrier = threading.Barrier(n)
        results = []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            try:
                operations.sell("GUACA", 1)
                outcome = "ok"
            except InsufficientInventory:
                outcome = "rejected"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count("ok") == 1
        assert results.count("rejected") == n - 1
        assert len(connector.orders) == 1


class TestProduce:
    def test_basic_production(self, operations, store, connector, metrics):
        assert operations.produce("GUACA") == 45
        assert store.available("GUACA") == 55
        assert connector.production_updates == [("GUACA", 45)]
        assert metrics.units_produced == 45

    def test_premium_production_consumes_then_adds_bonus_yield(self, operations, store, connector):
        units = operations.produce("GUACAMOLE_PREMIUM", premium=True)
        assert units == 59  # round(45 * 1.3)
        assert store.available("GUACA") == 5
        assert store.available("SEBO") == 1
        assert store.available("GUACAMOLE_PREMIUM") == 59
        assert connector.production_updates == [("GUACAMOLE_PREMIUM", 59)]

    def test_premium_shortfall(self, operations, store, connector):
        store.replace_inventory({"GUACA": 10, "SEBO": 1})
        before = store.export_state()
        with pytest.raises(IngredientsInsufficient) as exc:
            operations.produce("GUACAMOLE_PREMIUM", premium=True)
        assert exc.value.shortfall == {"SEBO": 2}
        assert store.export_state() == before
        assert connector.production_updates == []

    def test_premium_check_excludes_units_held_for_open_sells(self, operations, store, connector):
        operations.sell("GUACA", 8)
        before = store.export_state()
        with pytest.raises(IngredientsInsufficient) as exc:
            operations.produce("GUACAMOLE_PREMIUM", premium=True)
        assert exc.value.shortfall == {"GUACA": 3}
        assert store.export_state() == before
        assert connector.production_updates == []

    def test_role_unavailable(self, operations, store):
        store.assign_role(None)
        before = store.export_state()
        with pytest.raises(RoleUnavailable):
            operations.produce("GUACAMOLE_PREMIUM", premium=True)
        assert store.export_state() == before

    def test_recipe_not_found(self, operations, store):
        store.assign_authorized_products({"PALTA_OIL"})
        with pytest.raises(RecipeNotFound):
            operations.produce("PALTA_OIL")

    def test_unauthorized(self, operations, store):
        store.assign_authorized_products({"SEBO"})
        with pytest.raises(AuthorizationDenied):
            operations.produce("GUACA")


class TestAcceptOffer:
    def _offer(self, operations, qty=4, price=15.0):
        offer = Offer("OFF-1", "GUACA", qty, price, "team-b")
        operations.offers.add(offer)
        return offer

    def test_reject_removes_offer_only(self, operations, store, connector):
        self._offer(operations)
        before = store.export_state()
        assert operations.accept_offer("OFF-1", False) is True
        assert operations.pending_offers() == {}
        assert store.export_state() == before
        assert connector.offer_responses == [("OFF-1", False, 0, 15.0)]

    def test_accept_subtracts_inventory(self, operations, store, connector):
        self._offer(operations)
        assert operations.accept_offer("OFF-1", True) is True
        assert store.available("GUACA") == 6
        assert connector.offer_responses == [("OFF-1", True, 4, 15.0)]

    def test_accept_insufficient(self, operations, store, connector):
        self._offer(operations, qty=20)
        with pytest.raises(InsufficientInventory):
            operations.accept_offer("OFF-1", True)
        assert store.available("GUACA") == 10
        assert connector.offer_responses == []

    def test_accept_respects_open_sells(self, operations, store, connector):
        operations.sell("GUACA", 8)
        self._offer(operations, qty=4)
        with pytest.raises(InsufficientInventory) as exc:
            operations.accept_offer("OFF-1", True)
        assert (exc.value.available, exc.value.requested) == (2, 4)
        assert store.available("GUACA") == 10
        assert connector.offer_responses == []

    def test_unknown_offer_is_noop(self, operations, connector):
        assert operations.accept_offer("MISSING", True) is False
        assert connector.offer_responses == []

    def test_missing_price_defaults_to_zero(self, operations, connector):
        self._offer(operations, price=None)
        operations.accept_offer("OFF-1", False)
        assert connector.offer_responses == [("OFF-1", False, 0, 0.0)]

    def test_offer_answered_once(self, operations, connector):
        self._offer(operations)
        assert operations.accept_offer("OFF-1", True) is True
        assert operations.accept_offer("OFF-1", True) is False
        assert len(connector.offer_responses) == 1


class TestOrderIds:
    def test_format(self):
        seq = OrderIdSequence(clock=lambda: 1700000000.5)
        assert seq.next_id() == "ORD-1700000000500-1"
        assert seq.next_id() == "ORD-1700000000500-2"

    def test_unique_under_concurrency(self, operations, connector):
        def worker():
            for _ in range(50):
                operations.buy("GUACA", 1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        ids = [o.client_order_id for o in connector.orders]
        assert len(ids) == 400
        assert len(set(ids)) == 400
