# pos_sync/modules/pos/tests/test_order_push.py

"""
Tests for pushing local orders to CloudPOS as web orders.
"""

import pytest
from datetime import date
from decimal import Decimal

from pos_sync.modules.pos.enums.pos_enums import DeliveryMode
from pos_sync.modules.pos.exceptions import (
    EntityNotFoundError,
    POSSemanticError,
    POSTransientError,
)
from pos_sync.modules.pos.services.order_transformer import (
    build_remark,
    format_planned_datetime,
    is_online_paid,
    map_delivery_mode,
)

from .factories import (
    SHOP_ID,
    make_integration,
    make_order,
    make_product,
    make_subproduct,
)


@pytest.fixture
def catalog(db_session):
    return {
        "burger": make_product(db_session, "Burger", price=8.5, remote_ref=301),
        "cheese": make_subproduct(db_session, "Cheese", price=0.8, remote_ref=401),
        "bacon": make_subproduct(db_session, "Bacon", price=1.2, remote_ref=402),
        "unsynced": make_product(db_session, "Secret menu"),
    }


class TestOrderFieldMapping:
    @pytest.mark.parametrize("method,expected", [
        ("takeaway", DeliveryMode.TAKEAWAY),
        ("delivery", DeliveryMode.DELIVERY),
        ("dine_in", DeliveryMode.DINE_IN),
        (None, DeliveryMode.TAKEAWAY),
        ("drone", DeliveryMode.TAKEAWAY),
    ])
    def test_delivery_mode(self, method, expected):
        assert map_delivery_mode(method) == expected

    def test_planned_datetime_needs_date_and_time(self):
        assert format_planned_datetime(date(2025, 5, 1), "18:30") == (
            True, "2025-05-01 18:30:00"
        )
        assert format_planned_datetime("2025-05-01T00:00:00Z", "9:05:30") == (
            True, "2025-05-01 09:05:30"
        )
        assert format_planned_datetime(date(2025, 5, 1), None) == (False, "")
        assert format_planned_datetime(None, "18:30") == (False, "")

    def test_remark_skips_missing_parts(self):
        assert build_remark({
            "address": "Kerkstraat 1", "postal_code": "9000", "city": "Gent",
        }) == "Address: Kerkstraat 1, Postal: 9000, City: Gent"
        assert build_remark({"address": "Kerkstraat 1", "postal_code": "9000"}) == (
            "Address: Kerkstraat 1, Postal: 9000"
        )
        assert build_remark({}) == ""

    def test_remark_is_trimmed_of_trailing_separators(self):
        assert build_remark({"address": "Kerkstraat 1", "city": "Gent, "}) == (
            "Address: Kerkstraat 1, City: Gent"
        )
        assert build_remark({"address": "Kerkstraat 1", "city": "   "}) == (
            "Address: Kerkstraat 1"
        )
        assert build_remark({"address": " Kerkstraat 1 ,", "postal_code": ""}) == (
            "Address: Kerkstraat 1"
        )

    def test_online_paid(self):
        assert is_online_paid([]) is False
        assert is_online_paid([{"provider": "stripe"}]) is True
        assert is_online_paid([{"provider": "stripe"}, {"provider": "Cash"}]) is False
        assert is_online_paid([{"provider": "kiosk_cash_drawer"}]) is False


class TestPushOrder:
    @pytest.mark.asyncio
    async def test_expands_quantities_into_unit_lines(
        self, db_session, integration, orchestrator, catalog
    ):
        """qty 3 with a qty 2 subproduct gives 3 lines with 2 slots each"""
        order = make_order(db_session, lines=[
            (catalog["burger"], 3, "8.50", [(catalog["cheese"], 2, "0.80")]),
        ])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        lines = result.payload["weborderdetail"]
        assert len(lines) == 3
        for line in lines:
            assert line["quantity"] == 1
            assert line["productid"] == 301
            assert line["productprice"] == "8.50"
            assert line["producttax"] == 21
            assert line["sub1 id"] == 401
            assert line["sub2 id"] == 401
            assert line["sub1 price"] == "0.80"
            assert "sub3 id" not in line
        assert result.lines_pushed == 3

    @pytest.mark.asyncio
    async def test_builds_order_header(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        order = make_order(
            db_session,
            lines=[(catalog["burger"], 1, "8.50", [])],
            payments=["stripe"],
            customer_email="jan@example.be",
            customer_first_name="Jan",
            customer_last_name="Peeters",
            customer_address="Kerkstraat 1",
            customer_city="Gent",
            fulfillment_method="delivery",
            fulfillment_date=date(2025, 5, 1),
            fulfillment_time="18:30",
            discount_total=Decimal("2.00"),
        )

        result = await orchestrator.push_order(SHOP_ID, order.id)

        payload = result.payload
        assert payload["plannedorder"] is True
        assert payload["plannedorderdatetime"] == "2025-05-01 18:30:00"
        assert payload["autoconfirmation"] is False
        assert payload["delivery"] == 1
        assert payload["onlinepaid"] is True
        assert payload["discountamount"] == "2.00"
        assert payload["remark"] == "Address: Kerkstraat 1, City: Gent"
        assert fake_pos.calls_to("customer.insert") == [{
            "firstname": "Jan", "name": "Peeters", "email": "jan@example.be", "phone": "",
        }]
        customer = next(iter(fake_pos.tables["customer"].values()))
        assert payload["customerid"] == customer["id"]
        db_session.refresh(order)
        assert order.remote_order_ref == result.remote_order_ref
        assert fake_pos.get("weborder", result.remote_order_ref) is not None

    @pytest.mark.asyncio
    async def test_reuses_existing_customer(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        customer_id = fake_pos.add("customer", email="jan@example.be", firstname="Jan")
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])],
                           customer_email="jan@example.be")

        result = await orchestrator.push_order(SHOP_ID, order.id)

        assert result.payload["customerid"] == customer_id
        assert fake_pos.calls_to("customer.insert") == []

    @pytest.mark.asyncio
    async def test_guest_customer_without_email(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        created = fake_pos.calls_to("customer.insert")[0]
        assert created["firstname"] == "Guest"
        assert created["email"] == "guest@pos-sync.local"
        assert result.payload["onlinepaid"] is False
        assert result.payload["plannedorder"] is False
        assert result.payload["plannedorderdatetime"] == ""

    @pytest.mark.asyncio
    async def test_shipping_creates_placeholder_product_once(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        first = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])],
                           shipping_cost=Decimal("4.50"))
        second = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])],
                            shipping_cost=Decimal("3.00"))

        first_result = await orchestrator.push_order(SHOP_ID, first.id)
        second_result = await orchestrator.push_order(SHOP_ID, second.id)

        placeholders = fake_pos.find_by_name("product", "Shipping Cost")
        assert len(placeholders) == 1
        assert placeholders[0]["price"] == "0.00"
        shipping_line = first_result.payload["weborderdetail"][-1]
        assert shipping_line == {
            "quantity": 1,
            "productid": placeholders[0]["id"],
            "productprice": "4.50",
            "producttax": 21,
        }
        assert second_result.payload["weborderdetail"][-1]["productprice"] == "3.00"
        assert len(fake_pos.calls_to("product.select")) == 1
        assert first_result.lines_pushed == 1

    @pytest.mark.asyncio
    async def test_shipping_reuses_existing_remote_placeholder(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        existing = fake_pos.add("product", name="Shipping Cost", price="0.00", tax=21)
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])],
                           shipping_cost=Decimal("4.50"))

        result = await orchestrator.push_order(SHOP_ID, order.id)

        assert result.payload["weborderdetail"][-1]["productid"] == existing
        assert fake_pos.calls_to("product.insert") == []

    @pytest.mark.asyncio
    async def test_unsynced_product_line_is_skipped(
        self, db_session, integration, orchestrator, catalog
    ):
        order = make_order(db_session, lines=[
            (catalog["unsynced"], 2, "5.00", []),
            (catalog["burger"], 1, "8.50", []),
        ])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        assert result.skipped_lines == 1
        assert [line["productid"] for line in result.payload["weborderdetail"]] == [301]
        assert "line skipped" in result.warnings[0]
        assert result.remote_order_ref is not None

    @pytest.mark.asyncio
    async def test_more_than_ten_selections_are_truncated(
        self, db_session, integration, orchestrator, catalog
    ):
        order = make_order(db_session, lines=[
            (catalog["burger"], 1, "8.50", [
                (catalog["cheese"], 6, "0.80"), (catalog["bacon"], 6, "1.20"),
            ]),
        ])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        line = result.payload["weborderdetail"][0]
        assert line["sub10 id"] == 402
        assert "sub11 id" not in line
        assert any("12 modifier selections" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_second_push_makes_no_network_calls(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])])
        first = await orchestrator.push_order(SHOP_ID, order.id)
        fake_pos.reset_calls()

        second = await orchestrator.push_order(SHOP_ID, order.id)

        assert fake_pos.calls == []
        assert second.already_pushed is True
        assert second.remote_order_ref == first.remote_order_ref
        assert len(fake_pos.tables["weborder"]) == 1

    @pytest.mark.asyncio
    async def test_failed_submission_leaves_order_retryable(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])])
        fake_pos.fail("weborder.insert", 503)

        with pytest.raises(POSTransientError):
            await orchestrator.push_order(SHOP_ID, order.id)

        db_session.refresh(order)
        assert order.remote_order_ref is None

        fake_pos.failures.clear()
        result = await orchestrator.push_order(SHOP_ID, order.id)

        assert result.already_pushed is False
        assert result.remote_order_ref is not None

    @pytest.mark.asyncio
    async def test_rejected_submission_is_semantic(
        self, db_session, integration, orchestrator, fake_pos, catalog
    ):
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])])
        fake_pos.fail("weborder.insert", 200, {"error_code": 3, "message": "No lines"})

        with pytest.raises(POSSemanticError):
            await orchestrator.push_order(SHOP_ID, order.id)

        db_session.refresh(order)
        assert order.remote_order_ref is None

    @pytest.mark.asyncio
    async def test_unknown_order_raises(self, db_session, integration, orchestrator):
        with pytest.raises(EntityNotFoundError):
            await orchestrator.push_order(SHOP_ID, 9999)

    @pytest.mark.asyncio
    async def test_order_of_another_shop_is_not_found(
        self, db_session, integration, orchestrator, catalog
    ):
        order = make_order(db_session, shop_id=2)

        with pytest.raises(EntityNotFoundError):
            await orchestrator.push_order(SHOP_ID, order.id)

    @pytest.mark.asyncio
    async def test_zero_quantity_selection_is_not_sent(
        self, db_session, integration, orchestrator, catalog
    ):
        order = make_order(db_session, lines=[
            (catalog["burger"], 1, "8.50", [
                (catalog["cheese"], 0, "0.80"), (catalog["bacon"], 1, "1.20"),
            ]),
        ])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        line = result.payload["weborderdetail"][0]
        assert line["sub1 id"] == 402
        assert line["sub1 price"] == "1.20"
        assert "sub2 id" not in line

    @pytest.mark.asyncio
    async def test_push_is_skipped_when_order_sync_is_off(
        self, db_session, orchestrator, fake_pos, catalog
    ):
        make_integration(db_session, sync_orders="off")
        order = make_order(db_session, lines=[(catalog["burger"], 1, "8.50", [])])

        result = await orchestrator.push_order(SHOP_ID, order.id)

        assert result.push_disabled is True
        assert result.remote_order_ref is None
        assert fake_pos.calls == []
        db_session.refresh(order)
        assert order.remote_order_ref is None
