"""Order Service: verifies creation, checkout, stock reservation and status races.

Tests:
    - create_order prices lines with shipping + tax and issues an ORD protocol
    - Duplicate component lines merge; unknown/inactive/short components rejected
    - checkout rejects incompatible and out-of-stock builds
    - Fulfillment decrements stock; cancelling from IN_PREPARATION restores it
    - A short item fails the whole reservation: no decrement, status unchanged
    - Two orders competing for the last units: exactly one reserves, stock never negative
    - A lost compare-and-set re-evaluates against the new state
    - Pre-built products price, reserve and release like components; only ACTIVE
      products are sold; a short product is listed in OutOfStockError
"""

import logging
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select, update

from praxis.core.domain_types import LineKind, OrderEvent, OrderStatus
from praxis.core.errors import (
    ConfigurationInvalidError, InvalidTransitionError, OutOfStockError,
    ResourceNotFoundError, ValidationError,
)
from praxis.models.component import Component
from praxis.models.order import Order
from praxis.models.product import Product
from praxis.services.order_service import OrderLine

from tests.services.fake_clock import FIXED_NOW


async def stock_of(db, component_id):
    result = await db.execute(
        select(Component.stock_quantity).where(Component.id == component_id),
    )
    return result.scalar_one()


async def product_stock_of(db, product_id):
    result = await db.execute(
        select(Product.stock_quantity).where(Product.id == product_id),
    )
    return result.scalar_one()


async def status_of(db, order_id):
    result = await db.execute(select(Order.status).where(Order.id == order_id))
    return result.scalar_one()


async def set_stock(db, component_id, quantity):
    await db.execute(
        update(Component).where(Component.id == component_id)
        .values(stock_quantity=quantity),
    )
    await db.commit()


async def paid_order(service, lines, address):
    order = await service.create_order(uuid4(), lines, address)
    order_id = order.id
    await service.transition(order_id, OrderEvent.CONFIRM_PAYMENT)
    return order_id


# ─── Creation ───────────────────────────────────────────────────

async def test_create_order_prices_and_persists(order_service, seeded_catalog, address):
    customer = uuid4()
    order = await order_service.create_order(customer, [
        OrderLine(seeded_catalog.cpu_am5, 1),
        OrderLine(seeded_catalog.ram_ddr5, 2),
    ], address)

    assert order.status == OrderStatus.PENDING.value
    assert order.customer_id == customer
    assert order.protocol.startswith("ORD-20261018-")
    assert order.destination_zone == "DOMESTIC"
    assert order.subtotal == Decimal("540.00")
    assert order.shipping_cost == Decimal("14.90")
    assert order.tax_amount == Decimal("108.00")
    assert order.total == Decimal("662.90")
    assert [(i.description, i.quantity, i.subtotal) for i in order.items] == [
        ("Ryzen 7 7700X", 1, Decimal("300.00")),
        ("32GB DDR5-6000", 2, Decimal("240.00")),
    ]


async def test_create_order_does_not_touch_stock(order_service, seeded_catalog, address, test_db):
    await order_service.create_order(uuid4(), [OrderLine(seeded_catalog.cpu_am5, 2)], address)
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 5


async def test_duplicate_lines_merge(order_service, seeded_catalog, address):
    order = await order_service.create_order(uuid4(), [
        OrderLine(seeded_catalog.cpu_am5, 1),
        OrderLine(seeded_catalog.cpu_am5, 2),
    ], address)
    assert len(order.items) == 1
    assert order.items[0].quantity == 3


async def test_unknown_component_rejected(order_service, seeded_catalog, address):
    with pytest.raises(ValidationError):
        await order_service.create_order(uuid4(), [OrderLine(uuid4(), 1)], address)


async def test_inactive_component_rejected(order_service, seeded_catalog, address):
    with pytest.raises(ValidationError):
        await order_service.create_order(
            uuid4(), [OrderLine(seeded_catalog.retired_cpu, 1)], address,
        )


async def test_quantity_above_stock_rejected(order_service, seeded_catalog, address):
    with pytest.raises(ValidationError):
        await order_service.create_order(
            uuid4(), [OrderLine(seeded_catalog.board_am5, 4)], address,
        )


async def test_missing_address_rejected(order_service, seeded_catalog):
    with pytest.raises(ValidationError) as exc:
        await order_service.create_order(uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], {})
    assert exc.value.field == "shipping_address"


async def test_discount_applied(order_service, seeded_catalog, address):
    order = await order_service.create_order(
        uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], address, Decimal("50.00"),
    )
    # 300 + 9.90 + 60 - 50
    assert order.total == Decimal("319.90")


async def test_zone_without_tiers_ships_free_with_warning(
    order_service, seeded_catalog, address, caplog,
):
    with caplog.at_level(logging.WARNING):
        order = await order_service.create_order(
            uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], {**address, "country": "JP"},
        )
    assert order.destination_zone == "INTL"
    assert order.shipping_cost == Decimal("0.00")
    assert any("No shipping tier" in r.getMessage() for r in caplog.records)


# ─── Checkout ───────────────────────────────────────────────────

async def test_checkout_creates_one_line_per_component(order_service, seeded_catalog, address):
    order = await order_service.checkout_configuration(
        uuid4(), seeded_catalog.build(), address,
    )
    assert [i.description for i in order.items] == [
        "Ryzen 7 7700X", "B650 Tomahawk", "32GB DDR5-6000", "650W Gold",
    ]
    assert order.subtotal == Decimal("770.00")
    assert order.total == Decimal("938.90")


async def test_checkout_rejects_incompatible_build(order_service, seeded_catalog, address):
    with pytest.raises(ConfigurationInvalidError) as exc:
        await order_service.checkout_configuration(
            uuid4(), seeded_catalog.build(CPU=seeded_catalog.cpu_am4), address,
        )
    assert [i["kind"] for i in exc.value.issues] == ["INCOMPATIBLE_PAIR"]


async def test_checkout_rejects_out_of_stock_build(order_service, seeded_catalog, address):
    with pytest.raises(ConfigurationInvalidError) as exc:
        await order_service.checkout_configuration(
            uuid4(), seeded_catalog.build(RAM=seeded_catalog.ram_sold_out), address,
        )
    assert [i["kind"] for i in exc.value.issues] == ["OUT_OF_STOCK"]


async def test_checkout_unknown_component_rejected(order_service, seeded_catalog, address):
    with pytest.raises(ValidationError) as exc:
        await order_service.checkout_configuration(
            uuid4(), {"CPU": uuid4()}, address,
        )
    assert exc.value.field == "selection.CPU"


# ─── Lifecycle ──────────────────────────────────────────────────

async def test_payment_stamps_paid_at(order_service, seeded_catalog, address):
    order = await order_service.create_order(uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], address)
    paid = await order_service.transition(order.id, OrderEvent.CONFIRM_PAYMENT)
    assert paid.status == OrderStatus.PAID.value
    assert paid.paid_at.replace(tzinfo=None) == FIXED_NOW.replace(tzinfo=None)


async def test_fulfillment_reserves_stock(order_service, seeded_catalog, address, test_db):
    order_id = await paid_order(order_service, [
        OrderLine(seeded_catalog.cpu_am5, 2),
        OrderLine(seeded_catalog.board_am5, 3),
    ], address)

    order = await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)

    assert order.status == OrderStatus.IN_PREPARATION.value
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 3
    assert await stock_of(test_db, seeded_catalog.board_am5) == 0


async def test_cancel_in_preparation_restores_stock(order_service, seeded_catalog, address, test_db):
    order_id = await paid_order(order_service, [OrderLine(seeded_catalog.cpu_am5, 2)], address)
    await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)

    order = await order_service.transition(order_id, OrderEvent.CANCEL)

    assert order.status == OrderStatus.CANCELLED.value
    assert order.cancelled_at is not None
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 5


async def test_cancel_before_fulfillment_leaves_stock(order_service, seeded_catalog, address, test_db):
    order_id = await paid_order(order_service, [OrderLine(seeded_catalog.cpu_am5, 2)], address)
    await order_service.transition(order_id, OrderEvent.CANCEL)
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 5


async def test_short_item_fails_whole_reservation(order_service, seeded_catalog, address, test_db):
    order_id = await paid_order(order_service, [
        OrderLine(seeded_catalog.cpu_am5, 2),
        OrderLine(seeded_catalog.board_am5, 3),
    ], address)
    await set_stock(test_db, seeded_catalog.board_am5, 2)

    with pytest.raises(OutOfStockError) as exc:
        await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)

    assert exc.value.item_ids == [str(seeded_catalog.board_am5)]
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 5
    assert await stock_of(test_db, seeded_catalog.board_am5) == 2
    assert await status_of(test_db, order_id) == OrderStatus.PAID.value


async def test_last_units_reserved_exactly_once(order_service, seeded_catalog, address, test_db):
    first = await paid_order(order_service, [OrderLine(seeded_catalog.board_am5, 2)], address)
    second = await paid_order(order_service, [OrderLine(seeded_catalog.board_am5, 2)], address)

    await order_service.transition(first, OrderEvent.BEGIN_FULFILLMENT)
    with pytest.raises(OutOfStockError):
        await order_service.transition(second, OrderEvent.BEGIN_FULFILLMENT)

    assert await stock_of(test_db, seeded_catalog.board_am5) == 1
    assert await status_of(test_db, first) == OrderStatus.IN_PREPARATION.value
    assert await status_of(test_db, second) == OrderStatus.PAID.value


async def test_dispatch_records_tracking_code(order_service, seeded_catalog, address):
    order_id = await paid_order(order_service, [OrderLine(seeded_catalog.cpu_am5, 1)], address)
    await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)

    with pytest.raises(ValidationError):
        await order_service.transition(order_id, OrderEvent.DISPATCH)

    order = await order_service.transition(order_id, OrderEvent.DISPATCH, " 1Z999AA1 ")
    assert order.status == OrderStatus.SHIPPED.value
    assert order.tracking_code == "1Z999AA1"
    assert order.shipped_at is not None


async def test_delivered_is_final(order_service, seeded_catalog, address, test_db):
    order_id = await paid_order(order_service, [OrderLine(seeded_catalog.cpu_am5, 1)], address)
    for event in (OrderEvent.BEGIN_FULFILLMENT, OrderEvent.DISPATCH, OrderEvent.CONFIRM_DELIVERY):
        await order_service.transition(order_id, event, "1Z999")

    with pytest.raises(InvalidTransitionError):
        await order_service.transition(order_id, OrderEvent.CANCEL)
    assert await status_of(test_db, order_id) == OrderStatus.DELIVERED.value


async def test_lost_race_reevaluates_against_new_state(order_service, seeded_catalog, address, test_db):
    order = await order_service.create_order(uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], address)
    order_id = order.id
    real_cas = order_service.orders.compare_and_set_status
    attempts = []

    async def racing_cas(target_id, expected, new, **fields):
        attempts.append(expected)
        if len(attempts) == 1:
            # payment confirmation lands between our read and our write
            await real_cas(target_id, OrderStatus.PENDING, OrderStatus.PAID, paid_at=FIXED_NOW)
            await test_db.commit()
            return False
        return await real_cas(target_id, expected, new, **fields)

    order_service.orders.compare_and_set_status = racing_cas
    cancelled = await order_service.transition(order_id, OrderEvent.CANCEL)

    assert attempts == [OrderStatus.PENDING, OrderStatus.PAID]
    assert cancelled.status == OrderStatus.CANCELLED.value


async def test_lost_race_can_make_event_invalid(order_service, seeded_catalog, address, test_db):
    order = await order_service.create_order(uuid4(), [OrderLine(seeded_catalog.cpu_am5, 1)], address)
    order_id = order.id
    real_cas = order_service.orders.compare_and_set_status

    async def racing_cas(target_id, expected, new, **fields):
        await real_cas(target_id, OrderStatus.PENDING, OrderStatus.CANCELLED, cancelled_at=FIXED_NOW)
        await test_db.commit()
        return False

    order_service.orders.compare_and_set_status = racing_cas
    with pytest.raises(InvalidTransitionError):
        await order_service.transition(order_id, OrderEvent.CONFIRM_PAYMENT)
    assert await status_of(test_db, order_id) == OrderStatus.CANCELLED.value


async def test_get_unknown_order(order_service):
    with pytest.raises(ResourceNotFoundError):
        await order_service.get(uuid4())


async def test_transition_unknown_order(order_service):
    with pytest.raises(ResourceNotFoundError):
        await order_service.transition(uuid4(), OrderEvent.CONFIRM_PAYMENT)


# ─── Pre-built products ─────────────────────────────────────────

def product(product_id, quantity):
    return OrderLine(product_id, quantity, LineKind.PRODUCT)


async def test_product_and_component_priced_together(
    order_service, seeded_catalog, seeded_products, address,
):
    order = await order_service.create_order(uuid4(), [
        product(seeded_products.office_pc, 1),
        OrderLine(seeded_catalog.cpu_am5, 1),
    ], address)

    assert order.subtotal == Decimal("899.00")
    assert order.shipping_cost == Decimal("14.90")
    assert order.tax_amount == Decimal("179.80")
    assert order.total == Decimal("1093.70")
    assert [(i.description, i.product_id, i.component_id) for i in order.items] == [
        ("Praxis Office Mini", seeded_products.office_pc, None),
        ("Ryzen 7 7700X", None, seeded_catalog.cpu_am5),
    ]
    assert [i.kind for i in order.items] == [LineKind.PRODUCT, LineKind.COMPONENT]


async def test_product_lines_merge_by_product(order_service, seeded_products, address):
    order = await order_service.create_order(uuid4(), [
        product(seeded_products.office_pc, 1),
        product(seeded_products.office_pc, 2),
    ], address)
    assert [(i.product_id, i.quantity) for i in order.items] == [
        (seeded_products.office_pc, 3),
    ]


@pytest.mark.parametrize("which", ["draft_pc", "archived_pc"])
async def test_product_not_on_sale_rejected(order_service, seeded_products, address, which):
    with pytest.raises(ValidationError, match="no longer sold"):
        await order_service.create_order(
            uuid4(), [product(getattr(seeded_products, which), 1)], address,
        )


async def test_unknown_product_rejected(order_service, seeded_products, address):
    with pytest.raises(ValidationError, match="Unknown product"):
        await order_service.create_order(uuid4(), [product(uuid4(), 1)], address)


async def test_component_id_is_not_a_product(order_service, seeded_catalog, seeded_products, address):
    with pytest.raises(ValidationError, match="Unknown product"):
        await order_service.create_order(
            uuid4(), [product(seeded_catalog.cpu_am5, 1)], address,
        )


async def test_product_quantity_above_stock_rejected(order_service, seeded_products, address):
    with pytest.raises(ValidationError, match="Only 2 of Praxis Gamer 7800"):
        await order_service.create_order(
            uuid4(), [product(seeded_products.gaming_pc, 3)], address,
        )


async def test_product_reserved_and_released(order_service, seeded_products, address, test_db):
    order_id = await paid_order(order_service, [product(seeded_products.gaming_pc, 2)], address)

    await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)
    assert await product_stock_of(test_db, seeded_products.gaming_pc) == 0

    await order_service.transition(order_id, OrderEvent.CANCEL)
    assert await product_stock_of(test_db, seeded_products.gaming_pc) == 2


async def test_short_product_fails_mixed_reservation(
    order_service, seeded_catalog, seeded_products, address, test_db,
):
    order_id = await paid_order(order_service, [
        OrderLine(seeded_catalog.cpu_am5, 2),
        product(seeded_products.gaming_pc, 2),
    ], address)
    await test_db.execute(
        update(Product).where(Product.id == seeded_products.gaming_pc)
        .values(stock_quantity=1),
    )
    await test_db.commit()

    with pytest.raises(OutOfStockError) as exc:
        await order_service.transition(order_id, OrderEvent.BEGIN_FULFILLMENT)

    assert exc.value.item_ids == [str(seeded_products.gaming_pc)]
    assert await stock_of(test_db, seeded_catalog.cpu_am5) == 5
    assert await product_stock_of(test_db, seeded_products.gaming_pc) == 1
    assert await status_of(test_db, order_id) == OrderStatus.PAID.value
