"""
Tests for the administrator dashboard figures.
"""
from decimal import Decimal

import pytest

from bookstore.services import CatalogService, DashboardService, OrderService


class TestDashboardStatistics:
    """Test DashboardService.get_statistics."""

    @pytest.mark.asyncio
    async def test_empty_store(self, db):
        stats = await DashboardService(db).get_statistics()

        assert (stats.total_users, stats.total_products, stats.total_orders) == (0, 0, 0)
        assert stats.total_revenue == Decimal("0.00")
        assert stats.recent_orders == []
        assert stats.low_stock_products == []

    @pytest.mark.asyncio
    async def test_counts_and_revenue(self, db, make_user, make_product, shipping_address):
        buyer = await make_user()
        await make_user()
        dune = await make_product(price="19.99", stock=30)
        emma = await make_product(price="5.00", stock=30)
        service = OrderService(db)
        first = await service.place_order(buyer.id, [{"product_id": dune.id, "quantity": 2}], shipping_address)
        second = await service.place_order(buyer.id, [{"product_id": emma.id, "quantity": 1}], shipping_address)

        stats = await DashboardService(db).get_statistics()

        assert (stats.total_users, stats.total_products, stats.total_orders) == (2, 2, 2)
        assert stats.total_revenue == Decimal("44.98")
        assert [o.id for o in stats.recent_orders] == [second.id, first.id]
        assert stats.recent_orders[0].user.email == buyer.email

    @pytest.mark.asyncio
    async def test_low_stock_products(self, db, make_product):
        catalog = CatalogService(db)
        fiction = await catalog.create_category("Fiction")
        scarce = await make_product(title="Scarce", stock=1, category_ids=[fiction.id])
        edge = await make_product(title="Edge", stock=10)
        await make_product(title="Plenty", stock=11)

        stats = await DashboardService(db).get_statistics()
        assert [p.title for p in stats.low_stock_products] == ["Scarce", "Edge"]
        assert [c.name for c in stats.low_stock_products[0].categories] == ["Fiction"]

        stats = await DashboardService(db).get_statistics(low_stock_threshold=5)
        assert [p.id for p in stats.low_stock_products] == [scarce.id]
        assert edge.id not in [p.id for p in stats.low_stock_products]

    @pytest.mark.asyncio
    async def test_limit(self, db, make_product):
        for stock in range(7):
            await make_product(stock=stock)

        stats = await DashboardService(db).get_statistics(limit=3)
        assert [p.stock for p in stats.low_stock_products] == [0, 1, 2]
