"""
Dashboard Service

Read-only store overview for administrators: headline counts, revenue, the
latest orders and the products running low on stock.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from bookstore.core.config import settings
from bookstore.models.order import Order
from bookstore.models.product import Product
from bookstore.models.user import User
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class DashboardStatistics:
    total_users: int
    total_products: int
    total_orders: int
    total_revenue: Decimal
    recent_orders: List[Order] = field(default_factory=list)
    low_stock_products: List[Product] = field(default_factory=list)


class DashboardService(BaseService):

    async def get_statistics(
        self,
        low_stock_threshold: Optional[int] = None,
        limit: int = 5,
    ) -> DashboardStatistics:
        """
        Collect dashboard figures.

        Revenue is the sum of total_amount over all orders. Low stock means
        stock <= low_stock_threshold (LOW_STOCK_THRESHOLD by default), lowest
        first, with categories loaded. Recent orders come with their user.
        """
        threshold = settings.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold

        total_users = await self.db.scalar(select(func.count(User.id)))
        total_products = await self.db.scalar(select(func.count(Product.id)))
        total_orders = await self.db.scalar(select(func.count(Order.id)))
        total_revenue = await self.db.scalar(select(func.sum(Order.total_amount)))

        recent = await self.db.execute(
            select(Order)
            .options(selectinload(Order.user))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        low_stock = await self.db.execute(
            select(Product)
            .where(Product.stock <= threshold)
            .options(selectinload(Product.categories))
            .order_by(Product.stock.asc(), Product.id.asc())
            .limit(limit)
        )

        stats = DashboardStatistics(
            total_users=total_users or 0,
            total_products=total_products or 0,
            total_orders=total_orders or 0,
            total_revenue=Decimal(total_revenue or 0).quantize(Decimal("0.01")),
            recent_orders=list(recent.scalars().all()),
            low_stock_products=list(low_stock.scalars().all()),
        )
        logger.debug(
            f"Dashboard: users={stats.total_users} products={stats.total_products} "
            f"orders={stats.total_orders} revenue={stats.total_revenue}"
        )
        return stats
