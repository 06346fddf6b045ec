"""
Review Service

One review per user and product. Ratings outside 1..5 are rejected.
With REVIEW_REQUIRES_PURCHASE on, only customers with a delivered order
containing the product may review it.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from bookstore.core.config import settings
from bookstore.core.exceptions import NotFoundError, PurchaseRequiredError, UniquenessConflict
from bookstore.models.order import Order, OrderDetail, OrderStatus
from bookstore.models.product import Product
from bookstore.models.review import Review
from bookstore.models.user import User
from bookstore.schemas.base import parse_input
from bookstore.schemas.review import ReviewCreate, ReviewUpdate
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)


class ReviewService(BaseService):

    async def _find(self, user_id: int, product_id: int) -> Optional[Review]:
        result = await self.db.execute(
            select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
        )
        return result.scalar_one_or_none()

    async def _get_owned(self, review_id: int, user_id: int) -> Review:
        review = await self.db.get(Review, review_id)
        if review is None or review.user_id != user_id:
            raise NotFoundError("Review", review_id)
        return review

    async def has_purchased(self, user_id: int, product_id: int) -> bool:
        """True if the user has a delivered order containing the product."""
        found = await self.db.scalar(
            select(func.count(OrderDetail.id))
            .join(Order, Order.id == OrderDetail.order_id)
            .where(
                Order.user_id == user_id,
                Order.status == OrderStatus.DELIVERED.value,
                OrderDetail.product_id == product_id,
            )
        )
        return bool(found)

    async def create_review(
        self,
        user_id: int,
        product_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """
        Raises:
            ValidationError: rating outside 1..5
            NotFoundError: Unknown user or product
            PurchaseRequiredError: Purchase required and not found
            UniquenessConflict: The user already reviewed this product
        """
        data = parse_input(ReviewCreate, {"rating": rating, "comment": comment})

        await self._get_or_raise(User, user_id)
        await self._get_or_raise(Product, product_id)

        if settings.REVIEW_REQUIRES_PURCHASE and not await self.has_purchased(user_id, product_id):
            raise PurchaseRequiredError(
                "You can only review products from a delivered order",
                field="product_id",
            )

        if await self._find(user_id, product_id):
            raise UniquenessConflict(
                "You have already reviewed this product",
                details={"user_id": user_id, "product_id": product_id},
            )

        review = Review(user_id=user_id, product_id=product_id, rating=data.rating, comment=data.comment)
        self.db.add(review)
        await self._commit("You have already reviewed this product")

        logger.info(f"Review id={review.id} user id={user_id} product id={product_id} rating={review.rating}")
        return review

    async def update_review(
        self,
        review_id: int,
        user_id: int,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Review:
        fields = {}
        if rating is not None:
            fields["rating"] = rating
        if comment is not None:
            fields["comment"] = comment
        data = parse_input(ReviewUpdate, fields)

        review = await self._get_owned(review_id, user_id)
        for key in data.model_fields_set:
            setattr(review, key, getattr(data, key))

        await self._commit()
        return review

    async def delete_review(self, review_id: int, user_id: int) -> None:
        review = await self._get_owned(review_id, user_id)
        await self.db.delete(review)
        await self._commit()
        logger.info(f"Deleted review id={review_id}")

    async def list_product_reviews(self, product_id: int, limit: int = 50, offset: int = 0) -> List[Review]:
        """Reviews of a product with their authors loaded, newest first."""
        result = await self.db.execute(
            select(Review)
            .where(Review.product_id == product_id)
            .options(selectinload(Review.user))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_user_reviews(self, user_id: int) -> List[Review]:
        result = await self.db.execute(
            select(Review)
            .where(Review.user_id == user_id)
            .options(selectinload(Review.product))
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return list(result.scalars().all())

    async def rating_summary(self, product_id: int) -> Tuple[Optional[float], int]:
        """
        Returns:
            (average rating rounded to 2 places or None, number of reviews)
        """
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
        )
        average, count = result.one()
        if not count:
            return None, 0
        return round(float(average), 2), count
