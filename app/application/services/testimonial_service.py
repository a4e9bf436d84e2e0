from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ...domain.errors import NotFoundError
from ...domain.models import Testimonial
from ...domain.models.testimonial import DEFAULT_TESTIMONIALS
from ...domain.ports.persistence import TestimonialRepository

logger = logging.getLogger(__name__)


class TestimonialService:
    """Customer testimonials with an approval step before publication."""

    def __init__(self, repository: TestimonialRepository) -> None:
        self._repository = repository

    def list_testimonials(
        self,
        *,
        approved: Optional[bool] = None,
        rating: Optional[int] = None,
        plan: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Testimonial], int]:
        return self._repository.list_testimonials(
            is_approved=approved,
            rating=rating,
            plan=plan,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=(page - 1) * limit,
        )

    def list_approved(
        self,
        *,
        rating: Optional[int] = None,
        plan: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 10,
    ) -> List[Testimonial]:
        items, _ = self._repository.list_testimonials(
            is_approved=True,
            rating=rating,
            plan=plan,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
        )
        return items

    def get_testimonial(self, testimonial_id: int) -> Testimonial:
        testimonial = self._repository.get_testimonial(testimonial_id)
        if testimonial is None:
            raise NotFoundError(f"No testimonial found with ID: {testimonial_id}")
        return testimonial

    def submit(self, data: Dict[str, Any]) -> Testimonial:
        testimonial = self._repository.save_testimonial(Testimonial(id=None, is_approved=False, **data))
        logger.info("Testimonial %s submitted, pending approval", testimonial.id)
        return testimonial

    def update(self, testimonial_id: int, data: Dict[str, Any]) -> Testimonial:
        current = self.get_testimonial(testimonial_id)
        return self._repository.save_testimonial(replace(current, **data))

    def approve(self, testimonial_id: int) -> Testimonial:
        current = self.get_testimonial(testimonial_id)
        return self._repository.save_testimonial(
            replace(current, is_approved=True, approved_at=datetime.now(timezone.utc))
        )

    def reject(self, testimonial_id: int) -> Testimonial:
        current = self.get_testimonial(testimonial_id)
        return self._repository.save_testimonial(replace(current, is_approved=False, approved_at=None))

    def delete(self, testimonial_id: int) -> Testimonial:
        current = self.get_testimonial(testimonial_id)
        self._repository.delete_testimonial(testimonial_id)
        return current

    def seed_defaults(self) -> List[Testimonial]:
        """Replace every testimonial with the approved sample set."""
        self._repository.clear_testimonials()
        now = datetime.now(timezone.utc)
        seeded = [
            self._repository.save_testimonial(
                Testimonial(id=None, is_approved=True, approved_at=now, **dict(item))
            )
            for item in DEFAULT_TESTIMONIALS
        ]
        logger.info("Seeded %s default testimonials", len(seeded))
        return seeded

    def statistics(self) -> Dict[str, Any]:
        everything, total = self._repository.list_testimonials()
        approved = [item for item in everything if item.is_approved]

        by_rating: Dict[int, int] = defaultdict(int)
        by_plan: Dict[str, List[int]] = defaultdict(list)
        for item in approved:
            by_rating[item.rating] += 1
            if item.plan:
                by_plan[item.plan].append(item.rating)

        average = sum(item.rating for item in approved) / len(approved) if approved else 0
        return {
            "totalTestimonials": total,
            "approvedTestimonials": len(approved),
            "pendingTestimonials": total - len(approved),
            "averageRating": round(average, 2),
            "ratingDistribution": [
                {"rating": rating, "count": count}
                for rating, count in sorted(by_rating.items(), reverse=True)
            ],
            "planStatistics": [
                {
                    "plan": plan,
                    "count": len(ratings),
                    "averageRating": round(sum(ratings) / len(ratings), 2),
                }
                for plan, ratings in sorted(by_plan.items())
            ],
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
