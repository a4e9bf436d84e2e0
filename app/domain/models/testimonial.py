from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(slots=True)
class Testimonial:
    id: Optional[int]
    name: str
    message: str
    rating: int
    email: Optional[str] = None
    is_approved: bool = False
    is_featured: bool = False
    plan: Optional[str] = None
    location: Optional[str] = None
    approved_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def star_display(self) -> str:
        return "★" * self.rating + "☆" * (5 - self.rating)


DEFAULT_TESTIMONIALS: List[Dict[str, object]] = [
    {
        "name": "Sarah Johnson",
        "message": (
            "The Diet Plan has been amazing for my weight loss journey. "
            "The portions are perfect and the taste is incredible!"
        ),
        "rating": 5,
        "plan": "diet",
        "location": "Jakarta",
    },
    {
        "name": "Michael Chen",
        "message": (
            "As a fitness enthusiast, the Protein Plan gives me exactly what I need. "
            "High quality meals that support my training."
        ),
        "rating": 5,
        "plan": "protein",
        "location": "Surabaya",
    },
    {
        "name": "Priya Sharma",
        "message": (
            "The Royal Plan is pure luxury! Every meal feels like dining at a 5-star "
            "restaurant. Worth every penny."
        ),
        "rating": 5,
        "plan": "royal",
        "location": "Bandung",
    },
    {
        "name": "David Wilson",
        "message": (
            "Great service and delicious meals. The Diet Plan has helped me maintain "
            "a healthy lifestyle effortlessly."
        ),
        "rating": 4,
        "plan": "diet",
        "location": "Medan",
    },
    {
        "name": "Lisa Rodriguez",
        "message": "Love the variety in the Protein Plan. Perfect for my busy schedule and fitness goals.",
        "rating": 5,
        "plan": "protein",
        "location": "Yogyakarta",
    },
]
