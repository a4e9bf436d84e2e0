from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(slots=True)
class MealPlan:
    id: Optional[int]
    name: str
    price: int
    plan_type: str
    description: str
    detailed_description: str
    features: List[str] = field(default_factory=list)
    nutrition_info: Dict[str, str] = field(default_factory=dict)
    sample_meals: List[str] = field(default_factory=list)
    dietary_info: List[str] = field(default_factory=list)
    image: str = "/api/placeholder/400/300"
    is_active: bool = True
    popularity: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


DEFAULT_MEAL_PLANS: List[Dict[str, object]] = [
    {
        "name": "Diet Plan",
        "price": 30000,
        "plan_type": "diet",
        "description": "Healthy, balanced meals focused on weight management",
        "detailed_description": (
            "Our Diet Plan features carefully crafted meals with controlled portions and "
            "balanced nutrition. Perfect for those looking to maintain a healthy weight "
            "while enjoying delicious, satisfying meals."
        ),
        "features": [
            "Calorie-controlled portions",
            "High fiber content",
            "Low saturated fat",
            "Fresh vegetables and lean proteins",
            "Nutritionist approved",
        ],
        "nutrition_info": {
            "calories": "400-500 per meal",
            "protein": "25-30g",
            "carbs": "40-50g",
            "fats": "15-20g",
        },
    },
    {
        "name": "Protein Plan",
        "price": 40000,
        "plan_type": "protein",
        "description": "High-protein meals perfect for fitness enthusiasts",
        "detailed_description": (
            "Our Protein Plan is designed for active individuals who need extra protein to "
            "support their fitness goals. Each meal is packed with high-quality proteins "
            "while maintaining great taste."
        ),
        "features": [
            "High protein content",
            "Lean meats and fish",
            "Post-workout friendly",
            "Muscle building support",
            "Balanced macronutrients",
        ],
        "nutrition_info": {
            "calories": "500-600 per meal",
            "protein": "40-45g",
            "carbs": "35-45g",
            "fats": "20-25g",
        },
    },
    {
        "name": "Royal Plan",
        "price": 60000,
        "plan_type": "royal",
        "description": "Premium gourmet meals with finest ingredients",
        "detailed_description": (
            "Our Royal Plan offers the ultimate dining experience with premium ingredients "
            "and gourmet preparations. Indulge in restaurant-quality meals delivered to "
            "your door."
        ),
        "features": [
            "Premium ingredients",
            "Gourmet preparations",
            "Chef-crafted recipes",
            "Variety of cuisines",
            "Restaurant-quality taste",
        ],
        "nutrition_info": {
            "calories": "600-700 per meal",
            "protein": "30-40g",
            "carbs": "50-60g",
            "fats": "25-35g",
        },
    },
]
