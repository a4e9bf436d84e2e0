import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ...domain.models import MealPlan, PausePeriod, Subscription, Testimonial, User
from ...domain.ports.persistence import PersistenceGateway

_USER_COLUMNS = {
    "full_name",
    "email",
    "password_hash",
    "role",
    "is_active",
    "last_login",
    "login_attempts",
    "lock_until",
}
_SUBSCRIPTION_SORT = {
    "created_at",
    "updated_at",
    "total_price",
    "plan",
    "status",
    "name",
    "start_date",
}
_MEAL_PLAN_SORT = {"plan_type", "price", "name", "popularity", "created_at"}
_TESTIMONIAL_SORT = {"created_at", "rating", "name", "approved_at"}


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway.

    List-valued document fields are stored as JSON text.
    """

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    full_name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'user',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    last_login TEXT,
                    login_attempts INTEGER NOT NULL DEFAULT 0,
                    lock_until TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS subscriptions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    name TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    plan TEXT NOT NULL,
                    meal_types TEXT NOT NULL,
                    delivery_days TEXT NOT NULL,
                    allergies TEXT NOT NULL DEFAULT '',
                    total_price INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    pause_periods TEXT NOT NULL DEFAULT '[]',
                    cancellation_date TEXT,
                    cancellation_reason TEXT,
                    start_date TEXT,
                    end_date TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_subscriptions_user_id
                    ON subscriptions(user_id);
                CREATE INDEX IF NOT EXISTS idx_subscriptions_status
                    ON subscriptions(status);

                CREATE TABLE IF NOT EXISTS meal_plans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    price INTEGER NOT NULL,
                    plan_type TEXT NOT NULL,
                    description TEXT NOT NULL,
                    detailed_description TEXT NOT NULL,
                    features TEXT NOT NULL DEFAULT '[]',
                    nutrition_info TEXT NOT NULL DEFAULT '{}',
                    sample_meals TEXT NOT NULL DEFAULT '[]',
                    dietary_info TEXT NOT NULL DEFAULT '[]',
                    image TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    popularity INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS testimonials (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    message TEXT NOT NULL,
                    rating INTEGER NOT NULL,
                    email TEXT,
                    is_approved INTEGER NOT NULL DEFAULT 0,
                    is_featured INTEGER NOT NULL DEFAULT 0,
                    plan TEXT,
                    location TEXT,
                    approved_at TEXT,
                    admin_notes TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_testimonials_approved_rating
                    ON testimonials(is_approved, rating DESC);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # UserRepository API ----------------------------------------------------
    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def create_user(self, full_name: str, email: str, password_hash: str, role: str) -> User:
        now = self._now()
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                INSERT INTO users (
                    full_name, email, password_hash, role, is_active,
                    login_attempts, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, 1, 0, ?, ?)
                """,
                (full_name, email.lower(), password_hash, role, now, now),
            )
            user_id = cur.lastrowid
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def update_user(self, user_id: int, **fields: Any) -> User:
        unknown = set(fields).difference(_USER_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown user fields: {', '.join(sorted(unknown))}")
        updates = []
        params: List[Any] = []
        for column, value in fields.items():
            updates.append(f"{column} = ?")
            if column == "email" and value is not None:
                value = value.lower()
            params.append(self._to_db(value))
        updates.append("updated_at = ?")
        params.append(self._now())
        params.append(user_id)
        with self._lock, self._conn:
            self._conn.execute(f"UPDATE users SET {', '.join(updates)} WHERE id = ?", params)
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        if not row:
            raise LookupError(f"User {user_id} not found.")
        return self._row_to_user(row)

    def delete_user(self, user_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[User], int]:
        clauses: List[str] = []
        params: List[Any] = []
        if role:
            clauses.append("role = ?")
            params.append(role)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))
        if search:
            clauses.append("(full_name LIKE ? OR email LIKE ?)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern])
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows, total = self._paged_query("users", where, params, "created_at DESC", limit, offset)
        return [self._row_to_user(row) for row in rows], total

    # SubscriptionRepository API -------------------------------------------
    def save_subscription(self, subscription: Subscription) -> Subscription:
        now = self._now()
        values = (
            subscription.user_id,
            subscription.name,
            subscription.phone,
            subscription.plan,
            json.dumps(list(subscription.meal_types)),
            json.dumps(list(subscription.delivery_days)),
            subscription.allergies,
            subscription.total_price,
            subscription.status,
            self._dump_pause_periods(subscription.pause_periods),
            self._to_db(subscription.cancellation_date),
            subscription.cancellation_reason,
            self._to_db(subscription.start_date),
            self._to_db(subscription.end_date),
        )
        with self._lock, self._conn:
            if subscription.id is None:
                created_at = self._to_db(subscription.created_at) or now
                cur = self._conn.execute(
                    """
                    INSERT INTO subscriptions (
                        user_id, name, phone, plan, meal_types, delivery_days,
                        allergies, total_price, status, pause_periods,
                        cancellation_date, cancellation_reason, start_date, end_date,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + (created_at, now),
                )
                subscription_id = cur.lastrowid
            else:
                subscription_id = subscription.id
                self._conn.execute(
                    """
                    UPDATE subscriptions SET
                        user_id = ?, name = ?, phone = ?, plan = ?, meal_types = ?,
                        delivery_days = ?, allergies = ?, total_price = ?, status = ?,
                        pause_periods = ?, cancellation_date = ?, cancellation_reason = ?,
                        start_date = ?, end_date = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    values + (now, subscription_id),
                )
            cur = self._conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,))
            row = cur.fetchone()
        if not row:
            raise LookupError(f"Subscription {subscription_id} not found.")
        return self._row_to_subscription(row)

    def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,))
            row = cur.fetchone()
        return self._row_to_subscription(row) if row else None

    def list_subscriptions(
        self,
        *,
        user_id: Optional[int] = None,
        plan: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Subscription], int]:
        where, params = self._subscription_filters(user_id=user_id, plan=plan, status=status)
        order = self._order_clause(sort_by, descending, _SUBSCRIPTION_SORT, "created_at")
        rows, total = self._paged_query("subscriptions", where, params, order, limit, offset)
        return [self._row_to_subscription(row) for row in rows], total

    def delete_subscription(self, subscription_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM subscriptions WHERE id = ?", (subscription_id,))
            return cur.rowcount > 0

    def delete_subscriptions_for_user(self, user_id: int) -> int:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM subscriptions WHERE user_id = ?", (user_id,))
            return cur.rowcount

    def count_subscriptions(self, **filters: Any) -> int:
        where, params = self._subscription_filters(**filters)
        with self._lock:
            cur = self._conn.execute(f"SELECT COUNT(*) AS total FROM subscriptions{where}", params)
            return cur.fetchone()["total"]

    # MealPlanRepository API -----------------------------------------------
    def save_meal_plan(self, meal_plan: MealPlan) -> MealPlan:
        now = self._now()
        values = (
            meal_plan.name,
            meal_plan.price,
            meal_plan.plan_type,
            meal_plan.description,
            meal_plan.detailed_description,
            json.dumps(meal_plan.features, ensure_ascii=False),
            json.dumps(meal_plan.nutrition_info, ensure_ascii=False),
            json.dumps(meal_plan.sample_meals, ensure_ascii=False),
            json.dumps(meal_plan.dietary_info, ensure_ascii=False),
            meal_plan.image,
            int(meal_plan.is_active),
            meal_plan.popularity,
        )
        with self._lock, self._conn:
            if meal_plan.id is None:
                cur = self._conn.execute(
                    """
                    INSERT INTO meal_plans (
                        name, price, plan_type, description, detailed_description,
                        features, nutrition_info, sample_meals, dietary_info, image,
                        is_active, popularity, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + (now, now),
                )
                meal_plan_id = cur.lastrowid
            else:
                meal_plan_id = meal_plan.id
                self._conn.execute(
                    """
                    UPDATE meal_plans SET
                        name = ?, price = ?, plan_type = ?, description = ?,
                        detailed_description = ?, features = ?, nutrition_info = ?,
                        sample_meals = ?, dietary_info = ?, image = ?, is_active = ?,
                        popularity = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    values + (now, meal_plan_id),
                )
            cur = self._conn.execute("SELECT * FROM meal_plans WHERE id = ?", (meal_plan_id,))
            row = cur.fetchone()
        if not row:
            raise LookupError(f"Meal plan {meal_plan_id} not found.")
        return self._row_to_meal_plan(row)

    def get_meal_plan(self, meal_plan_id: int) -> Optional[MealPlan]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM meal_plans WHERE id = ?", (meal_plan_id,))
            row = cur.fetchone()
        return self._row_to_meal_plan(row) if row else None

    def list_meal_plans(
        self,
        *,
        plan_type: Optional[str] = None,
        is_active: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "plan_type",
        descending: bool = False,
    ) -> List[MealPlan]:
        clauses: List[str] = []
        params: List[Any] = []
        if plan_type:
            clauses.append("plan_type = ?")
            params.append(plan_type)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))
        if min_price is not None:
            clauses.append("price >= ?")
            params.append(min_price)
        if max_price is not None:
            clauses.append("price <= ?")
            params.append(max_price)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        order = self._order_clause(sort_by, descending, _MEAL_PLAN_SORT, "plan_type")
        rows, _ = self._paged_query("meal_plans", where, params, order, None, 0)
        return [self._row_to_meal_plan(row) for row in rows]

    def delete_meal_plan(self, meal_plan_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM meal_plans WHERE id = ?", (meal_plan_id,))
            return cur.rowcount > 0

    def clear_meal_plans(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM meal_plans")

    # TestimonialRepository API --------------------------------------------
    def save_testimonial(self, testimonial: Testimonial) -> Testimonial:
        now = self._now()
        values = (
            testimonial.name,
            testimonial.message,
            testimonial.rating,
            testimonial.email,
            int(testimonial.is_approved),
            int(testimonial.is_featured),
            testimonial.plan,
            testimonial.location,
            self._to_db(testimonial.approved_at),
            testimonial.admin_notes,
        )
        with self._lock, self._conn:
            if testimonial.id is None:
                cur = self._conn.execute(
                    """
                    INSERT INTO testimonials (
                        name, message, rating, email, is_approved, is_featured,
                        plan, location, approved_at, admin_notes, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + (now, now),
                )
                testimonial_id = cur.lastrowid
            else:
                testimonial_id = testimonial.id
                self._conn.execute(
                    """
                    UPDATE testimonials SET
                        name = ?, message = ?, rating = ?, email = ?, is_approved = ?,
                        is_featured = ?, plan = ?, location = ?, approved_at = ?,
                        admin_notes = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    values + (now, testimonial_id),
                )
            cur = self._conn.execute("SELECT * FROM testimonials WHERE id = ?", (testimonial_id,))
            row = cur.fetchone()
        if not row:
            raise LookupError(f"Testimonial {testimonial_id} not found.")
        return self._row_to_testimonial(row)

    def get_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM testimonials WHERE id = ?", (testimonial_id,))
            row = cur.fetchone()
        return self._row_to_testimonial(row) if row else None

    def list_testimonials(
        self,
        *,
        is_approved: Optional[bool] = None,
        rating: Optional[int] = None,
        plan: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Testimonial], int]:
        clauses: List[str] = []
        params: List[Any] = []
        if is_approved is not None:
            clauses.append("is_approved = ?")
            params.append(int(is_approved))
        if rating is not None:
            clauses.append("rating = ?")
            params.append(rating)
        if plan:
            clauses.append("plan = ?")
            params.append(plan)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        order = self._order_clause(sort_by, descending, _TESTIMONIAL_SORT, "created_at")
        rows, total = self._paged_query("testimonials", where, params, order, limit, offset)
        return [self._row_to_testimonial(row) for row in rows], total

    def delete_testimonial(self, testimonial_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM testimonials WHERE id = ?", (testimonial_id,))
            return cur.rowcount > 0

    def clear_testimonials(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM testimonials")

    # Helpers ----------------------------------------------------------------
    def _paged_query(
        self,
        table: str,
        where: str,
        params: List[Any],
        order: str,
        limit: Optional[int],
        offset: int,
    ) -> Tuple[List[sqlite3.Row], int]:
        query = f"SELECT * FROM {table}{where} ORDER BY {order}, id ASC"
        page_params = list(params)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            page_params.extend([limit, offset])
        with self._lock:
            total = self._conn.execute(f"SELECT COUNT(*) AS total FROM {table}{where}", params).fetchone()["total"]
            rows = self._conn.execute(query, page_params).fetchall()
        return rows, total

    @staticmethod
    def _subscription_filters(
        user_id: Optional[int] = None,
        plan: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if plan:
            clauses.append("plan = ?")
            params.append(plan)
        if status:
            clauses.append("status = ?")
            params.append(status)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _order_clause(sort_by: str, descending: bool, allowed: set, default: str) -> str:
        column = sort_by if sort_by in allowed else default
        return f"{column} {'DESC' if descending else 'ASC'}"

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @classmethod
    def _to_db(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return cls._normalize(value).isoformat()
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _normalize(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def _parse_datetime(cls, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            # Fallback for legacy formats without 'T'
            result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        return cls._normalize(result)

    @classmethod
    def _dump_pause_periods(cls, periods) -> str:
        payload: List[Dict[str, Any]] = [
            {
                "startDate": cls._to_db(period.start_date),
                "endDate": cls._to_db(period.end_date),
                "reason": period.reason,
                "createdAt": cls._to_db(period.created_at),
            }
            for period in periods
        ]
        return json.dumps(payload, ensure_ascii=False)

    @classmethod
    def _load_pause_periods(cls, raw: str) -> Tuple[PausePeriod, ...]:
        return tuple(
            PausePeriod(
                start_date=cls._parse_datetime(item["startDate"]),
                end_date=cls._parse_datetime(item["endDate"]),
                reason=item.get("reason"),
                created_at=cls._parse_datetime(item.get("createdAt")) or cls._parse_datetime(item["startDate"]),
            )
            for item in json.loads(raw or "[]")
        )

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            full_name=row["full_name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            is_active=bool(row["is_active"]),
            last_login=self._parse_datetime(row["last_login"]),
            login_attempts=row["login_attempts"],
            lock_until=self._parse_datetime(row["lock_until"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_subscription(self, row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            phone=row["phone"],
            plan=row["plan"],
            meal_types=tuple(json.loads(row["meal_types"])),
            delivery_days=tuple(json.loads(row["delivery_days"])),
            allergies=row["allergies"] or "",
            total_price=row["total_price"],
            status=row["status"],
            pause_periods=self._load_pause_periods(row["pause_periods"]),
            cancellation_date=self._parse_datetime(row["cancellation_date"]),
            cancellation_reason=row["cancellation_reason"],
            start_date=self._parse_datetime(row["start_date"]),
            end_date=self._parse_datetime(row["end_date"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_meal_plan(self, row: sqlite3.Row) -> MealPlan:
        return MealPlan(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            plan_type=row["plan_type"],
            description=row["description"],
            detailed_description=row["detailed_description"],
            features=json.loads(row["features"]),
            nutrition_info=json.loads(row["nutrition_info"]),
            sample_meals=json.loads(row["sample_meals"]),
            dietary_info=json.loads(row["dietary_info"]),
            image=row["image"],
            is_active=bool(row["is_active"]),
            popularity=row["popularity"],
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_testimonial(self, row: sqlite3.Row) -> Testimonial:
        return Testimonial(
            id=row["id"],
            name=row["name"],
            message=row["message"],
            rating=row["rating"],
            email=row["email"],
            is_approved=bool(row["is_approved"]),
            is_featured=bool(row["is_featured"]),
            plan=row["plan"],
            location=row["location"],
            approved_at=self._parse_datetime(row["approved_at"]),
            admin_notes=row["admin_notes"],
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
