"""SQLAlchemy models for the school store."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from datetime import date, datetime, time  # noqa: TC003 - used at runtime for SQLAlchemy
from decimal import Decimal  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class CourseStatus(StrEnum):
    """Course lifecycle state."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"


# Courses that still accept registrations
OPEN_COURSE_STATUSES = (CourseStatus.UPCOMING.value, CourseStatus.ACTIVE.value)


class DifficultyLevel(StrEnum):
    """Recipe difficulty."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PaymentStatus(StrEnum):
    """Registration payment state."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class CertificateStatus(StrEnum):
    """Registration certificate state."""

    NOT_ELIGIBLE = "not_eligible"
    PENDING = "pending"
    ISSUED = "issued"


class VerificationStatus(StrEnum):
    """Outcome of manual review of a submitted payment."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """created_at / updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )


class User(TimestampMixin, Base):
    """User account - owns authentication and the role."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    api_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    student: Mapped[Student | None] = relationship("Student", back_populates="user")
    instructor: Mapped[Instructor | None] = relationship("Instructor", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class Student(TimestampMixin, Base):
    """Student profile, linked 1:1 to a user account."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    registration_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped[User | None] = relationship("User", back_populates="student")
    registrations: Mapped[list[Registration]] = relationship(
        "Registration", back_populates="student"
    )

    def __repr__(self) -> str:
        return f"<Student(id={self.id!r}, name={self.name!r})>"


class Instructor(TimestampMixin, Base):
    """Instructor profile, linked 1:1 to a user account."""

    __tablename__ = "instructors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped[User | None] = relationship("User", back_populates="instructor")
    course_links: Mapped[list[CourseInstructor]] = relationship(
        "CourseInstructor", back_populates="instructor", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Instructor(id={self.id!r}, name={self.name!r})>"


class Course(TimestampMixin, Base):
    """Course model - a scheduled, capacity-limited class."""

    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("maximum_capacity >= 1", name="ck_course_capacity_positive"),
        CheckConstraint(
            "current_enrollment >= 0 AND current_enrollment <= maximum_capacity",
            name="ck_course_enrollment_within_capacity",
        ),
        CheckConstraint("price >= 0", name="ck_course_price_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title_en: Mapped[str] = mapped_column(String(255), nullable=False)
    title_bn: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description_en: Mapped[str] = mapped_column(Text, nullable=False)
    description_bn: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    daily_start_time: Mapped[time] = mapped_column(Time, nullable=False)
    daily_end_time: Mapped[time] = mapped_column(Time, nullable=False)
    location_details: Mapped[str] = mapped_column(Text, nullable=False)
    maximum_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_enrollment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CourseStatus.UPCOMING.value
    )
    featured_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    registrations: Mapped[list[Registration]] = relationship(
        "Registration", back_populates="course"
    )
    recipe_links: Mapped[list[CourseRecipe]] = relationship(
        "CourseRecipe", back_populates="course", cascade="all, delete-orphan"
    )
    instructor_links: Mapped[list[CourseInstructor]] = relationship(
        "CourseInstructor", back_populates="course", cascade="all, delete-orphan"
    )

    @property
    def course_status(self) -> CourseStatus:
        """Get status as CourseStatus enum."""
        return CourseStatus(self.status)

    @property
    def available_seats(self) -> int:
        """Seats left before the course is full."""
        return self.maximum_capacity - self.current_enrollment

    @property
    def starts_at(self) -> datetime:
        """First session start as a single datetime."""
        return datetime.combine(self.start_date, self.daily_start_time)

    def __repr__(self) -> str:
        return (
            f"<Course(id={self.id!r}, title_en={self.title_en!r}, status={self.status!r}, "
            f"enrollment={self.current_enrollment}/{self.maximum_capacity})>"
        )


class Recipe(TimestampMixin, Base):
    """Recipe model - structured ingredients and instructions."""

    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("preparation_time > 0", name="ck_recipe_preparation_time_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    name_bn: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description_en: Mapped[str] = mapped_column(Text, nullable=False)
    description_bn: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{"name": ..., "quantity": ...}, ...]
    ingredients: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    # [{"step_text": ...}, ...]
    instructions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    preparation_time: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty_level: Mapped[str] = mapped_column(String(20), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    images: Mapped[list[RecipeImage]] = relationship(
        "RecipeImage",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeImage.display_order",
    )
    course_links: Mapped[list[CourseRecipe]] = relationship(
        "CourseRecipe", back_populates="recipe", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id!r}, name_en={self.name_en!r})>"


class RecipeImage(TimestampMixin, Base):
    """Image attached to a recipe. At most one is primary."""

    __tablename__ = "recipe_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipe_id: Mapped[int] = mapped_column(Integer, ForeignKey("recipes.id"), nullable=False)
    image_path: Mapped[str] = mapped_column(String(500), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    recipe: Mapped[Recipe] = relationship("Recipe", back_populates="images")


class CourseRecipe(TimestampMixin, Base):
    """Course <-> Recipe pivot with the day the recipe is taught."""

    __tablename__ = "course_recipes"
    __table_args__ = (UniqueConstraint("course_id", "recipe_id", name="uq_course_recipe"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    course: Mapped[Course] = relationship("Course", back_populates="recipe_links")
    recipe: Mapped[Recipe] = relationship("Recipe", back_populates="course_links")


class CourseInstructor(TimestampMixin, Base):
    """Course <-> Instructor pivot."""

    __tablename__ = "course_instructors"
    __table_args__ = (
        UniqueConstraint("course_id", "instructor_id", name="uq_course_instructor"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    instructor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
    )
    is_lead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    course: Mapped[Course] = relationship("Course", back_populates="instructor_links")
    instructor: Mapped[Instructor] = relationship("Instructor", back_populates="course_links")


class Registration(TimestampMixin, Base):
    """Registration model - binds one student to one course.

    Canceling a registration soft-deletes it (sets deleted_at). Only one
    non-canceled registration may exist per (student, course).
    """

    __tablename__ = "registrations"
    __table_args__ = (
        Index(
            "uq_registration_student_course_active",
            "student_id",
            "course_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id"), nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value
    )
    certificate_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CertificateStatus.NOT_ELIGIBLE.value
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    student: Mapped[Student] = relationship("Student", back_populates="registrations")
    course: Mapped[Course] = relationship("Course", back_populates="registrations")
    payments: Mapped[list[Payment]] = relationship("Payment", back_populates="registration")
    certificates: Mapped[list[Certificate]] = relationship(
        "Certificate", back_populates="registration"
    )
    attendance_records: Mapped[list[AttendanceRecord]] = relationship(
        "AttendanceRecord", back_populates="registration", order_by="AttendanceRecord.date"
    )

    @property
    def is_canceled(self) -> bool:
        """Whether the registration has been canceled."""
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<Registration(id={self.id!r}, student_id={self.student_id!r}, "
            f"course_id={self.course_id!r}, payment_status={self.payment_status!r})>"
        )


class Payment(TimestampMixin, Base):
    """Payment model - submitted evidence of payment for a registration."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("registrations.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    payment_proof: Mapped[str | None] = mapped_column(String(500), nullable=True)
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    registration: Mapped[Registration] = relationship("Registration", back_populates="payments")

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id!r}, transaction_id={self.transaction_id!r}, "
            f"verification_status={self.verification_status!r})>"
        )


class Certificate(Base):
    """Certificate model - immutable proof of course completion."""

    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("registrations.id"), nullable=False
    )
    certificate_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    issue_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    digital_signature: Mapped[str] = mapped_column(String(128), nullable=False)
    pdf_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    registration: Mapped[Registration] = relationship(
        "Registration", back_populates="certificates"
    )

    def __repr__(self) -> str:
        return (
            f"<Certificate(id={self.id!r}, certificate_number={self.certificate_number!r}, "
            f"registration_id={self.registration_id!r})>"
        )


class AttendanceRecord(TimestampMixin, Base):
    """Attendance for one registration on one day."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("registration_id", "date", name="uq_attendance_registration_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    registration_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("registrations.id"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    present: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    registration: Mapped[Registration] = relationship(
        "Registration", back_populates="attendance_records"
    )


@dataclass
class CourseAttendance:
    """Attendance sheet row: a student and their records for a course."""

    registration_id: int
    student_id: int
    student_name: str
    records: list[AttendanceRecord]
