"""SchoolStore - Main API for catalog and people CRUD operations."""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from cookschool.store.database import Database
from cookschool.store.exceptions import (
    AttendanceExistsError,
    CourseHasEnrollmentsError,
    CourseNotFoundError,
    CourseTransitionError,
    InstructorAlreadyAssignedError,
    InstructorHasActiveCoursesError,
    InstructorNotFoundError,
    InvalidCourseError,
    RecipeAlreadyAttachedError,
    RecipeNotFoundError,
    RegistrationNotFoundError,
    StudentNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from cookschool.store.models import (
    OPEN_COURSE_STATUSES,
    AttendanceRecord,
    Certificate,
    Course,
    CourseAttendance,
    CourseInstructor,
    CourseRecipe,
    CourseStatus,
    DifficultyLevel,
    Instructor,
    Recipe,
    RecipeImage,
    Registration,
    Student,
    User,
)

logger = logging.getLogger(__name__)

COURSE_SORTS = {
    "price_asc": Course.price.asc(),
    "price_desc": Course.price.desc(),
    "date_asc": Course.start_date.asc(),
    "date_desc": Course.start_date.desc(),
}


def _validate_course(
    start_date: date,
    end_date: date,
    daily_start_time: time,
    daily_end_time: time,
    maximum_capacity: int,
    price: Decimal,
    current_enrollment: int = 0,
) -> None:
    """Check course field invariants.

    Raises:
        InvalidCourseError: With one message per offending field.
    """
    errors: dict[str, list[str]] = {}
    if start_date > end_date:
        errors["end_date"] = ["end_date must be on or after start_date"]
    if daily_start_time >= daily_end_time:
        errors["daily_end_time"] = ["daily_end_time must be after daily_start_time"]
    if maximum_capacity < 1:
        errors["maximum_capacity"] = ["maximum_capacity must be at least 1"]
    elif maximum_capacity < current_enrollment:
        errors["maximum_capacity"] = [
            f"maximum_capacity cannot be below current enrollment ({current_enrollment})"
        ]
    if price < 0:
        errors["price"] = ["price must not be negative"]
    if errors:
        raise InvalidCourseError("Invalid course", errors)


class SchoolStore:
    """Main API for store operations.

    Provides CRUD operations for users, students, instructors, courses,
    recipes and attendance. Registration, payment and certificate state is
    mutated only by the enrollment, payment and certificate services, which
    share this store's database.
    """

    def __init__(self, db_path: str = "cookschool.db") -> None:
        """Initialize the store with an SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()

    @property
    def database(self) -> Database:
        """The underlying database connection manager."""
        return self._db

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- User Operations ---

    def create_user(
        self,
        name: str,
        email: str,
        role: str,
        api_token: str | None = None,
    ) -> User:
        """Create a user account.

        Args:
            name: Display name
            email: Unique email address
            role: Role name from the access policy table
            api_token: Bearer token (generated when omitted)

        Returns:
            Created User object

        Raises:
            UserExistsError: If a user with the same email or token exists
        """
        session = self._db.get_session()
        try:
            user = User(
                name=name,
                email=email,
                role=role,
                api_token=api_token or secrets.token_urlsafe(32),
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            logger.info("Created user %s (role=%s)", user.id, role)
            return user
        except IntegrityError as e:
            session.rollback()
            raise UserExistsError(f"User with email '{email}' already exists") from e
        finally:
            session.close()

    def create_student_account(
        self,
        name: str,
        email: str,
        phone: str | None = None,
        api_token: str | None = None,
    ) -> tuple[User, Student]:
        """Create a student-role user and its student profile in one transaction.

        Raises:
            UserExistsError: If a user with the same email or token exists
        """
        session = self._db.get_session()
        try:
            user = User(
                name=name,
                email=email,
                role="student",
                api_token=api_token or secrets.token_urlsafe(32),
            )
            session.add(user)
            session.flush()
            student = Student(name=name, email=email, user_id=user.id, phone=phone)
            session.add(student)
            session.commit()
            session.refresh(user)
            session.refresh(student)
            logger.info("Created student account %s (student %s)", user.id, student.id)
            return user, student
        except IntegrityError as e:
            session.rollback()
            raise UserExistsError(f"User with email '{email}' already exists") from e
        finally:
            session.close()

    def get_user(self, user_id: int) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        session = self._db.get_session()
        try:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")
            return user
        finally:
            session.close()

    def get_user_by_token(self, api_token: str) -> User:
        """Get user by bearer token.

        Raises:
            UserNotFoundError: If no user holds the token
        """
        session = self._db.get_session()
        try:
            stmt = select(User).where(User.api_token == api_token)
            user = session.execute(stmt).scalar_one_or_none()
            if user is None:
                raise UserNotFoundError("No user for the given token")
            return user
        finally:
            session.close()

    # --- Student Operations ---

    def create_student(
        self,
        name: str,
        email: str,
        user_id: int | None = None,
        phone: str | None = None,
        address: str | None = None,
        profile_image: str | None = None,
    ) -> Student:
        """Create a student profile.

        Args:
            name: Student's full name
            email: Contact email
            user_id: Linked user account (None for students managed by staff)
            phone: Contact phone number
            address: Postal address
            profile_image: Storage path of the profile image

        Returns:
            Created Student object

        Raises:
            UserNotFoundError: If user_id doesn't exist
            UserExistsError: If the user already has a student profile
        """
        session = self._db.get_session()
        try:
            if user_id is not None and session.get(User, user_id) is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")

            student = Student(
                name=name,
                email=email,
                user_id=user_id,
                phone=phone,
                address=address,
                profile_image=profile_image,
            )
            session.add(student)
            session.commit()
            session.refresh(student)
            return student
        except IntegrityError as e:
            session.rollback()
            raise UserExistsError(f"User '{user_id}' already has a student profile") from e
        finally:
            session.close()

    def get_student(self, student_id: int) -> Student:
        """Get student by ID.

        Raises:
            StudentNotFoundError: If student doesn't exist or was deleted
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")
            return student
        finally:
            session.close()

    def find_student_for_user(self, user_id: int) -> Student | None:
        """Get the student profile linked to a user, if any."""
        session = self._db.get_session()
        try:
            stmt = select(Student).where(
                Student.user_id == user_id,
                Student.deleted_at.is_(None),
            )
            return session.execute(stmt).scalar_one_or_none()
        finally:
            session.close()

    def update_student(
        self,
        student_id: int,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        profile_image: str | None = None,
    ) -> Student:
        """Update student fields. Only provided fields are updated.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            if name is not None:
                student.name = name
            if email is not None:
                student.email = email
            if phone is not None:
                student.phone = phone
            if address is not None:
                student.address = address
            if profile_image is not None:
                student.profile_image = profile_image

            session.commit()
            session.refresh(student)
            return student
        finally:
            session.close()

    def delete_student(self, student_id: int) -> None:
        """Soft-delete a student.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")
            student.deleted_at = datetime.now()
            session.commit()
            logger.info("Deleted student %s", student_id)
        finally:
            session.close()

    def list_student_registrations(self, student_id: int) -> list[Registration]:
        """List a student's non-canceled registrations, newest first.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            stmt = (
                select(Registration)
                .options(selectinload(Registration.course))
                .where(
                    Registration.student_id == student_id,
                    Registration.deleted_at.is_(None),
                )
                .order_by(Registration.created_at.desc(), Registration.id.desc())
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def list_student_certificates(self, student_id: int) -> list[Certificate]:
        """List certificates issued to a student.

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        session = self._db.get_session()
        try:
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            stmt = (
                select(Certificate)
                .join(Registration, Certificate.registration_id == Registration.id)
                .where(
                    Registration.student_id == student_id,
                    Certificate.deleted_at.is_(None),
                )
                .order_by(Certificate.issue_date.desc())
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Instructor Operations ---

    def create_instructor(
        self,
        name: str,
        email: str,
        user_id: int | None = None,
        phone: str | None = None,
        specialization: str | None = None,
        bio: str | None = None,
    ) -> Instructor:
        """Create an instructor profile.

        Raises:
            UserNotFoundError: If user_id doesn't exist
            UserExistsError: If the user already has an instructor profile
        """
        session = self._db.get_session()
        try:
            if user_id is not None and session.get(User, user_id) is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")

            instructor = Instructor(
                name=name,
                email=email,
                user_id=user_id,
                phone=phone,
                specialization=specialization,
                bio=bio,
            )
            session.add(instructor)
            session.commit()
            session.refresh(instructor)
            return instructor
        except IntegrityError as e:
            session.rollback()
            raise UserExistsError(f"User '{user_id}' already has an instructor profile") from e
        finally:
            session.close()

    def get_instructor(self, instructor_id: int) -> Instructor:
        """Get instructor by ID.

        Raises:
            InstructorNotFoundError: If instructor doesn't exist
        """
        session = self._db.get_session()
        try:
            instructor = session.get(Instructor, instructor_id)
            if instructor is None or instructor.deleted_at is not None:
                raise InstructorNotFoundError(f"Instructor with id '{instructor_id}' not found")
            return instructor
        finally:
            session.close()

    def update_instructor(
        self,
        instructor_id: int,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        specialization: str | None = None,
        bio: str | None = None,
    ) -> Instructor:
        """Update instructor fields. Only provided fields are updated.

        Raises:
            InstructorNotFoundError: If instructor doesn't exist
        """
        session = self._db.get_session()
        try:
            instructor = session.get(Instructor, instructor_id)
            if instructor is None or instructor.deleted_at is not None:
                raise InstructorNotFoundError(f"Instructor with id '{instructor_id}' not found")

            if name is not None:
                instructor.name = name
            if email is not None:
                instructor.email = email
            if phone is not None:
                instructor.phone = phone
            if specialization is not None:
                instructor.specialization = specialization
            if bio is not None:
                instructor.bio = bio

            session.commit()
            session.refresh(instructor)
            return instructor
        finally:
            session.close()

    def delete_instructor(self, instructor_id: int) -> None:
        """Soft-delete an instructor. Fails while they teach an open course.

        Raises:
            InstructorNotFoundError: If instructor doesn't exist
            InstructorHasActiveCoursesError: If assigned to an upcoming or active course
        """
        session = self._db.get_session()
        try:
            instructor = session.get(Instructor, instructor_id)
            if instructor is None or instructor.deleted_at is not None:
                raise InstructorNotFoundError(f"Instructor with id '{instructor_id}' not found")

            open_courses = session.execute(
                select(func.count(CourseInstructor.id))
                .join(Course, CourseInstructor.course_id == Course.id)
                .where(
                    CourseInstructor.instructor_id == instructor_id,
                    Course.status.in_(OPEN_COURSE_STATUSES),
                    Course.deleted_at.is_(None),
                )
            ).scalar_one()
            if open_courses:
                raise InstructorHasActiveCoursesError(
                    f"Instructor '{instructor_id}' teaches {open_courses} open course(s)"
                )

            instructor.deleted_at = datetime.now()
            session.commit()
            logger.info("Deleted instructor %s", instructor_id)
        finally:
            session.close()

    def list_instructor_courses(self, instructor_id: int) -> list[Course]:
        """List the courses an instructor is assigned to, soonest first.

        Raises:
            InstructorNotFoundError: If instructor doesn't exist
        """
        session = self._db.get_session()
        try:
            instructor = session.get(Instructor, instructor_id)
            if instructor is None or instructor.deleted_at is not None:
                raise InstructorNotFoundError(f"Instructor with id '{instructor_id}' not found")

            stmt = (
                select(Course)
                .join(CourseInstructor, CourseInstructor.course_id == Course.id)
                .where(
                    CourseInstructor.instructor_id == instructor_id,
                    Course.deleted_at.is_(None),
                )
                .order_by(Course.start_date, Course.id)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def assign_instructor(
        self, course_id: int, instructor_id: int, is_lead: bool = False
    ) -> CourseInstructor:
        """Assign an instructor to a course.

        Raises:
            CourseNotFoundError: If course doesn't exist
            InstructorNotFoundError: If instructor doesn't exist
            InstructorAlreadyAssignedError: If already assigned
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            instructor = session.get(Instructor, instructor_id)
            if instructor is None or instructor.deleted_at is not None:
                raise InstructorNotFoundError(f"Instructor with id '{instructor_id}' not found")

            link = CourseInstructor(
                course_id=course_id, instructor_id=instructor_id, is_lead=is_lead
            )
            session.add(link)
            session.commit()
            session.refresh(link)
            # Load the instructor before the session closes
            _ = link.instructor
            return link
        except IntegrityError as e:
            session.rollback()
            raise InstructorAlreadyAssignedError(
                f"Instructor '{instructor_id}' is already assigned to course '{course_id}'"
            ) from e
        finally:
            session.close()

    def list_course_instructors(self, course_id: int) -> list[CourseInstructor]:
        """List instructors assigned to a course, lead instructors first.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            stmt = (
                select(CourseInstructor)
                .options(selectinload(CourseInstructor.instructor))
                .join(Instructor, CourseInstructor.instructor_id == Instructor.id)
                .where(
                    CourseInstructor.course_id == course_id,
                    Instructor.deleted_at.is_(None),
                )
                .order_by(CourseInstructor.is_lead.desc(), CourseInstructor.id)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Course Operations ---

    def create_course(
        self,
        title_en: str,
        description_en: str,
        start_date: date,
        end_date: date,
        daily_start_time: time,
        daily_end_time: time,
        location_details: str,
        maximum_capacity: int,
        price: Decimal | float | int,
        category: str,
        title_bn: str | None = None,
        description_bn: str | None = None,
        featured_image: str | None = None,
    ) -> Course:
        """Create a new course in the upcoming state.

        Returns:
            Created Course object with current_enrollment 0

        Raises:
            InvalidCourseError: If dates, times, capacity or price are invalid
        """
        price = Decimal(str(price))
        _validate_course(
            start_date, end_date, daily_start_time, daily_end_time, maximum_capacity, price
        )

        session = self._db.get_session()
        try:
            course = Course(
                title_en=title_en,
                title_bn=title_bn,
                description_en=description_en,
                description_bn=description_bn,
                start_date=start_date,
                end_date=end_date,
                daily_start_time=daily_start_time,
                daily_end_time=daily_end_time,
                location_details=location_details,
                maximum_capacity=maximum_capacity,
                current_enrollment=0,
                price=price,
                status=CourseStatus.UPCOMING.value,
                featured_image=featured_image,
                category=category,
            )
            session.add(course)
            session.commit()
            session.refresh(course)
            logger.info("Created course %s (%s)", course.id, title_en)
            return course
        finally:
            session.close()

    def get_course(self, course_id: int) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If course doesn't exist or was deleted
        """
        session = self._db.get_session()
        try:
            return self._get_course(session, course_id)
        finally:
            session.close()

    def list_courses(
        self,
        status: CourseStatus | None = None,
        category: str | None = None,
        sort_by: str = "date_desc",
        limit: int = 10,
        offset: int = 0,
    ) -> list[Course]:
        """List courses with optional filters.

        Args:
            status: Filter by course status (optional)
            category: Filter by category (optional)
            sort_by: One of price_asc, price_desc, date_asc, date_desc
            limit: Max results to return
            offset: Offset for pagination

        Returns:
            List of non-deleted courses
        """
        session = self._db.get_session()
        try:
            stmt = select(Course).where(Course.deleted_at.is_(None))

            if status is not None:
                stmt = stmt.where(Course.status == status.value)
            if category is not None:
                stmt = stmt.where(Course.category == category)

            order = COURSE_SORTS.get(sort_by, COURSE_SORTS["date_desc"])
            stmt = stmt.order_by(order, Course.id).limit(limit).offset(offset)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def update_course(
        self,
        course_id: int,
        title_en: str | None = None,
        title_bn: str | None = None,
        description_en: str | None = None,
        description_bn: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        daily_start_time: time | None = None,
        daily_end_time: time | None = None,
        location_details: str | None = None,
        maximum_capacity: int | None = None,
        price: Decimal | float | int | None = None,
        category: str | None = None,
        featured_image: str | None = None,
    ) -> Course:
        """Update course fields. Only provided fields are updated.

        Status and enrollment are not editable here.

        Raises:
            CourseNotFoundError: If course doesn't exist
            InvalidCourseError: If the resulting course violates an invariant
        """
        session = self._db.get_session()
        try:
            course = self._get_course(session, course_id)

            new_price = Decimal(str(price)) if price is not None else course.price
            _validate_course(
                start_date or course.start_date,
                end_date or course.end_date,
                daily_start_time or course.daily_start_time,
                daily_end_time or course.daily_end_time,
                maximum_capacity if maximum_capacity is not None else course.maximum_capacity,
                new_price,
                current_enrollment=course.current_enrollment,
            )

            if title_en is not None:
                course.title_en = title_en
            if title_bn is not None:
                course.title_bn = title_bn
            if description_en is not None:
                course.description_en = description_en
            if description_bn is not None:
                course.description_bn = description_bn
            if start_date is not None:
                course.start_date = start_date
            if end_date is not None:
                course.end_date = end_date
            if daily_start_time is not None:
                course.daily_start_time = daily_start_time
            if daily_end_time is not None:
                course.daily_end_time = daily_end_time
            if location_details is not None:
                course.location_details = location_details
            if maximum_capacity is not None:
                course.maximum_capacity = maximum_capacity
            if price is not None:
                course.price = new_price
            if category is not None:
                course.category = category
            if featured_image is not None:
                course.featured_image = featured_image

            session.commit()
            session.refresh(course)
            return course
        finally:
            session.close()

    def publish_course(self, course_id: int) -> Course:
        """Move an upcoming course to active.

        Raises:
            CourseNotFoundError: If course doesn't exist
            CourseTransitionError: If the course is not upcoming
        """
        return self._transition_course(course_id, (CourseStatus.UPCOMING,), CourseStatus.ACTIVE)

    def cancel_course(self, course_id: int) -> Course:
        """Cancel a course that has not been completed.

        Raises:
            CourseNotFoundError: If course doesn't exist
            CourseTransitionError: If the course is completed or already canceled
        """
        return self._transition_course(
            course_id, (CourseStatus.UPCOMING, CourseStatus.ACTIVE), CourseStatus.CANCELED
        )

    def complete_course(self, course_id: int) -> Course:
        """Mark a running course as completed.

        Raises:
            CourseNotFoundError: If course doesn't exist
            CourseTransitionError: If the course is canceled or already completed
        """
        return self._transition_course(
            course_id, (CourseStatus.UPCOMING, CourseStatus.ACTIVE), CourseStatus.COMPLETED
        )

    def delete_course(self, course_id: int) -> None:
        """Soft-delete a course. Fails while students are enrolled.

        Raises:
            CourseNotFoundError: If course doesn't exist
            CourseHasEnrollmentsError: If current_enrollment > 0
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            # Guarded so a concurrent registration cannot slip in
            result = session.execute(
                update(Course)
                .where(
                    Course.id == course_id,
                    Course.deleted_at.is_(None),
                    Course.current_enrollment == 0,
                )
                .values(deleted_at=datetime.now())
            )
            if result.rowcount != 1:
                raise CourseHasEnrollmentsError(
                    f"Course '{course_id}' has enrolled students and cannot be deleted"
                )
            session.commit()
            logger.info("Deleted course %s", course_id)
        finally:
            session.close()

    def list_course_students(self, course_id: int) -> list[Student]:
        """List students with a non-canceled registration for a course.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            stmt = (
                select(Student)
                .join(Registration, Registration.student_id == Student.id)
                .where(
                    Registration.course_id == course_id,
                    Registration.deleted_at.is_(None),
                )
                .order_by(Student.name)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def count_active_registrations(self, course_id: int) -> int:
        """Count non-canceled registrations for a course."""
        session = self._db.get_session()
        try:
            stmt = select(func.count(Registration.id)).where(
                Registration.course_id == course_id,
                Registration.deleted_at.is_(None),
            )
            return session.execute(stmt).scalar_one()
        finally:
            session.close()

    # --- Recipe Operations ---

    def create_recipe(
        self,
        name_en: str,
        description_en: str,
        ingredients: list[dict[str, Any]],
        instructions: list[dict[str, Any]],
        preparation_time: int,
        difficulty_level: DifficultyLevel,
        name_bn: str | None = None,
        description_bn: str | None = None,
    ) -> Recipe:
        """Create a recipe.

        Args:
            name_en: English name
            description_en: English description
            ingredients: Ordered [{"name", "quantity"}] records
            instructions: Ordered [{"step_text"}] records
            preparation_time: Minutes, must be positive
            difficulty_level: Recipe difficulty
            name_bn: Bengali name
            description_bn: Bengali description

        Returns:
            Created Recipe object
        """
        session = self._db.get_session()
        try:
            recipe = Recipe(
                name_en=name_en,
                name_bn=name_bn,
                description_en=description_en,
                description_bn=description_bn,
                ingredients=ingredients,
                instructions=instructions,
                preparation_time=preparation_time,
                difficulty_level=DifficultyLevel(difficulty_level).value,
            )
            session.add(recipe)
            session.commit()
            session.refresh(recipe)
            # Populate the empty images collection before the session closes
            _ = recipe.images
            return recipe
        finally:
            session.close()

    def get_recipe(self, recipe_id: int) -> Recipe:
        """Get recipe by ID, with its images loaded.

        Raises:
            RecipeNotFoundError: If recipe doesn't exist
        """
        session = self._db.get_session()
        try:
            stmt = (
                select(Recipe)
                .options(selectinload(Recipe.images))
                .where(Recipe.id == recipe_id, Recipe.deleted_at.is_(None))
            )
            recipe = session.execute(stmt).scalar_one_or_none()
            if recipe is None:
                raise RecipeNotFoundError(f"Recipe with id '{recipe_id}' not found")
            return recipe
        finally:
            session.close()

    def update_recipe(
        self,
        recipe_id: int,
        name_en: str | None = None,
        name_bn: str | None = None,
        description_en: str | None = None,
        description_bn: str | None = None,
        ingredients: list[dict[str, Any]] | None = None,
        instructions: list[dict[str, Any]] | None = None,
        preparation_time: int | None = None,
        difficulty_level: DifficultyLevel | None = None,
    ) -> Recipe:
        """Update recipe fields. Only provided fields are updated.

        Ingredients and instructions are replaced as whole lists.

        Raises:
            RecipeNotFoundError: If recipe doesn't exist
        """
        session = self._db.get_session()
        try:
            stmt = (
                select(Recipe)
                .options(selectinload(Recipe.images))
                .where(Recipe.id == recipe_id, Recipe.deleted_at.is_(None))
            )
            recipe = session.execute(stmt).scalar_one_or_none()
            if recipe is None:
                raise RecipeNotFoundError(f"Recipe with id '{recipe_id}' not found")

            if name_en is not None:
                recipe.name_en = name_en
            if name_bn is not None:
                recipe.name_bn = name_bn
            if description_en is not None:
                recipe.description_en = description_en
            if description_bn is not None:
                recipe.description_bn = description_bn
            if ingredients is not None:
                recipe.ingredients = ingredients
            if instructions is not None:
                recipe.instructions = instructions
            if preparation_time is not None:
                recipe.preparation_time = preparation_time
            if difficulty_level is not None:
                recipe.difficulty_level = DifficultyLevel(difficulty_level).value

            session.commit()
            session.refresh(recipe)
            _ = recipe.images
            return recipe
        finally:
            session.close()

    def delete_recipe(self, recipe_id: int) -> list[str]:
        """Soft-delete a recipe and drop its image records.

        Returns:
            Stored paths of the removed images, for the caller to delete.

        Raises:
            RecipeNotFoundError: If recipe doesn't exist
        """
        session = self._db.get_session()
        try:
            recipe = session.get(Recipe, recipe_id)
            if recipe is None or recipe.deleted_at is not None:
                raise RecipeNotFoundError(f"Recipe with id '{recipe_id}' not found")

            image_paths = [image.image_path for image in recipe.images]
            recipe.images.clear()
            recipe.deleted_at = datetime.now()
            session.commit()
            logger.info("Deleted recipe %s (%d images)", recipe_id, len(image_paths))
            return image_paths
        finally:
            session.close()

    def list_recipes(
        self,
        difficulty_level: DifficultyLevel | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Recipe]:
        """List recipes ordered by name."""
        session = self._db.get_session()
        try:
            stmt = (
                select(Recipe)
                .options(selectinload(Recipe.images))
                .where(Recipe.deleted_at.is_(None))
            )
            if difficulty_level is not None:
                stmt = stmt.where(Recipe.difficulty_level == difficulty_level.value)
            stmt = stmt.order_by(Recipe.name_en, Recipe.id).limit(limit).offset(offset)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def attach_recipe(
        self, course_id: int, recipe_id: int, day_number: int | None = None
    ) -> CourseRecipe:
        """Add a recipe to a course's syllabus.

        Raises:
            CourseNotFoundError: If course doesn't exist
            RecipeNotFoundError: If recipe doesn't exist
            RecipeAlreadyAttachedError: If the recipe is already attached
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            recipe = session.get(Recipe, recipe_id)
            if recipe is None or recipe.deleted_at is not None:
                raise RecipeNotFoundError(f"Recipe with id '{recipe_id}' not found")

            link = CourseRecipe(course_id=course_id, recipe_id=recipe_id, day_number=day_number)
            session.add(link)
            session.commit()
            session.refresh(link)
            _ = link.recipe.images
            return link
        except IntegrityError as e:
            session.rollback()
            raise RecipeAlreadyAttachedError(
                f"Recipe '{recipe_id}' is already attached to course '{course_id}'"
            ) from e
        finally:
            session.close()

    def list_course_recipes(self, course_id: int) -> list[CourseRecipe]:
        """List a course's recipes ordered by day.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            stmt = (
                select(CourseRecipe)
                .options(selectinload(CourseRecipe.recipe).selectinload(Recipe.images))
                .join(Recipe, CourseRecipe.recipe_id == Recipe.id)
                .where(CourseRecipe.course_id == course_id, Recipe.deleted_at.is_(None))
                .order_by(
                    CourseRecipe.day_number.is_(None), CourseRecipe.day_number, CourseRecipe.id
                )
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def add_recipe_image(
        self, recipe_id: int, image_path: str, is_primary: bool = False
    ) -> RecipeImage:
        """Attach an image to a recipe.

        Marking the image primary clears the flag on the recipe's other images.

        Raises:
            RecipeNotFoundError: If recipe doesn't exist
        """
        session = self._db.get_session()
        try:
            recipe = session.get(Recipe, recipe_id)
            if recipe is None or recipe.deleted_at is not None:
                raise RecipeNotFoundError(f"Recipe with id '{recipe_id}' not found")

            if is_primary:
                session.execute(
                    update(RecipeImage)
                    .where(RecipeImage.recipe_id == recipe_id)
                    .values(is_primary=False)
                )
            display_order = session.execute(
                select(func.count(RecipeImage.id)).where(RecipeImage.recipe_id == recipe_id)
            ).scalar_one()

            image = RecipeImage(
                recipe_id=recipe_id,
                image_path=image_path,
                is_primary=is_primary,
                display_order=display_order,
            )
            session.add(image)
            session.commit()
            session.refresh(image)
            return image
        finally:
            session.close()

    # --- Registration reads ---

    def get_registration(self, registration_id: int) -> Registration:
        """Get a non-canceled registration by ID.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist or was canceled
        """
        session = self._db.get_session()
        try:
            registration = session.get(Registration, registration_id)
            if registration is None or registration.deleted_at is not None:
                raise RegistrationNotFoundError(
                    f"Registration with id '{registration_id}' not found"
                )
            return registration
        finally:
            session.close()

    # --- Attendance Operations ---

    def record_attendance(
        self, registration_id: int, attended_on: date, present: bool
    ) -> AttendanceRecord:
        """Record attendance for a registration on a day.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
            AttendanceExistsError: If attendance for that day is already recorded
        """
        session = self._db.get_session()
        try:
            registration = session.get(Registration, registration_id)
            if registration is None or registration.deleted_at is not None:
                raise RegistrationNotFoundError(
                    f"Registration with id '{registration_id}' not found"
                )

            record = AttendanceRecord(
                registration_id=registration_id, date=attended_on, present=present
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
        except IntegrityError as e:
            session.rollback()
            raise AttendanceExistsError(
                f"Attendance for registration '{registration_id}' on {attended_on} "
                "is already recorded"
            ) from e
        finally:
            session.close()

    def list_course_attendance(self, course_id: int) -> list[CourseAttendance]:
        """Attendance sheet for a course: one row per active registration.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        session = self._db.get_session()
        try:
            self._get_course(session, course_id)
            stmt = (
                select(Registration)
                .options(
                    selectinload(Registration.student),
                    selectinload(Registration.attendance_records),
                )
                .where(
                    Registration.course_id == course_id,
                    Registration.deleted_at.is_(None),
                )
                .order_by(Registration.id)
            )
            registrations = session.execute(stmt).scalars().all()
            return [
                CourseAttendance(
                    registration_id=r.id,
                    student_id=r.student_id,
                    student_name=r.student.name,
                    records=sorted(r.attendance_records, key=lambda a: a.date, reverse=True),
                )
                for r in registrations
            ]
        finally:
            session.close()

    # --- Helpers ---

    @staticmethod
    def _get_course(session: Any, course_id: int) -> Course:
        course = session.get(Course, course_id)
        if course is None or course.deleted_at is not None:
            raise CourseNotFoundError(f"Course with id '{course_id}' not found")
        return course

    def _transition_course(
        self,
        course_id: int,
        allowed_from: tuple[CourseStatus, ...],
        target: CourseStatus,
    ) -> Course:
        session = self._db.get_session()
        try:
            course = self._get_course(session, course_id)
            if course.course_status not in allowed_from:
                raise CourseTransitionError(
                    f"Course '{course_id}' cannot move from {course.status} to {target.value}"
                )
            course.status = target.value
            session.commit()
            session.refresh(course)
            logger.info("Course %s is now %s", course_id, target.value)
            return course
        finally:
            session.close()
