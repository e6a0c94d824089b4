from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .schemas.enums import ExerciseType, ProgressionRecommendation, WeightUnit, WorkoutStatus


class Workout(Base):
    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    template_id = Column(Integer, nullable=True, index=True)

    status = Column(String(32), nullable=False, default=WorkoutStatus.IN_PROGRESS.value, index=True)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    # Derived at completion
    total_calories_burned = Column(Integer, nullable=True)
    total_active_time = Column(Integer, nullable=True)
    total_rest_time = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="WorkoutExercise.order_index",
    )

    def __repr__(self):
        return "<Workout(id=%s, user_id='%s', status=%s)>" % (self.id, self.user_id, self.status)


class WorkoutExercise(Base):
    __tablename__ = "workout_exercises"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    workout_id = Column(Integer, ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False, default=0)

    target_sets = Column(Integer, nullable=False, default=3)
    target_reps = Column(Integer, nullable=False, default=10)
    target_duration_minutes = Column(Float, nullable=True)
    target_distance_miles = Column(Float, nullable=True)
    suggested_weight = Column(Float, nullable=True)
    rest_between_sets = Column(Integer, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    workout = relationship("Workout", back_populates="exercises")
    exercise = relationship("Exercise")
    sets = relationship(
        "WorkoutSet",
        back_populates="workout_exercise",
        cascade="all, delete-orphan",
        order_by="WorkoutSet.set_number",
    )


class WorkoutSet(Base):
    __tablename__ = "workout_sets"

    id = Column(Integer, primary_key=True, index=True)
    workout_exercise_id = Column(
        Integer, ForeignKey("workout_exercises.id", ondelete="CASCADE"), nullable=False, index=True
    )
    set_number = Column(Integer, nullable=False)

    # Strength
    reps = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)
    rpe = Column(Float, nullable=True)

    # Cardio
    duration_minutes = Column(Float, nullable=True)
    distance_miles = Column(Float, nullable=True)
    calories_burned = Column(Integer, nullable=True)

    completed = Column(Boolean, nullable=False, default=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    workout_exercise = relationship("WorkoutExercise", back_populates="sets")


class ExerciseProgression(Base):
    __tablename__ = "exercise_progressions"
    __table_args__ = (UniqueConstraint("user_id", "exercise_id", name="uq_exercise_progressions_user_exercise"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False)
    last_workout_id = Column(Integer, nullable=True)
    avg_weight = Column(Float, nullable=False, default=0.0)
    avg_reps = Column(Float, nullable=False, default=0.0)
    recommendation = Column(String(32), nullable=False, default=ProgressionRecommendation.MAINTAIN.value)
    recommendation_details = Column(String, nullable=False, default="")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    exercise = relationship("Exercise")


# Collaborator tables: the exercise library, user body metrics and templates are
# managed elsewhere; this service only reads them (and writes templates on save).


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, index=True)
    # NULL for the shared library, otherwise a user's custom exercise
    user_id = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(16), nullable=False, default=ExerciseType.STRENGTH.value)
    met_value = Column(Float, nullable=True)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(255), primary_key=True)
    weight = Column(Float, nullable=True)
    weight_unit = Column(String(8), nullable=False, default=WeightUnit.LBS.value)


class WorkoutTemplate(Base):
    __tablename__ = "workout_templates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    color = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    exercises = relationship(
        "TemplateExercise",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateExercise.order_index",
    )

    def __repr__(self) -> str:
        return f"<WorkoutTemplate(id={self.id}, name='{self.name}', user_id='{self.user_id}')>"


class TemplateExercise(Base):
    __tablename__ = "template_exercises"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("workout_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    target_sets = Column(Integer, nullable=True)
    target_reps = Column(Integer, nullable=True)
    rest_between_sets = Column(Integer, nullable=True)
    target_duration_minutes = Column(Float, nullable=True)
    target_distance_miles = Column(Float, nullable=True)
    notes = Column(String, nullable=True)

    template = relationship("WorkoutTemplate", back_populates="exercises")
    exercise = relationship("Exercise")
