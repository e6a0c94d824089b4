from fastapi import HTTPException, status


class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class WorkoutNotFoundException(NotFoundException):
    def __init__(self, workout_id: int):
        super().__init__(detail=f"Workout with id={workout_id} not found")


class WorkoutExerciseNotFoundException(NotFoundException):
    def __init__(self, workout_exercise_id: int):
        super().__init__(detail=f"Workout exercise with id={workout_exercise_id} not found")


class SetNotFoundException(NotFoundException):
    def __init__(self, set_id: int):
        super().__init__(detail=f"Set with id={set_id} not found")


class TemplateNotFoundException(NotFoundException):
    def __init__(self, template_id: int):
        super().__init__(detail=f"Workout template with id={template_id} not found")


class ExerciseNotFoundException(NotFoundException):
    def __init__(self, exercise_id: int):
        super().__init__(detail=f"Exercise with id={exercise_id} not found")


class ProgressionNotFoundException(NotFoundException):
    def __init__(self, exercise_id: int):
        super().__init__(detail=f"No completed history for exercise id={exercise_id}")


class WorkoutStateException(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
