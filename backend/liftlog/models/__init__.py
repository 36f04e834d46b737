from liftlog.models.exercise import Exercise, MUSCLE_GROUPS
from liftlog.models.session import WorkoutSession
from liftlog.models.workout_exercise import WorkoutExercise
from liftlog.models.workout_set import WorkoutSet
from liftlog.models.user_profile import UserProfile
from liftlog.models.chat_message import ChatMessage, MessageRole

__all__ = [
    "Exercise",
    "MUSCLE_GROUPS",
    "WorkoutSession",
    "WorkoutExercise",
    "WorkoutSet",
    "UserProfile",
    "ChatMessage",
    "MessageRole",
]
