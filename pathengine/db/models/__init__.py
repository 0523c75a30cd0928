# SQLAlchemy models
from .base import Base
from .classroom import (
    Assignment,
    Team,
    TeamAssignment,
    TeamMember,
)
from .content import (
    ContentReferenceMixin,
    LearningObject,
    LearningPath,
    LearningPathNode,
)
from .progress import LearningObjectProgress
from .questions import (
    Question,
    QuestionGeneral,
    QuestionMessage,
    QuestionSpecific,
)

__all__ = [
    # Base
    "Base",
    # Local content store
    "ContentReferenceMixin",
    "LearningObject",
    "LearningPath",
    "LearningPathNode",
    # Progress
    "LearningObjectProgress",
    # Teams & assignments
    "Assignment",
    "Team",
    "TeamAssignment",
    "TeamMember",
    # Questions
    "Question",
    "QuestionGeneral",
    "QuestionMessage",
    "QuestionSpecific",
]
