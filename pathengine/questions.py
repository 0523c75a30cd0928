"""
Student questions pinned to a learning object or a learning path.

Every check (assignment, team membership, path match, reference
existence) runs before anything is written. The question, its first
message and its content link are then written in one transaction.
"""
from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from pathengine.content.validator import ReferenceValidator
from pathengine.db.database import SessionFactory, session_scope
from pathengine.db.models import Question, QuestionGeneral, QuestionMessage, QuestionSpecific
from pathengine.errors import InvalidReferenceError, InvalidRelationError
from pathengine.progress.directory import TeamDirectory
from pathengine.references import (
    ContentReference,
    ExternalPathRef,
    ExternalRef,
    LocalPathRef,
    LocalRef,
    PathReference,
)

SPECIFIC = "SPECIFIC"
GENERAL = "GENERAL"


@dataclass(frozen=True)
class QuestionRecord:
    id: int
    assignment_id: int
    team_id: int
    title: str
    type: str


class QuestionService:
    """Create questions after validating everything they point at."""

    def __init__(
        self,
        session_factory: SessionFactory,
        validator: ReferenceValidator,
        directory: TeamDirectory,
    ):
        self._factory = session_factory
        self.validator = validator
        self.directory = directory

    def _check_parties(
        self,
        assignment_id: int,
        team_id: int,
        student_id: int,
        learning_path_id: str | None,
    ) -> None:
        path_id = self.directory.assignment_path_id(assignment_id)
        if student_id not in self.directory.team_members(team_id):
            raise InvalidRelationError(f"Student {student_id} is not a member of team {team_id}")
        if learning_path_id is not None and learning_path_id != path_id:
            raise InvalidRelationError(
                f"Path {learning_path_id} is not the path of assignment {assignment_id}"
            )

    def _write(
        self,
        assignment_id: int,
        team_id: int,
        student_id: int,
        title: str,
        text: str,
        kind: str,
        link: QuestionSpecific | QuestionGeneral,
    ) -> QuestionRecord:
        with session_scope(self._factory) as session:
            question = Question(
                assignment_id=assignment_id, team_id=team_id, title=title, type=kind
            )
            question.messages.append(QuestionMessage(user_id=student_id, text=text))
            if kind == SPECIFIC:
                question.specific = link
            else:
                question.general = link
            session.add(question)
            session.flush()
            record = QuestionRecord(question.id, assignment_id, team_id, title, kind)
        logger.info(f"Student {student_id} asked {kind.lower()} question {record.id}")
        return record

    def create_specific_question(
        self,
        assignment_id: int,
        team_id: int,
        student_id: int,
        title: str,
        text: str,
        reference: ContentReference,
        learning_path_id: str | None = None,
    ) -> QuestionRecord:
        """
        Ask a question about one learning object.

        Raises:
            NotFoundError: Unknown assignment, team or referenced object
            InvalidRelationError: Student not in team, or path mismatch
            InvalidReferenceError: ``reference`` is malformed
            NetworkError: Catalog validation failed
        """
        if not isinstance(reference, (LocalRef, ExternalRef)):
            raise InvalidReferenceError(f"Unsupported content reference: {reference!r}")
        self._check_parties(assignment_id, team_id, student_id, learning_path_id)
        self.validator.validate(reference)

        link = QuestionSpecific()
        link.set_reference(reference)
        return self._write(assignment_id, team_id, student_id, title, text, SPECIFIC, link)

    def create_general_question(
        self,
        assignment_id: int,
        team_id: int,
        student_id: int,
        title: str,
        text: str,
        path_reference: PathReference,
    ) -> QuestionRecord:
        """Ask a question about a whole learning path."""
        if isinstance(path_reference, LocalPathRef):
            link = QuestionGeneral(path_ref=path_reference.path_id, is_external=False)
        elif isinstance(path_reference, ExternalPathRef):
            link = QuestionGeneral(
                path_ref=path_reference.hruid,
                is_external=True,
                catalog_language=path_reference.language,
            )
        else:
            raise InvalidReferenceError(f"Unsupported path reference: {path_reference!r}")
        self._check_parties(assignment_id, team_id, student_id, None)
        self.validator.validate_path(path_reference)
        return self._write(assignment_id, team_id, student_id, title, text, GENERAL, link)
