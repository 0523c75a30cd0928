"""
Unit tests for question creation.
"""

import pytest
from sqlalchemy import func, select

from pathengine.db.database import read_scope
from pathengine.db.models import Question, QuestionGeneral, QuestionMessage, QuestionSpecific
from pathengine.errors import InvalidReferenceError, InvalidRelationError, NetworkError, NotFoundError
from pathengine.references import ExternalPathRef, ExternalRef, LocalPathRef, LocalRef


def _count(session_factory, model):
    with read_scope(session_factory) as session:
        return session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def classroom(local_path, make_assignment, make_team):
    """Assignment on ``local_path`` with one team of students 1 and 2."""
    assignment_id = make_assignment(local_path.id)
    team_id = make_team([1, 2], assignment_id=assignment_id)
    return assignment_id, team_id


class TestSpecificQuestions:
    def test_local_object_question(self, context, classroom, make_object, session_factory):
        assignment_id, team_id = classroom
        obj = make_object()

        question = context.questions.create_specific_question(
            assignment_id, team_id, 1, "Stuck", "What is a variable?", LocalRef(obj.id)
        )

        assert question.type == "SPECIFIC"
        with read_scope(session_factory) as session:
            link = session.get(QuestionSpecific, question.id)
            assert link.reference == LocalRef(obj.id)
            message = session.scalar(select(QuestionMessage))
            assert (message.user_id, message.text) == (1, "What is a variable?")

    def test_catalog_object_question(self, context, classroom, session_factory):
        assignment_id, team_id = classroom
        question = context.questions.create_specific_question(
            assignment_id, team_id, 2, "Loops", "Why?", ExternalRef("pn_werking", "nl", 3)
        )
        with read_scope(session_factory) as session:
            assert session.get(QuestionSpecific, question.id).reference.is_external

    def test_path_must_match_assignment(self, context, classroom, make_object, session_factory):
        assignment_id, team_id = classroom
        with pytest.raises(InvalidRelationError):
            context.questions.create_specific_question(
                assignment_id, team_id, 1, "t", "x", LocalRef(make_object().id),
                learning_path_id="other-path",
            )
        assert _count(session_factory, Question) == 0

    def test_student_outside_team(self, context, classroom, make_object):
        assignment_id, team_id = classroom
        with pytest.raises(InvalidRelationError):
            context.questions.create_specific_question(
                assignment_id, team_id, 99, "t", "x", LocalRef(make_object().id)
            )

    def test_unknown_assignment(self, context, classroom, make_object):
        _assignment_id, team_id = classroom
        with pytest.raises(NotFoundError):
            context.questions.create_specific_question(
                404, team_id, 1, "t", "x", LocalRef(make_object().id)
            )

    def test_invalid_reference_writes_nothing(self, context, classroom, session_factory):
        assignment_id, team_id = classroom
        with pytest.raises(NotFoundError):
            context.questions.create_specific_question(
                assignment_id, team_id, 1, "t", "x", ExternalRef("pn_verdwenen", "nl", 1)
            )
        assert _count(session_factory, Question) == 0
        assert _count(session_factory, QuestionMessage) == 0

    def test_catalog_down_writes_nothing(self, context, classroom, fake_catalog, session_factory):
        assignment_id, team_id = classroom
        fake_catalog.fail_with = 500
        with pytest.raises(NetworkError):
            context.questions.create_specific_question(
                assignment_id, team_id, 1, "t", "x", ExternalRef("pn_werking", "nl", 3)
            )
        assert _count(session_factory, Question) == 0

    def test_malformed_reference(self, context, classroom):
        assignment_id, team_id = classroom
        with pytest.raises(InvalidReferenceError):
            context.questions.create_specific_question(
                assignment_id, team_id, 1, "t", "x", {"object_id": "x"}
            )


class TestGeneralQuestions:
    def test_local_path_question(self, context, classroom, local_path, session_factory):
        assignment_id, team_id = classroom
        question = context.questions.create_general_question(
            assignment_id, team_id, 1, "Path", "Where do I start?", LocalPathRef(local_path.id)
        )

        assert question.type == "GENERAL"
        with read_scope(session_factory) as session:
            link = session.get(QuestionGeneral, question.id)
            assert (link.path_ref, link.is_external, link.catalog_language) == (local_path.id, False, None)

    def test_catalog_path_question(self, context, classroom, session_factory):
        assignment_id, team_id = classroom
        question = context.questions.create_general_question(
            assignment_id, team_id, 2, "Path", "?", ExternalPathRef("pn_basis", "nl")
        )
        with read_scope(session_factory) as session:
            link = session.get(QuestionGeneral, question.id)
            assert (link.path_ref, link.is_external, link.catalog_language) == ("pn_basis", True, "nl")

    def test_unknown_catalog_path(self, context, classroom, session_factory):
        assignment_id, team_id = classroom
        with pytest.raises(NotFoundError):
            context.questions.create_general_question(
                assignment_id, team_id, 1, "Path", "?", ExternalPathRef("pn_basis", "fr")
            )
        assert _count(session_factory, Question) == 0
