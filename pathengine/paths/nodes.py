"""
Path node graph manager.

Owns every write to ``learning_path_nodes``. Creates and deletes run as
one transaction that locks the path row, mutates the node and recounts
``num_nodes`` from the actual rows, so the cached count never drifts.
References are validated before that transaction opens; no transaction
is held while waiting on the catalog.
"""
from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from pathengine.content.records import NodeRecord
from pathengine.content.validator import ReferenceValidator
from pathengine.db.database import SessionFactory, read_scope, session_scope
from pathengine.db.models import LearningObject, LearningPath, LearningPathNode
from pathengine.db.queries import count_path_nodes, lock_path, recount_path_nodes
from pathengine.errors import InvalidReferenceError, InvalidRelationError, NotFoundError
from pathengine.references import ContentReference, ExternalRef, LocalRef


class PathNodeManager:
    """Create, update, delete and list the nodes of local learning paths."""

    def __init__(self, session_factory: SessionFactory, validator: ReferenceValidator):
        self._factory = session_factory
        self.validator = validator
        # One lock per path id; paths never wait on each other
        self._path_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def _serialized(self, path_id: str) -> Iterator[None]:
        """
        Serialize mutators of one path inside this process.

        The row lock taken by ``lock_path`` does the same across processes
        on backends that support SELECT ... FOR UPDATE.
        """
        with self._registry_lock:
            lock = self._path_locks.setdefault(path_id, threading.Lock())
        with lock:
            yield

    def _require_path(self, path_id: str) -> None:
        with read_scope(self._factory) as session:
            if session.get(LearningPath, path_id) is None:
                raise NotFoundError(f"Learning path {path_id} not found")

    @staticmethod
    def _check_reference(reference: object) -> None:
        if not isinstance(reference, (LocalRef, ExternalRef)):
            raise InvalidReferenceError(f"Unsupported content reference: {reference!r}")

    @staticmethod
    def _get_owned_node(session: Session, path_id: str, node_id: str) -> LearningPathNode:
        node = session.get(LearningPathNode, node_id)
        if node is None:
            raise NotFoundError(f"Node {node_id} not found")
        if node.learning_path_id != path_id:
            raise InvalidRelationError(f"Node {node_id} does not belong to path {path_id}")
        return node

    @staticmethod
    def _recheck_local(session: Session, reference: ContentReference) -> None:
        # The object may have been deleted since validation
        if isinstance(reference, LocalRef) and session.get(LearningObject, reference.object_id) is None:
            raise NotFoundError(f"Local learning object {reference.object_id} not found")

    # ========================================
    # Mutations
    # ========================================

    def create_node(
        self,
        path_id: str,
        reference: ContentReference,
        start_node: bool = False,
    ) -> NodeRecord:
        """
        Attach a new node to a path.

        Args:
            path_id: Local path id (ownership already checked by the caller)
            reference: What the node points at
            start_node: Mark the node as a start node

        Returns:
            The committed node

        Raises:
            InvalidReferenceError: ``reference`` is malformed
            NotFoundError: Path or referenced object does not exist
            NetworkError: Catalog validation failed
        """
        self._check_reference(reference)
        self._require_path(path_id)
        self.validator.validate(reference)

        with self._serialized(path_id), session_scope(self._factory) as session:
            if lock_path(session, path_id) is None:
                raise NotFoundError(f"Learning path {path_id} not found")
            self._recheck_local(session, reference)

            node = LearningPathNode(learning_path_id=path_id, start_node=start_node)
            node.set_reference(reference)
            session.add(node)
            num_nodes = recount_path_nodes(session, path_id)
            record = NodeRecord.from_model(node)

        logger.info(
            f"Created node {record.node_id} on path {path_id} "
            f"({reference.describe()}), num_nodes={num_nodes}"
        )
        return record

    def update_node(
        self,
        path_id: str,
        node_id: str,
        reference: ContentReference | None = None,
        start_node: bool | None = None,
    ) -> NodeRecord:
        """
        Swap a node's reference and/or start flag.

        A new reference is validated before the old one is overwritten;
        every field of the previous variant is cleared. The node count is
        unchanged.
        """
        if reference is not None:
            self._check_reference(reference)
        with read_scope(self._factory) as session:
            self._get_owned_node(session, path_id, node_id)
        if reference is not None:
            self.validator.validate(reference)

        with self._serialized(path_id), session_scope(self._factory) as session:
            node = self._get_owned_node(session, path_id, node_id)
            if reference is not None:
                self._recheck_local(session, reference)
                node.set_reference(reference)
            if start_node is not None:
                node.start_node = start_node
            session.flush()
            record = NodeRecord.from_model(node)

        logger.info(f"Updated node {node_id} on path {path_id}")
        return record

    def delete_node(self, path_id: str, node_id: str) -> int:
        """
        Remove a node and recount its path.

        Returns:
            The path's new ``num_nodes``
        """
        with self._serialized(path_id), session_scope(self._factory) as session:
            if lock_path(session, path_id) is None:
                raise NotFoundError(f"Learning path {path_id} not found")
            node = self._get_owned_node(session, path_id, node_id)
            session.delete(node)
            num_nodes = recount_path_nodes(session, path_id)

        logger.info(f"Deleted node {node_id} from path {path_id}, num_nodes={num_nodes}")
        return num_nodes

    # ========================================
    # Reads
    # ========================================

    def list_nodes(self, path_id: str) -> list[NodeRecord]:
        """Nodes of a path in creation order."""
        with read_scope(self._factory) as session:
            if session.get(LearningPath, path_id) is None:
                raise NotFoundError(f"Learning path {path_id} not found")
            nodes = session.scalars(
                select(LearningPathNode)
                .where(LearningPathNode.learning_path_id == path_id)
                .order_by(LearningPathNode.created_at, LearningPathNode.node_id)
            )
            return [NodeRecord.from_model(node) for node in nodes]

    def count_nodes(self, path_id: str) -> int:
        with read_scope(self._factory) as session:
            return count_path_nodes(session, path_id)

    def local_object_ids(self, path_id: str) -> set[str]:
        """Distinct local object ids referenced by a path's nodes."""
        with read_scope(self._factory) as session:
            return set(session.scalars(
                select(LearningPathNode.local_learning_object_id).where(
                    LearningPathNode.learning_path_id == path_id,
                    LearningPathNode.is_external.is_(False),
                )
            ))
