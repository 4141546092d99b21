# tests/test_access_evaluator.py

"""
Tests for the access evaluator: ownership, grants, tie-breaks, disabled
properties, idempotence and the single base-relation read.
"""
import ast
import inspect
import uuid

import pytest
from sqlalchemy import event

import services.access_evaluator as access_evaluator_module
from models import Property, PropertyGrant
from models.property_grant import GrantRole, GrantStatus
from services.access_evaluator import AccessEvaluator, PropertyAccess
from services.errors import MalformedIdentifierError


def _accept_invite(workflow, owner_id, property_id, user_id, role):
    grant = workflow.invite(owner_id, property_id, role, invitee_user_id=user_id)
    return workflow.accept(user_id, grant.id)


def test_creator_owns_new_property(db, workflow, owner_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")

    assert AccessEvaluator(db).accessible_properties(owner_id) == {
        PropertyAccess(prop.id, GrantRole.OWNER)
    }


def test_pending_grant_gives_no_access(db, workflow, owner_id, viewer_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")
    workflow.invite(owner_id, prop.id, GrantRole.VIEWER, invitee_user_id=viewer_id)

    evaluator = AccessEvaluator(db)
    assert evaluator.accessible_properties(viewer_id) == frozenset()
    assert evaluator.role_for(viewer_id, prop.id) is None


def test_active_grant_gives_its_role(db, workflow, owner_id, viewer_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")
    _accept_invite(workflow, owner_id, prop.id, viewer_id, GrantRole.LEASING_AGENT)

    evaluator = AccessEvaluator(db)
    assert evaluator.role_for(viewer_id, prop.id) == GrantRole.LEASING_AGENT
    assert evaluator.has_access(viewer_id, prop.id)


def test_landlord_ownership_beats_weaker_grant(db, owner_id):
    # Legacy row: landlord set, but only a VIEWER grant in the store
    prop = Property(id=uuid.uuid4(), property_name="Legacy Tower", landlord_id=owner_id)
    db.add(prop)
    db.add(PropertyGrant(
        property_id=prop.id,
        user_id=owner_id,
        role=GrantRole.VIEWER,
        status=GrantStatus.ACTIVE,
    ))
    db.flush()

    evaluator = AccessEvaluator(db)
    assert evaluator.role_for(owner_id, prop.id) == GrantRole.OWNER
    assert evaluator.accessible_properties(owner_id) == {PropertyAccess(prop.id, GrantRole.OWNER)}


def test_owner_grant_without_landlord_is_owner(db, workflow, owner_id, viewer_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")
    _accept_invite(workflow, owner_id, prop.id, viewer_id, GrantRole.OWNER)

    assert AccessEvaluator(db).role_for(viewer_id, prop.id) == GrantRole.OWNER


def test_disabled_property_is_invisible_to_everyone(db, workflow, owner_id, viewer_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")
    other, _ = workflow.create_property(owner_id, "Harbor View")
    _accept_invite(workflow, owner_id, prop.id, viewer_id, GrantRole.VIEWER)

    workflow.disable_property(owner_id, prop.id)

    evaluator = AccessEvaluator(db)
    assert evaluator.accessible_properties(owner_id) == {PropertyAccess(other.id, GrantRole.OWNER)}
    assert evaluator.accessible_properties(viewer_id) == frozenset()
    assert evaluator.role_for(owner_id, prop.id) is None

    membership = evaluator.membership(owner_id, prop.id)
    assert membership.role == GrantRole.OWNER
    assert membership.disabled


def test_revoked_and_expired_grants_are_ignored(db, owner_id, viewer_id):
    prop = Property(id=uuid.uuid4(), property_name="Old Mill", landlord_id=owner_id)
    db.add(prop)
    for status in (GrantStatus.REVOKED, GrantStatus.EXPIRED):
        db.add(PropertyGrant(property_id=prop.id, user_id=viewer_id, role=GrantRole.VIEWER, status=status))
    db.flush()

    assert AccessEvaluator(db).accessible_properties(viewer_id) == frozenset()


def test_evaluation_is_idempotent(db, session_factory, workflow, owner_id, viewer_id):
    first, _ = workflow.create_property(owner_id, "A")
    second, _ = workflow.create_property(owner_id, "B")
    _accept_invite(workflow, owner_id, first.id, viewer_id, GrantRole.VIEWER)
    _accept_invite(workflow, owner_id, second.id, viewer_id, GrantRole.PROPERTY_MANAGER)
    db.commit()

    evaluator = AccessEvaluator(db)
    once = evaluator.accessible_properties(viewer_id)
    twice = evaluator.accessible_properties(viewer_id)

    other_session = session_factory()
    try:
        elsewhere = AccessEvaluator(other_session).accessible_properties(viewer_id)
    finally:
        other_session.close()

    assert once == twice == elsewhere
    assert len(once) == 2


def test_access_index_lookups(db, workflow, owner_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")

    index = AccessEvaluator(db).access_index(str(owner_id))
    assert prop.id in index
    assert uuid.uuid4() not in index
    assert index.role_for(prop.id) == GrantRole.OWNER
    assert len(index) == 1


def test_malformed_ids_raise(db):
    evaluator = AccessEvaluator(db)
    with pytest.raises(MalformedIdentifierError):
        evaluator.accessible_properties("not-a-uuid")
    with pytest.raises(MalformedIdentifierError):
        evaluator.role_for(uuid.uuid4(), "12345")


def test_evaluation_is_one_statement_over_base_tables(db, engine, workflow, owner_id, viewer_id):
    prop, _ = workflow.create_property(owner_id, "Sunset Condos")
    _accept_invite(workflow, owner_id, prop.id, viewer_id, GrantRole.VIEWER)

    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement.lower())

    event.listen(engine, "before_cursor_execute", capture)
    try:
        AccessEvaluator(db).accessible_properties(viewer_id)
    finally:
        event.remove(engine, "before_cursor_execute", capture)

    assert len(statements) == 1
    sql = statements[0]
    assert "union all" in sql
    assert "from properties" in sql
    assert "property_users" in sql
    assert "property_units" not in sql


def test_evaluator_does_not_depend_on_enforcement_layer():
    tree = ast.parse(inspect.getsource(access_evaluator_module))
    imported = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            imported.add(node.module)
        elif isinstance(node, ast.Import):
            imported.update(alias.name for alias in node.names)

    assert "services.policy_enforcer" not in imported
    assert "services.invitation_workflow" not in imported
    assert not any(name.startswith("routers") for name in imported)
