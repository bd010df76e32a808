"""Tests for the registration workflow: submit, list_pending, approve/reject state machine."""

import os
import tempfile
import threading
import unittest

from _factories import make_engine, make_serialized_engine, make_session_factory, make_user

from app.core.errors import (
    DuplicateEmail,
    DuplicateUsername,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
)
from app.models import AuditLog, RegistrationRequest, User
from app.models.enums import RequestStatus, Role, UserStatus
from app.services import auth, registration


def _submit(db, name: str = "Asha Patil", email: str = "asha@example.org") -> RegistrationRequest:
    return registration.submit(
        db,
        name=name,
        email=email,
        mobile_number="+91 98200 00000",
        address="Pune, Maharashtra",
    )


class RegistrationTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.admin = make_user(self.db, "admin1", role=Role.ADMIN)

    def tearDown(self) -> None:
        self.db.close()


class TestSubmit(RegistrationTestCase):
    def test_submit_then_list_pending_includes_request(self) -> None:
        request = _submit(self.db)
        pending = registration.list_pending(self.db)
        self.assertIn(request.id, [r.id for r in pending])
        self.assertEqual(request.status, RequestStatus.PENDING)
        self.assertIsNone(request.resolved_at)

    def test_email_is_normalised(self) -> None:
        request = _submit(self.db, email="  Asha@Example.ORG ")
        self.assertEqual(request.email, "asha@example.org")

    def test_missing_fields_reported_per_field(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            registration.submit(self.db, name=" ", email="", mobile_number="123", address="")
        self.assertEqual(set(ctx.exception.details), {"name", "email", "address"})

    def test_bad_email_format(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            _submit(self.db, email="not-an-email")
        self.assertIn("email", ctx.exception.details)

    def test_duplicate_email_submissions_are_accepted(self) -> None:
        _submit(self.db)
        _submit(self.db)
        self.assertEqual(len(registration.list_pending(self.db)), 2)

    def test_list_pending_oldest_first_and_excludes_resolved(self) -> None:
        first = _submit(self.db, name="First", email="first@example.org")
        second = _submit(self.db, name="Second", email="second@example.org")
        third = _submit(self.db, name="Third", email="third@example.org")
        registration.reject(self.db, second.id, approver=self.admin)
        self.assertEqual([r.id for r in registration.list_pending(self.db)], [first.id, third.id])


class TestApprove(RegistrationTestCase):
    def test_approve_creates_approved_user_and_resolves_request(self) -> None:
        request = _submit(self.db)
        user = registration.approve(
            self.db, request.id, "newadmin", "pw123456", "editor", approver=self.admin
        )
        self.assertEqual(user.role, Role.EDITOR)
        self.assertEqual(user.status, UserStatus.APPROVED)
        self.assertEqual(user.email, "asha@example.org")
        self.assertEqual(user.created_by, self.admin.id)
        self.assertNotEqual(user.password_hash, "pw123456")

        resolved = registration.get_request(self.db, request.id)
        self.assertEqual(resolved.status, RequestStatus.APPROVED)
        self.assertIsNotNone(resolved.resolved_at)
        self.assertEqual(resolved.resolved_by, self.admin.id)
        self.assertEqual(resolved.user_id, user.id)

    def test_approved_user_can_log_in_with_assigned_role(self) -> None:
        request = _submit(self.db)
        registration.approve(self.db, request.id, "newadmin", "pw123456", "editor", approver=self.admin)
        token, _ = auth.login(self.db, "newadmin", "pw123456")
        verified = auth.verify(self.db, token)
        self.assertEqual(verified.role, "editor")
        self.assertEqual(auth.decode(token)["role"], "editor")

    def test_second_approve_is_invalid_state(self) -> None:
        request = _submit(self.db)
        registration.approve(self.db, request.id, "first", "pw123456", "viewer", approver=self.admin)
        with self.assertRaises(InvalidState):
            registration.approve(self.db, request.id, "second", "pw123456", "viewer", approver=self.admin)
        self.assertIsNone(self.db.query(User).filter(User.username == "second").first())

    def test_reject_after_approve_is_invalid_state(self) -> None:
        request = _submit(self.db)
        registration.approve(self.db, request.id, "first", "pw123456", "viewer", approver=self.admin)
        with self.assertRaises(InvalidState):
            registration.reject(self.db, request.id, approver=self.admin)

    def test_unknown_request(self) -> None:
        with self.assertRaises(NotFound):
            registration.approve(self.db, 404, "someone", "pw123456", "viewer", approver=self.admin)

    def test_duplicate_username_leaves_request_pending(self) -> None:
        request = _submit(self.db)
        with self.assertRaises(DuplicateUsername):
            registration.approve(self.db, request.id, "admin1", "pw123456", "viewer", approver=self.admin)
        self.assertEqual(registration.get_request(self.db, request.id).status, RequestStatus.PENDING)

    def test_duplicate_email_against_existing_user(self) -> None:
        make_user(self.db, "asha", email="asha@example.org")
        request = _submit(self.db)
        with self.assertRaises(DuplicateEmail):
            registration.approve(self.db, request.id, "asha2", "pw123456", "viewer", approver=self.admin)
        request = registration.get_request(self.db, request.id)
        self.assertEqual(request.status, RequestStatus.PENDING)
        self.assertIsNone(request.resolved_by)
        self.assertIsNone(request.user_id)

    def test_invalid_role(self) -> None:
        request = _submit(self.db)
        with self.assertRaises(ValidationError):
            registration.approve(self.db, request.id, "someone", "pw123456", "owner", approver=self.admin)

    def test_short_password(self) -> None:
        request = _submit(self.db)
        with self.assertRaises(ValidationError) as ctx:
            registration.approve(self.db, request.id, "someone", "short", "viewer", approver=self.admin)
        self.assertIn("password", ctx.exception.details)

    def test_only_super_admin_grants_super_admin(self) -> None:
        request = _submit(self.db)
        with self.assertRaises(Forbidden):
            registration.approve(self.db, request.id, "boss", "pw123456", "super_admin", approver=self.admin)
        root = make_user(self.db, "root", role=Role.SUPER_ADMIN)
        user = registration.approve(self.db, request.id, "boss", "pw123456", "super_admin", approver=root)
        self.assertEqual(user.role, Role.SUPER_ADMIN)

    def test_approval_is_audited(self) -> None:
        request = _submit(self.db)
        registration.approve(self.db, request.id, "newuser", "pw123456", "viewer", approver=self.admin)
        entry = self.db.query(AuditLog).filter(AuditLog.action == "approve_registration").one()
        self.assertEqual(entry.actor_id, self.admin.id)
        self.assertEqual(entry.resource_id, str(request.id))


class TestReject(RegistrationTestCase):
    def test_reject_stores_reason_and_keeps_record(self) -> None:
        request = _submit(self.db)
        rejected = registration.reject(self.db, request.id, approver=self.admin, reason="Incomplete details")
        self.assertEqual(rejected.status, RequestStatus.REJECTED)
        self.assertEqual(rejected.resolution_reason, "Incomplete details")
        self.assertIsNotNone(rejected.resolved_at)
        self.assertEqual(self.db.query(RegistrationRequest).count(), 1)

    def test_second_reject_is_invalid_state(self) -> None:
        request = _submit(self.db)
        registration.reject(self.db, request.id, approver=self.admin)
        with self.assertRaises(InvalidState):
            registration.reject(self.db, request.id, approver=self.admin)
        with self.assertRaises(InvalidState):
            registration.approve(self.db, request.id, "late", "pw123456", "viewer", approver=self.admin)

    def test_reject_unknown(self) -> None:
        with self.assertRaises(NotFound):
            registration.reject(self.db, 12345, approver=self.admin)

    def test_stats(self) -> None:
        a = _submit(self.db, email="a@example.org")
        b = _submit(self.db, email="b@example.org")
        _submit(self.db, email="c@example.org")
        registration.approve(self.db, a.id, "usera", "pw123456", "viewer", approver=self.admin)
        registration.reject(self.db, b.id, approver=self.admin)
        self.assertEqual(
            registration.stats(self.db),
            {"pending": 1, "approved": 1, "rejected": 1, "total": 3},
        )

    def test_list_requests_filter(self) -> None:
        a = _submit(self.db, email="a@example.org")
        _submit(self.db, email="b@example.org")
        registration.reject(self.db, a.id, approver=self.admin)
        rejected = registration.list_requests(self.db, RequestStatus.REJECTED)
        self.assertEqual([r.id for r in rejected], [a.id])
        self.assertEqual(len(registration.list_requests(self.db)), 2)


class TestConcurrentResolution(unittest.TestCase):
    """Two admins resolving the same request: only one transition may win."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = make_engine(f"sqlite:///{os.path.join(self.tmpdir.name, 'race.db')}")
        self.Session = make_session_factory(self.engine)
        with self.Session() as db:
            self.admin_a_id = make_user(db, "admin_a", role=Role.ADMIN).id
            self.admin_b_id = make_user(db, "admin_b", role=Role.ADMIN).id
            self.request_id = _submit(db).id

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_stale_reader_loses_to_committed_approval(self) -> None:
        db_a = self.Session()
        db_b = self.Session()
        try:
            # Admin B has already loaded the request as pending.
            self.assertEqual(db_b.get(RegistrationRequest, self.request_id).status, "pending")
            registration.approve(
                db_a, self.request_id, "winner", "pw123456", "viewer",
                approver=db_a.get(User, self.admin_a_id),
            )
            with self.assertRaises(InvalidState):
                registration.reject(db_b, self.request_id, approver=db_b.get(User, self.admin_b_id))
        finally:
            db_a.close()
            db_b.close()

        with self.Session() as db:
            request = db.get(RegistrationRequest, self.request_id)
            self.assertEqual(request.status, RequestStatus.APPROVED)
            self.assertIsNone(request.resolution_reason)

    def test_stale_reader_approval_loses_with_invalid_state(self) -> None:
        db_a = self.Session()
        db_b = self.Session()
        try:
            self.assertEqual(db_b.get(RegistrationRequest, self.request_id).status, "pending")
            registration.approve(
                db_a, self.request_id, "winner", "pw123456", "viewer",
                approver=db_a.get(User, self.admin_a_id),
            )
            # Same email, different username: the claim must fail before any uniqueness check.
            with self.assertRaises(InvalidState):
                registration.approve(
                    db_b, self.request_id, "loser", "pw123456", "editor",
                    approver=db_b.get(User, self.admin_b_id),
                )
        finally:
            db_a.close()
            db_b.close()

        with self.Session() as db:
            request = db.get(RegistrationRequest, self.request_id)
            winner = db.query(User).filter(User.username == "winner").one()
            self.assertEqual(request.status, RequestStatus.APPROVED)
            self.assertEqual(request.user_id, winner.id)
            self.assertEqual(request.resolved_by, self.admin_a_id)
            self.assertEqual(db.query(User).filter(User.username == "loser").count(), 0)

    def test_simultaneous_approve_and_reject_exactly_one_wins(self) -> None:
        engine = make_serialized_engine(str(self.engine.url))
        self.addCleanup(engine.dispose)
        Session = make_session_factory(engine)
        barrier = threading.Barrier(2)
        outcomes: dict[str, str] = {}

        def run(name: str, admin_id: int) -> None:
            db = Session()
            try:
                barrier.wait()
                admin = db.get(User, admin_id)
                if name == "approve":
                    registration.approve(db, self.request_id, "raced", "pw123456", "viewer", approver=admin)
                else:
                    registration.reject(db, self.request_id, approver=admin, reason="race")
                outcomes[name] = "ok"
            except InvalidState:
                outcomes[name] = "invalid_state"
            finally:
                db.close()

        threads = [
            threading.Thread(target=run, args=("approve", self.admin_a_id)),
            threading.Thread(target=run, args=("reject", self.admin_b_id)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(sorted(outcomes.values()), ["invalid_state", "ok"])
        with self.Session() as db:
            request = db.get(RegistrationRequest, self.request_id)
            user_count = db.query(User).filter(User.username == "raced").count()
            if outcomes["approve"] == "ok":
                self.assertEqual(request.status, RequestStatus.APPROVED)
                self.assertEqual(user_count, 1)
            else:
                self.assertEqual(request.status, RequestStatus.REJECTED)
                self.assertEqual(user_count, 0)


if __name__ == "__main__":
    unittest.main()
