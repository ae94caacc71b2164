from __future__ import annotations

import gc
from contextlib import contextmanager
from datetime import timedelta
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from rankcore.apps.leaderboards.models import Leaderboard
from rankcore.apps.scoring.services.parsing import InvalidFormat
from rankcore.apps.submissions.models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Submission
from rankcore.apps.submissions.services import moderation
from rankcore.apps.submissions.services.exceptions import (
    ModerationError,
    ReorderFailed,
    ReorderInProgress,
    SubmissionRefused,
)
from rankcore.apps.submissions.services.store import DjangoSubmissionStore, SubmissionStore, leaderboard_counters

User = get_user_model()


class MemoryStore(SubmissionStore):
    """Store en memoria: permite simular fallos de guardado por id."""

    def __init__(self, submissions=(), fail_ids=()):
        self.rows = {str(s.id): s for s in submissions}
        self.fail_ids = {str(i) for i in fail_ids}
        self.persist_calls = []
        self.inserted = []
        self.in_reorder = False

    def fetch_approved_submissions(self, leaderboard_id):
        return list(self.rows.values())

    def persist_manual_rank(self, submission_id, rank):
        self.persist_calls.append((str(submission_id), rank))
        if str(submission_id) in self.fail_ids:
            return False
        self.rows[str(submission_id)].manual_rank = rank
        return True

    def insert_submission(self, **fields):
        self.inserted.append(fields)
        return len(self.inserted)

    def count_for_email(self, leaderboard_id, email):
        return sum(1 for f in self.inserted if f["email"] == email)

    @contextmanager
    def reorder_guard(self, leaderboard_id):
        if self.in_reorder:
            raise ReorderInProgress("ocupado")
        self.in_reorder = True
        try:
            yield
        finally:
            self.in_reorder = False


def row(pk, manual_rank=None):
    return SimpleNamespace(id=pk, manual_rank=manual_rank)


def board(**overrides):
    data = dict(
        pk=1,
        metric_type="time",
        smart_time_parsing=True,
        auto_approve=False,
        requires_verification=False,
        submissions_per_user=None,
        is_open=True,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


class ReorderServiceTest(SimpleTestCase):
    def test_assigns_positions_in_order(self):
        store = MemoryStore([row("a"), row("b"), row("c")])
        n = moderation.reorder(store, 1, ["c", "a", "b"])
        self.assertEqual(n, 3)
        self.assertEqual(store.persist_calls, [("c", 1), ("a", 2), ("b", 3)])

    def test_stops_at_first_failure(self):
        store = MemoryStore([row("a"), row("b"), row("c")], fail_ids=["b"])
        with self.assertRaises(ReorderFailed) as ctx:
            moderation.reorder(store, 1, ["a", "b", "c"])
        self.assertEqual(ctx.exception.failed_ids, ["b"])
        self.assertEqual(store.persist_calls, [("a", 1), ("b", 2)])

    def test_failure_is_logged(self):
        store = MemoryStore([row("a")], fail_ids=["a"])
        with self.assertLogs("rankcore.apps.submissions.services.moderation", level="ERROR"):
            with self.assertRaises(ReorderFailed):
                moderation.reorder(store, 1, ["a"])

    def test_rejects_duplicates_and_foreign_ids(self):
        store = MemoryStore([row("a"), row("b")])
        with self.assertRaises(ModerationError):
            moderation.reorder(store, 1, ["a", "a"])
        with self.assertRaises(ModerationError):
            moderation.reorder(store, 1, ["a", "zzz"])
        self.assertEqual(store.persist_calls, [])

    def test_concurrent_reorder_refused(self):
        store = MemoryStore([row("a")])
        with store.reorder_guard(1):
            with self.assertRaises(ReorderInProgress):
                moderation.reorder(store, 1, ["a"])

    def test_move_submission_within_visible_list(self):
        store = MemoryStore([row("a"), row("b"), row("c"), row("d")])
        new_order = moderation.move_submission(store, 1, ["a", "b", "c", "d"], "d", 2)
        self.assertEqual(new_order, ["a", "d", "b", "c"])
        self.assertEqual(store.persist_calls, [("a", 1), ("d", 2), ("b", 3), ("c", 4)])

    def test_move_position_is_clamped(self):
        store = MemoryStore([row("a"), row("b")])
        self.assertEqual(moderation.move_submission(store, 1, ["a", "b"], "a", 99), ["b", "a"])

    def test_move_unknown_submission(self):
        store = MemoryStore([row("a")])
        with self.assertRaises(ModerationError):
            moderation.move_submission(store, 1, ["a"], "x", 1)

    def test_clear_manual_ranks(self):
        store = MemoryStore([row("a", 2), row("b"), row("c", 1)])
        self.assertEqual(moderation.clear_manual_ranks(store, 1), 2)
        self.assertTrue(all(r.manual_rank is None for r in store.rows.values()))


class SubmitServiceTest(SimpleTestCase):
    def test_pending_by_default(self):
        store = MemoryStore()
        moderation.submit(store, board(), full_name=" Ana ", email="ANA@x.com", gender="female", value="1h 30m")
        fields = store.inserted[0]
        self.assertEqual(fields["status"], STATUS_PENDING)
        self.assertIsNone(fields["approved_at"])
        self.assertEqual(fields["email"], "ana@x.com")
        self.assertEqual(fields["full_name"], "Ana")
        self.assertEqual(fields["value_raw"], 5_400_000)
        self.assertEqual(fields["value_display"], "1:30:00")
        self.assertEqual(fields["submission_metadata"]["original_input"], "1h 30m")
        self.assertTrue(fields["submission_metadata"]["smart_parsing_used"])

    def test_auto_approve(self):
        store = MemoryStore()
        moderation.submit(store, board(auto_approve=True), full_name="Ana", email="a@x.com", gender="female", value="12:30")
        self.assertEqual(store.inserted[0]["status"], STATUS_APPROVED)
        self.assertIsNotNone(store.inserted[0]["approved_at"])

    def test_parse_error_propagates(self):
        store = MemoryStore()
        with self.assertRaises(InvalidFormat):
            moderation.submit(store, board(smart_time_parsing=False), full_name="Ana", email="a@x.com", gender="female", value="abc")
        self.assertEqual(store.inserted, [])

    def test_policy_refusals(self):
        store = MemoryStore()
        with self.assertRaises(SubmissionRefused):
            moderation.submit(store, board(is_open=False), full_name="A", email="a@x.com", gender="male", value="1:00")
        with self.assertRaises(SubmissionRefused):
            moderation.submit(store, board(requires_verification=True), full_name="A", email="a@x.com", gender="male", value="1:00")
        moderation.submit(
            store, board(requires_verification=True), full_name="A", email="a@x.com", gender="male",
            value="1:00", proof_url="https://example.com/v",
        )
        with self.assertRaises(SubmissionRefused):
            moderation.submit(store, board(submissions_per_user=1), full_name="A", email="A@x.com", gender="male", value="1:00")

    def test_manual_entry_is_approved(self):
        store = MemoryStore()
        moderation.add_manual_entry(store, board(metric_type="reps"), full_name="Bo", email="b@x.com", gender="male", value="42")
        fields = store.inserted[0]
        self.assertEqual(fields["status"], STATUS_APPROVED)
        self.assertTrue(fields["is_manual_entry"])
        self.assertEqual(fields["value_raw"], 42)


class ModerationDbTest(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(username="owner", password="Pass1234!")
        cls.lb = Leaderboard.objects.create(owner=cls.owner, title="Row 500m", metric_type="time")

    def _pending(self, name="Ana López", email="ana@example.com", value_raw=90_000):
        return Submission.objects.create(
            leaderboard=self.lb, full_name=name, email=email,
            value_raw=value_raw, value_display="1:30", status=STATUS_PENDING,
        )

    def test_approve_once(self):
        s = self._pending()
        moderation.approve(s, self.owner)
        s.refresh_from_db()
        self.assertEqual(s.status, STATUS_APPROVED)
        self.assertEqual(s.approved_by, self.owner)
        self.assertIsNotNone(s.approved_at)
        with self.assertRaises(ModerationError):
            moderation.approve(s, self.owner)

    def test_reject_requires_reason(self):
        s = self._pending()
        with self.assertRaises(ModerationError):
            moderation.reject(s, self.owner, "   ")
        moderation.reject(s, self.owner, "Video no se ve")
        s.refresh_from_db()
        self.assertEqual(s.status, STATUS_REJECTED)
        self.assertEqual(s.rejection_reason, "Video no se ve")
        with self.assertRaises(ModerationError):
            moderation.approve(s, self.owner)

    def test_update_reparses_value(self):
        s = self._pending()
        moderation.update_submission(s, value="2:05", email="NEW@example.com")
        s.refresh_from_db()
        self.assertEqual(s.value_raw, 125_000)
        self.assertEqual(s.value_display, "2:05")
        self.assertEqual(s.email, "new@example.com")
        self.assertEqual(s.submission_metadata["original_input"], "2:05")

    def test_django_store_reorder_and_counters(self):
        store = DjangoSubmissionStore()
        a = self._pending("A One", "a@example.com")
        b = self._pending("B Two", "b@example.com")
        c = self._pending("C Three", "a@example.com")
        for s in (a, b):
            moderation.approve(s, self.owner)

        moderation.reorder(store, self.lb.pk, [b.pk, a.pk])
        a.refresh_from_db()
        b.refresh_from_db()
        self.assertEqual((b.manual_rank, a.manual_rank), (1, 2))

        # c sigue pendiente: no puede entrar en el orden
        with self.assertRaises(ModerationError):
            moderation.reorder(store, self.lb.pk, [c.pk, a.pk, b.pk])

        counters = leaderboard_counters(self.lb.pk)
        self.assertEqual(counters, {"total": 3, "approved": 2, "pending": 1, "unique_participants": 2})

    def test_django_store_guard_is_per_leaderboard(self):
        store = DjangoSubmissionStore()
        other = Leaderboard.objects.create(owner=self.owner, title="Otro", metric_type="reps")
        with store.reorder_guard(self.lb.pk):
            with self.assertRaises(ReorderInProgress):
                with store.reorder_guard(self.lb.pk):
                    pass
            with store.reorder_guard(other.pk):
                pass

    def test_django_store_forgets_idle_locks(self):
        store = DjangoSubmissionStore()
        with store.reorder_guard(self.lb.pk):
            self.assertIn(self.lb.pk, DjangoSubmissionStore._reorder_locks)
        gc.collect()
        self.assertNotIn(self.lb.pk, DjangoSubmissionStore._reorder_locks)

    def test_is_open_deadline(self):
        self.lb.submission_deadline = timezone.now() + timedelta(hours=1)
        self.assertTrue(self.lb.is_open)
        self.lb.submission_deadline = timezone.now() - timedelta(hours=1)
        self.assertFalse(self.lb.is_open)
