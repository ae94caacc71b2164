from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from rankcore.apps.leaderboards.models import Leaderboard
from rankcore.apps.submissions.models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Submission
from rankcore.apps.submissions.services.store import DjangoSubmissionStore

User = get_user_model()


class ManageViewsTest(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(username="owner", password="Pass1234!")
        cls.other = User.objects.create_user(username="other", password="Pass1234!")
        cls.lb = Leaderboard.objects.create(owner=cls.owner, title="Max Reps", metric_type="reps", sort_direction="desc")

    def setUp(self):
        now = timezone.now()
        self.a = Submission.objects.create(
            leaderboard=self.lb, full_name="Ana Alba", email="ana@example.com",
            value_raw=30, value_display="30", status=STATUS_APPROVED, approved_at=now,
        )
        self.b = Submission.objects.create(
            leaderboard=self.lb, full_name="Beto Bravo", email="beto@example.com",
            value_raw=50, value_display="50", status=STATUS_APPROVED, approved_at=now,
        )
        self.c = Submission.objects.create(
            leaderboard=self.lb, full_name="Caro Cruz", email="caro@example.com",
            value_raw=40, value_display="40", status=STATUS_APPROVED, approved_at=now,
        )
        self.p = Submission.objects.create(
            leaderboard=self.lb, full_name="Pepe Pendiente", email="pepe@example.com",
            value_raw=99, value_display="99", status=STATUS_PENDING,
        )
        self.manage_url = reverse("submissions_manage", args=[self.lb.slug])
        self.reorder_url = reverse("submissions_reorder", args=[self.lb.slug])

    def login_owner(self):
        self.client.login(username="owner", password="Pass1234!")

    def test_manage_requires_owner(self):
        r = self.client.get(self.manage_url)
        self.assertEqual(r.status_code, 302)
        self.client.login(username="other", password="Pass1234!")
        r = self.client.get(self.manage_url)
        self.assertEqual(r.status_code, 403)

    def test_manage_lists_manual_order_and_pending(self):
        self.login_owner()
        r = self.client.get(self.manage_url)
        self.assertEqual(r.status_code, 200)
        names = [row.full_name for row in r.context["rows"]]
        self.assertEqual(names, ["Beto Bravo", "Caro Cruz", "Ana Alba"])
        self.assertEqual([row.rank for row in r.context["rows"]], [1, 2, 3])
        self.assertEqual([s.pk for s in r.context["pending"]], [self.p.pk])
        self.assertEqual(r.context["counters"]["pending"], 1)

    def test_manage_search_filter(self):
        self.login_owner()
        r = self.client.get(self.manage_url, {"q": "caro"})
        self.assertEqual([row.full_name for row in r.context["rows"]], ["Caro Cruz"])

    def test_approve_and_reject(self):
        self.login_owner()
        self.client.post(reverse("submission_approve", args=[self.lb.slug, self.p.pk]))
        self.p.refresh_from_db()
        self.assertEqual(self.p.status, STATUS_APPROVED)

        q = Submission.objects.create(
            leaderboard=self.lb, full_name="Quique", email="q@example.com",
            value_raw=10, value_display="10", status=STATUS_PENDING,
        )
        self.client.post(reverse("submission_reject", args=[self.lb.slug, q.pk]), {"reason": ""})
        q.refresh_from_db()
        self.assertEqual(q.status, STATUS_PENDING)
        self.client.post(reverse("submission_reject", args=[self.lb.slug, q.pk]), {"reason": "Sin prueba"})
        q.refresh_from_db()
        self.assertEqual(q.status, STATUS_REJECTED)

    def test_moderation_actions_are_post_only(self):
        self.login_owner()
        r = self.client.get(reverse("submission_approve", args=[self.lb.slug, self.p.pk]))
        self.assertEqual(r.status_code, 405)

    def test_other_user_cannot_approve(self):
        self.client.login(username="other", password="Pass1234!")
        r = self.client.post(reverse("submission_approve", args=[self.lb.slug, self.p.pk]))
        self.assertEqual(r.status_code, 403)
        self.p.refresh_from_db()
        self.assertEqual(self.p.status, STATUS_PENDING)

    def test_delete(self):
        self.login_owner()
        self.client.post(reverse("submission_delete", args=[self.lb.slug, self.a.pk]))
        self.assertFalse(Submission.objects.filter(pk=self.a.pk).exists())

    def test_edit_value(self):
        self.login_owner()
        self.client.post(reverse("submission_edit", args=[self.lb.slug, self.a.pk]), {"value": "33"})
        self.a.refresh_from_db()
        self.assertEqual((self.a.value_raw, self.a.value_display), (33, "33"))

    def test_edit_invalid_value_keeps_old(self):
        self.login_owner()
        self.client.post(reverse("submission_edit", args=[self.lb.slug, self.a.pk]), {"value": "12.5"})
        self.a.refresh_from_db()
        self.assertEqual(self.a.value_raw, 30)

    def test_oversize_values_are_reported_not_saved(self):
        self.login_owner()
        r = self.client.post(reverse("submission_add_entry", args=[self.lb.slug]), {
            "full_name": "Eva Enorme", "email": "eva@example.com", "gender": "female", "value": "9223372036854775808",
        })
        self.assertRedirects(r, self.manage_url)
        self.assertFalse(Submission.objects.filter(full_name="Eva Enorme").exists())

        self.client.post(reverse("submission_edit", args=[self.lb.slug, self.a.pk]), {"value": "99999999999999999999"})
        self.a.refresh_from_db()
        self.assertEqual(self.a.value_raw, 30)

    def test_redirect_keeps_encoded_filter(self):
        self.login_owner()
        r = self.client.post(self.reorder_url, {"submission": str(self.a.pk), "position": "1", "q": "a&b #c+d"})
        self.assertRedirects(r, self.manage_url + "?q=a%26b+%23c%2Bd", fetch_redirect_response=False)

    def test_add_manual_entry(self):
        self.login_owner()
        self.client.post(reverse("submission_add_entry", args=[self.lb.slug]), {
            "full_name": "Dani Díaz", "email": "dani@example.com", "gender": "other", "value": "45",
        })
        s = Submission.objects.get(full_name="Dani Díaz")
        self.assertEqual(s.status, STATUS_APPROVED)
        self.assertTrue(s.is_manual_entry)
        self.assertEqual(s.approved_by, self.owner)

    def test_reorder_full_list(self):
        self.login_owner()
        r = self.client.post(self.reorder_url, {"order": [str(self.a.pk), str(self.c.pk), str(self.b.pk)]})
        self.assertRedirects(r, self.manage_url)
        ranks = dict(Submission.objects.filter(leaderboard=self.lb, status=STATUS_APPROVED).values_list("full_name", "manual_rank"))
        self.assertEqual(ranks, {"Ana Alba": 1, "Caro Cruz": 2, "Beto Bravo": 3})

        # El público sigue viendo el orden automático
        r = self.client.get(reverse("leaderboard_detail", args=[self.lb.slug]))
        self.assertEqual([row["name"] for row in r.context["rows"]], ["Beto B.", "Caro C.", "Ana A."])

    def test_reorder_ajax(self):
        self.login_owner()
        r = self.client.post(
            self.reorder_url,
            {"order": [str(self.c.pk), str(self.b.pk), str(self.a.pk)]},
            HTTP_X_REQUESTED_WITH="XMLHttpRequest",
        )
        self.assertEqual(r.json(), {"ok": True})

    def test_reorder_rejects_pending_id(self):
        self.login_owner()
        r = self.client.post(
            self.reorder_url,
            {"order": [str(self.p.pk), str(self.a.pk)]},
            HTTP_X_REQUESTED_WITH="XMLHttpRequest",
        )
        self.assertEqual(r.status_code, 400)
        self.assertFalse(Submission.objects.exclude(manual_rank=None).exists())

    def test_reorder_failure_rolls_back(self):
        self.login_owner()
        real = DjangoSubmissionStore.persist_manual_rank
        calls = []

        def flaky(store, submission_id, rank):
            calls.append(rank)
            if rank == 2:
                return False
            return real(store, submission_id, rank)

        with mock.patch.object(DjangoSubmissionStore, "persist_manual_rank", flaky):
            r = self.client.post(
                self.reorder_url,
                {"order": [str(self.a.pk), str(self.c.pk), str(self.b.pk)]},
                HTTP_X_REQUESTED_WITH="XMLHttpRequest",
            )
        self.assertEqual(r.status_code, 409)
        self.assertTrue(r.json()["reload"])
        self.assertEqual(calls, [1, 2])
        # La transacción se revirtió: no quedó ningún manual_rank a medias
        self.assertFalse(Submission.objects.exclude(manual_rank=None).exists())

    def test_move_within_filtered_list(self):
        self.login_owner()
        r = self.client.post(self.reorder_url, {"submission": str(self.a.pk), "position": "1"})
        self.assertRedirects(r, self.manage_url)
        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual((self.a.manual_rank, self.b.manual_rank), (1, 2))

        r = self.client.get(self.manage_url)
        self.assertEqual([row.full_name for row in r.context["rows"]], ["Ana Alba", "Beto Bravo", "Caro Cruz"])

    def test_reset_order(self):
        self.login_owner()
        self.client.post(self.reorder_url, {"order": [str(self.a.pk), str(self.b.pk), str(self.c.pk)]})
        self.client.post(reverse("submissions_reorder_reset", args=[self.lb.slug]))
        self.assertFalse(Submission.objects.exclude(manual_rank=None).exists())
