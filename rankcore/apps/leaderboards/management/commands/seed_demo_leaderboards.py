from __future__ import annotations

import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from rankcore.apps.leaderboards.models import Leaderboard
from rankcore.apps.scoring.services.parsing import METRIC_DISTANCE, METRIC_REPS, METRIC_TIME, METRIC_WEIGHT
from rankcore.apps.scoring.services.ranking import SORT_ASC, SORT_DESC
from rankcore.apps.submissions.services import moderation
from rankcore.apps.submissions.services.store import DjangoSubmissionStore

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elena", "Fede", "Gabi", "Hugo", "Inés", "Juan", "Lucía", "Mateo"]
LAST_NAMES = ["García", "Pérez", "López", "Sánchez", "Romero", "Torres", "Díaz", "Ruiz"]

# (título, métrica, orden, unidad, generador de valor en texto)
DEMO_BOARDS = [
    ("5K Run", METRIC_TIME, SORT_ASC, "", lambda r: f"{r.randint(17, 32)}:{r.randint(0, 59):02d}"),
    ("Max Pull-ups", METRIC_REPS, SORT_DESC, "reps", lambda r: str(r.randint(5, 45))),
    ("Row 1 hora", METRIC_DISTANCE, SORT_DESC, "m", lambda r: f"{r.randint(9, 16)}.{r.randint(0, 9)}km"),
    ("Back Squat 1RM", METRIC_WEIGHT, SORT_DESC, "kg", lambda r: f"{r.randint(60, 220)}.{r.choice([0, 5])}"),
]


def ensure_owner(username: str, email: str):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username=username, defaults={"email": email})
    if not user.has_usable_password():
        user.set_password("Pass1234!")
        user.save()
    return user


class Command(BaseCommand):
    help = "Crea leaderboards DEMO (tiempo, reps, distancia y peso) con envíos aprobados y pendientes."

    def add_arguments(self, parser):
        parser.add_argument("--owner", type=str, default="demo_owner", help="Usuario dueño (se crea si no existe).")
        parser.add_argument("--entries", type=int, default=12, help="Envíos por leaderboard.")
        parser.add_argument("--pending", type=int, default=3, help="Cuántos de ellos quedan pendientes.")
        parser.add_argument("--seed", type=int, default=42, help="Semilla del generador aleatorio.")
        parser.add_argument("--reset", action="store_true", help="Borra antes los leaderboards del dueño.")

    @transaction.atomic
    def handle(self, *args, **opts):
        entries: int = opts["entries"]
        pending: int = opts["pending"]
        if entries < 1:
            raise CommandError("--entries debe ser al menos 1")
        if pending < 0 or pending > entries:
            raise CommandError("--pending debe estar entre 0 y --entries")

        owner = ensure_owner(opts["owner"], f"{opts['owner']}@example.com")
        if opts["reset"]:
            deleted, _ = Leaderboard.objects.filter(owner=owner).delete()
            self.stdout.write(self.style.WARNING(f"• Borrados {deleted} objetos previos"))

        rng = random.Random(opts["seed"])
        store = DjangoSubmissionStore()

        for title, metric, direction, unit, gen in DEMO_BOARDS:
            lb = Leaderboard.objects.create(
                owner=owner,
                title=title,
                metric_type=metric,
                sort_direction=direction,
                unit=unit,
                description=f"Leaderboard demo de {title}.",
            )
            for i in range(entries):
                first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
                kwargs = dict(
                    full_name=f"{first} {last}",
                    email=f"{first.lower()}.{i}@example.com",
                    gender=rng.choice(["male", "female"]),
                    value=gen(rng),
                )
                if i < entries - pending:
                    moderation.add_manual_entry(store, lb, moderator=owner, **kwargs)
                else:
                    moderation.submit(store, lb, **kwargs)
            self.stdout.write(self.style.SUCCESS(f"✓ {lb.slug}: {entries} envíos ({pending} pendientes)"))

        self.stdout.write(self.style.SUCCESS(f"Listo. Dueño: {owner.username} / Pass1234!"))
