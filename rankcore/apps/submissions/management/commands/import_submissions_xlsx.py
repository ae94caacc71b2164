from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from openpyxl import load_workbook

from rankcore.apps.leaderboards.models import Leaderboard
from rankcore.apps.scoring.services.parsing import parse_value
from rankcore.apps.submissions.models import GENDER_CHOICES
from rankcore.apps.submissions.services import moderation
from rankcore.apps.submissions.services.store import DjangoSubmissionStore

REQUIRED_COLUMNS = ["full_name", "email", "value"]
GENDERS = {key for key, _ in GENDER_CHOICES}
GENDER_ALIASES = {
    "m": "male", "h": "male", "hombre": "male", "masculino": "male",
    "f": "female", "mujer": "female", "femenino": "female",
    "otro": "other", "o": "other",
}


def _cell_text(value) -> str:
    if value is None:
        return ""
    # openpyxl devuelve float para celdas numéricas: 42.0 → "42"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _normalize_gender(raw: str) -> str:
    g = (raw or "").strip().lower()
    if not g:
        return "male"
    g = GENDER_ALIASES.get(g, g)
    if g not in GENDERS:
        raise CommandError(f"Género desconocido: '{raw}'.")
    return g


class Command(BaseCommand):
    help = "Importa resultados desde un .xlsx como entradas manuales aprobadas de un leaderboard."

    def add_arguments(self, parser):
        parser.add_argument("xlsx_path", type=str, help="Ruta al archivo .xlsx (columnas full_name, email, gender, value)")
        parser.add_argument("--leaderboard-slug", required=True, help="Slug del leaderboard destino")
        parser.add_argument("--sheet", type=str, default=None, help="Nombre de la hoja (por defecto: primera)")
        parser.add_argument("--report-dir", type=str, default=None, help="Carpeta del reporte CSV (por defecto: cwd)")
        parser.add_argument("--dry-run", action="store_true", help="Valida sin escribir cambios")

    def handle(self, *args, **options):
        xlsx_path = Path(options["xlsx_path"])
        slug = options["leaderboard_slug"]
        sheet_name = options.get("sheet")
        dry_run = options.get("dry_run", False)

        if not xlsx_path.exists():
            raise CommandError(f"Archivo no encontrado: {xlsx_path}")

        try:
            leaderboard = Leaderboard.objects.get(slug=slug)
        except Leaderboard.DoesNotExist:
            raise CommandError(f"Leaderboard '{slug}' no existe.")

        wb = load_workbook(filename=str(xlsx_path), data_only=True)
        if sheet_name and sheet_name not in wb.sheetnames:
            raise CommandError(f"Hoja '{sheet_name}' no existe. Hojas: {wb.sheetnames}")
        ws = wb[sheet_name] if sheet_name else wb.worksheets[0]

        # Cabecera: el orden no importa, pero las obligatorias deben estar
        header_cells = [c.value for c in next(ws.iter_rows(min_row=1, max_row=1))]
        headers = [_cell_text(h).lower() for h in header_cells]
        missing = [col for col in REQUIRED_COLUMNS if col not in headers]
        if missing:
            raise CommandError(f"Faltan columnas {missing}. Cabecera encontrada: {headers}")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_dir = Path(options["report_dir"]) if options.get("report_dir") else Path.cwd()
        report_path = report_dir / f"import_submissions_{timestamp}.csv"
        report_fp = None
        writer = None
        if not dry_run:
            report_fp = report_path.open("w", newline="", encoding="utf-8")
            writer = csv.writer(report_fp)
            writer.writerow(["row", "status", "full_name", "email", "value_display", "errors"])

        store = DjangoSubmissionStore()
        total = ok = errs = 0

        try:
            for idx, row in enumerate(ws.iter_rows(min_row=2), start=2):
                data = dict(zip(headers, (_cell_text(c.value) for c in row)))
                if not any(data.get(col) for col in REQUIRED_COLUMNS):
                    continue  # fila vacía
                total += 1

                status = "OK"
                display = ""
                error = ""
                try:
                    if not data.get("full_name"):
                        raise CommandError("full_name vacío.")
                    if not data.get("email"):
                        raise CommandError("email vacío.")
                    gender = _normalize_gender(data.get("gender", ""))

                    if dry_run:
                        display = parse_value(
                            leaderboard.metric_type, data["value"], leaderboard.smart_time_parsing
                        ).value_display
                    else:
                        with transaction.atomic():
                            sid = moderation.add_manual_entry(
                                store,
                                leaderboard,
                                full_name=data["full_name"],
                                email=data["email"],
                                gender=gender,
                                value=data["value"],
                            )
                        display = leaderboard.submissions.get(pk=sid).value_display
                except ValidationError as e:
                    status, error = "ERROR", " ".join(e.messages)
                except CommandError as e:
                    status, error = "ERROR", str(e)

                if status == "OK":
                    ok += 1
                else:
                    errs += 1

                if writer:
                    writer.writerow([idx, status, data.get("full_name", ""), data.get("email", ""), display, error])
        finally:
            if report_fp:
                report_fp.close()

        self.stdout.write(self.style.SUCCESS(f"Filas procesadas: {total}"))
        self.stdout.write(self.style.SUCCESS(f"OK: {ok}  ·  ERRORES: {errs}"))
        if not dry_run:
            self.stdout.write(self.style.SUCCESS(f"Reporte: {report_path}"))
        else:
            self.stdout.write(self.style.WARNING("Dry-run: no se escribió reporte ni se crearon envíos."))
