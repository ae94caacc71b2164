# rankcore/apps/scoring/services/parsing.py
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, DecimalException, ROUND_HALF_UP
from typing import Optional, Union

from django.core.exceptions import ValidationError

METRIC_TIME = "time"
METRIC_REPS = "reps"
METRIC_DISTANCE = "distance"
METRIC_WEIGHT = "weight"

METRIC_CHOICES = (
    (METRIC_TIME, "Tiempo"),
    (METRIC_REPS, "Repeticiones"),
    (METRIC_DISTANCE, "Distancia"),
    (METRIC_WEIGHT, "Peso"),
)

# Unidad canónica de value_raw por métrica
CANONICAL_UNITS = {
    METRIC_TIME: "ms",
    METRIC_REPS: "reps",
    METRIC_DISTANCE: "m",
    METRIC_WEIGHT: "g",
}

# value_raw se guarda en un BigIntegerField (entero con signo de 64 bits)
MAX_VALUE_RAW = 2**63 - 1


# ---------- Errores ----------

class ValueParseError(ValidationError):
    """Error de validación de un valor enviado. Se muestra tal cual en el formulario."""
    default_code = "invalid"

    def __init__(self, message: str):
        super().__init__(message, code=self.default_code)


class InvalidFormat(ValueParseError):
    """La forma del texto no se reconoce (tokens no numéricos, segmentos de más)."""
    default_code = "invalid_format"


class InvalidValue(ValueParseError):
    """El texto se entiende pero el valor está fuera de dominio (cero, negativo)."""
    default_code = "invalid_value"


@dataclass(frozen=True)
class ParsedValue:
    value_raw: int
    value_display: str


# ---------- Entradas tipadas por métrica ----------

@dataclass(frozen=True)
class TimeInput:
    text: str
    smart: bool = False


@dataclass(frozen=True)
class RepsInput:
    text: str


@dataclass(frozen=True)
class DistanceInput:
    text: str


@dataclass(frozen=True)
class WeightInput:
    text: str


MetricInput = Union[TimeInput, RepsInput, DistanceInput, WeightInput]


def build_input(metric_type: str, text: Optional[str], smart: bool = False) -> MetricInput:
    """Normaliza el texto (trim + minúsculas) y lo etiqueta según la métrica."""
    value = (text or "").strip().lower()
    if metric_type == METRIC_TIME:
        return TimeInput(value, smart=bool(smart))
    if metric_type == METRIC_REPS:
        return RepsInput(value)
    if metric_type == METRIC_DISTANCE:
        return DistanceInput(value)
    if metric_type == METRIC_WEIGHT:
        return WeightInput(value)
    raise InvalidFormat(f"Tipo de métrica desconocido: '{metric_type}'.")


# ---------- Utilidades numéricas ----------

_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:e[+-]?\d+)?"
_NUMBER_FULL_RX = re.compile(rf"^{_NUMBER}$")
_NUMBER_PREFIX_RX = re.compile(rf"^{_NUMBER}")
_INTEGER_RX = re.compile(r"^[+-]?\d+$")

_HOURS_RX = re.compile(r"(\d+)\s*(?:h|hour|hours)")
_MINUTES_RX = re.compile(r"(\d+)\s*(?:m|min|mins|minute|minutes)")
_SECONDS_RX = re.compile(r"(\d+)\s*(?:s|sec|secs|second|seconds)")
_KM_RX = re.compile(r"([+-]?[0-9]+(?:\.[0-9]+)?)\s*km", re.IGNORECASE)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_value_raw(amount: Decimal, scale: int, message: str) -> int:
    """
    amount * scale redondeado half-up al entero canónico.
    Fuera de 1..MAX_VALUE_RAW (o sin representación exacta) -> InvalidValue(message).
    """
    try:
        raw = round_half_up(amount * scale)
    except (DecimalException, ValueError, OverflowError):
        raise InvalidValue(message) from None
    if raw <= 0 or raw > MAX_VALUE_RAW:
        raise InvalidValue(message)
    return raw


def format_number(value: Decimal) -> str:
    """Número sin ceros sobrantes: 2.50 -> '2.5', 3.0 -> '3'."""
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def _leading_number(value: str) -> Optional[Decimal]:
    # Igual que un parseFloat: toma el número al inicio e ignora el resto
    m = _NUMBER_PREFIX_RX.match(value)
    if not m:
        return None
    return Decimal(m.group(0))


def _colon_token(token: str) -> Decimal:
    token = token.strip()
    if token == "":
        return Decimal(0)
    if not _NUMBER_FULL_RX.match(token):
        raise ValueError(token)
    return Decimal(token)


def _colon_parts(value: str) -> Optional[list]:
    """Divide por ':' y convierte cada token; None si alguno no es numérico."""
    try:
        return [_colon_token(p) for p in value.split(":")]
    except ValueError:
        return None


def _pad2(value: Decimal) -> str:
    return format_number(value).zfill(2)


def format_clock(hours, minutes, seconds) -> str:
    """H:MM:SS si hay horas; si no, M:SS."""
    h, m, s = Decimal(hours), Decimal(minutes), Decimal(seconds)
    if h > 0:
        return f"{format_number(h)}:{_pad2(m)}:{_pad2(s)}"
    return f"{format_number(m)}:{_pad2(s)}"


def _time_result(hours: Decimal, minutes: Decimal, seconds: Decimal) -> ParsedValue:
    message = "El tiempo debe ser mayor que 0 y de un largo razonable."
    try:
        total_s = (hours * 60 + minutes) * 60 + seconds
    except DecimalException:
        raise InvalidValue(message) from None
    total_ms = to_value_raw(total_s, 1000, message)
    return ParsedValue(total_ms, format_clock(hours, minutes, seconds))


# ---------- Gramáticas ----------

def _parse_time_smart(value: str) -> ParsedValue:
    hour_m = _HOURS_RX.search(value)
    min_m = _MINUTES_RX.search(value)
    sec_m = _SECONDS_RX.search(value)

    hours = Decimal(hour_m.group(1)) if hour_m else Decimal(0)
    minutes = Decimal(min_m.group(1)) if min_m else Decimal(0)
    seconds = Decimal(sec_m.group(1)) if sec_m else Decimal(0)

    if not (hour_m or min_m or sec_m):
        parts = _colon_parts(value)
        if parts is None:
            raise InvalidFormat("Formato de tiempo inválido.")
        if len(parts) == 2:
            minutes, seconds = parts
        elif len(parts) == 3:
            hours, minutes, seconds = parts
        else:
            raise InvalidFormat(
                "Formato de tiempo inválido. Use formatos como '12:30', '1:12:30', '12mins 30sec' o '1h 30m'."
            )

    return _time_result(hours, minutes, seconds)


def _parse_time_strict(value: str) -> ParsedValue:
    parts = _colon_parts(value)
    if parts is None:
        raise InvalidFormat("Tiempo inválido. Use mm:ss o hh:mm:ss.")
    hours = Decimal(0)
    if len(parts) == 2:
        minutes, seconds = parts
    elif len(parts) == 3:
        hours, minutes, seconds = parts
    else:
        raise InvalidFormat("Formato inválido. Use solo mm:ss o hh:mm:ss.")
    return _time_result(hours, minutes, seconds)


def _parse_reps(value: str) -> ParsedValue:
    if not _INTEGER_RX.match(value):
        raise InvalidValue("Ingrese un número entero positivo.")
    n = to_value_raw(Decimal(value), 1, "Ingrese un número entero positivo.")
    return ParsedValue(n, str(n))


def _parse_distance(value: str) -> ParsedValue:
    km_m = _KM_RX.search(value)
    if km_m:
        km = Decimal(km_m.group(1))
        if km <= 0:
            raise InvalidValue("Ingrese un número positivo (m o km).")
        raw = to_value_raw(km, 1000, "Ingrese un número positivo (m o km).")
        return ParsedValue(raw, f"{format_number(km)} km")

    meters = _leading_number(value)
    if meters is None or meters <= 0:
        raise InvalidValue("Ingrese un número positivo (m o km).")
    raw = to_value_raw(meters, 1, "Ingrese un número positivo (m o km).")
    return ParsedValue(raw, f"{format_number(meters)} m")


def _parse_weight(value: str) -> ParsedValue:
    kg = _leading_number(value)
    if kg is None or kg <= 0:
        raise InvalidValue("Ingrese un número positivo (kg).")
    raw = to_value_raw(kg, 1000, "Ingrese un número positivo (kg).")
    return ParsedValue(raw, f"{format_number(kg)} kg")


# ---------- Entradas públicas ----------

def parse_input(item: MetricInput) -> ParsedValue:
    if isinstance(item, TimeInput):
        return _parse_time_smart(item.text) if item.smart else _parse_time_strict(item.text)
    if isinstance(item, RepsInput):
        return _parse_reps(item.text)
    if isinstance(item, DistanceInput):
        return _parse_distance(item.text)
    if isinstance(item, WeightInput):
        return _parse_weight(item.text)
    raise TypeError(f"Entrada no soportada: {item!r}")


def parse_value(metric_type: str, text: Optional[str], smart: bool = False) -> ParsedValue:
    """
    Convierte el texto ingresado a (value_raw, value_display):
      • time     -> milisegundos (estricto mm:ss / hh:mm:ss, o "smart": 1h 30m, 12mins 30sec…)
      • reps     -> entero
      • distance -> metros (acepta sufijo km)
      • weight   -> gramos (el texto es kg)
    Lanza InvalidFormat / InvalidValue (ambos ValidationError).
    """
    return parse_input(build_input(metric_type, text, smart))


def format_raw_value(metric_type: str, value_raw: int) -> str:
    """Representación legible de un value_raw ya canónico (ej. promedios)."""
    raw = int(value_raw)
    if metric_type == METRIC_TIME:
        total_sec, _ms = divmod(raw, 1000)
        hh, rem = divmod(total_sec, 3600)
        mm, ss = divmod(rem, 60)
        return format_clock(hh, mm, ss)
    if metric_type == METRIC_DISTANCE:
        return f"{raw} m"
    if metric_type == METRIC_WEIGHT:
        return f"{format_number(Decimal(raw) / 1000)} kg"
    return str(raw)
