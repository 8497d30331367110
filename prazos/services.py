"""
Prazos Service Layer

Business logic for deadline simulation and court calendar maintenance,
separated from views for better testability and API support. Bridges the
Django ORM and settings with the framework-agnostic code in the core module.
"""
import logging
from datetime import date
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q

from core.deadline_engine import (
    CalendarSource,
    InvalidSimulationInput,
    SimulationInput,
    parse_iso_date,
    simulate,
)
from core.gemini_client import (
    CalendarExtractionResult,
    GeminiCalendarExtractor,
    GeminiDeadlineAdvisor,
)
from .models import CalendarExtraction, CourtCalendar, CourtHoliday, CourtSuspension, Holiday

logger = logging.getLogger(__name__)

AI_FALLBACK_MESSAGE = "Não foi possível gerar a sugestão da IA neste momento."

API_KEY_MISSING_MESSAGE = "Gemini API key not configured. Please set GEMINI_API_KEY in .env file."


class DjangoCalendarSource:
    """CalendarSource backed by the Holiday / CourtHoliday / CourtSuspension tables."""

    def list_national_and_state_holidays(self, start: date, end: date, state: Optional[str]) -> list:
        scope = Q(uf__isnull=True)
        if state:
            scope |= Q(uf=state)
        return list(
            Holiday.objects.filter(scope, data__gte=start, data__lte=end)
            .values_list("data", flat=True)
        )

    def list_court_holidays(self, start: date, end: date, court: str) -> list:
        return list(
            CourtHoliday.objects.filter(
                calendar__tribunal_codigo=court,
                prazos_prorrogados=True,
                data__gte=start,
                data__lte=end,
            ).values_list("data", flat=True)
        )

    def list_court_suspensions(self, start: date, end: date, court: str) -> list:
        return list(
            CourtSuspension.objects.filter(
                calendar__tribunal_codigo=court,
                suspende_prazos=True,
                data_inicio__lte=end,
                data_fim__gte=start,
            ).values_list("data_inicio", "data_fim")
        )


def generate_ai_suggestion(params: SimulationInput, result) -> str:
    """
    Best-effort AI narrative for a computed deadline.

    Never raises. Any failure (missing key, timeout, API error, empty reply)
    gives AI_FALLBACK_MESSAGE.
    """
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        return AI_FALLBACK_MESSAGE

    try:
        advisor = GeminiDeadlineAdvisor(
            api_key,
            settings.GEMINI_MODEL_NAME,
            timeout_seconds=settings.PRAZOS_AI_TIMEOUT_SECONDS,
        )
        advice = advisor.advise(params, result)
    except Exception as e:
        logger.warning("AI suggestion unavailable: %s: %s", type(e).__name__, e)
        return AI_FALLBACK_MESSAGE

    if not advice.success:
        logger.warning("AI suggestion unavailable: %s", advice.error)
        return AI_FALLBACK_MESSAGE
    return advice.text


def run_simulation(
    payload: dict,
    today: Optional[date] = None,
    with_ai: bool = True,
    source: Optional[CalendarSource] = None,
) -> dict:
    """
    Compute a deadline from a request payload.

    The deterministic computation runs first and is complete on its own; the
    AI narrative is an optional stage that runs afterwards and only when
    with_ai is set, PRAZOS_AI_ENABLED is on and a Gemini key is configured.

    Args:
        payload: Decoded JSON body (see SimulationInput.from_payload)
        today: Reference day for remaining-days and urgency warnings
        with_ai: Whether to attempt the AI narrative
        source: Calendar data; defaults to the database

    Returns:
        Response dict with the Portuguese field names

    Raises:
        InvalidSimulationInput: If the payload is invalid (before any query)
    """
    params = SimulationInput.from_payload(payload)
    result = simulate(params, source or DjangoCalendarSource(), today=today)
    logger.info(
        "Deadline computed: %s + %d %s -> %s",
        result.intimation_date.isoformat(),
        result.effective_days,
        result.counting_mode.value,
        result.end_date.isoformat(),
    )

    if with_ai and settings.PRAZOS_AI_ENABLED and settings.GEMINI_API_KEY:
        result.ai_suggestion = generate_ai_suggestion(params, result)

    return result.to_dict()


def extract_calendar_from_pdf(
    uploaded_file, tribunal_codigo: str = "", ano: Optional[int] = None
) -> CalendarExtractionResult:
    """
    Extract holidays and suspensions from an uploaded ordinance PDF.

    Args:
        uploaded_file: Django UploadedFile object
        tribunal_codigo: Court the ordinance belongs to
        ano: Year assumed for dates written without one

    Returns:
        CalendarExtractionResult with entries or error
    """
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        return CalendarExtractionResult(success=False, error=API_KEY_MISSING_MESSAGE)

    try:
        pdf_bytes = uploaded_file.read()
        extractor = GeminiCalendarExtractor(api_key, settings.GEMINI_MODEL_NAME)
        return extractor.extract_from_pdf(pdf_bytes, tribunal_codigo=tribunal_codigo, ano=ano)

    except Exception as e:
        return CalendarExtractionResult(
            success=False,
            error=f"An error occurred during extraction: {str(e)}"
        )


def extract_calendar_from_text(
    texto: str, tribunal_codigo: str = "", ano: Optional[int] = None
) -> CalendarExtractionResult:
    """
    Extract holidays and suspensions from pasted ordinance text.

    Text beyond core.gemini_client.MAX_ORDINANCE_CHARS is not sent to the model.
    """
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        return CalendarExtractionResult(success=False, error=API_KEY_MISSING_MESSAGE)

    try:
        extractor = GeminiCalendarExtractor(api_key, settings.GEMINI_MODEL_NAME)
        return extractor.extract_from_text(texto, tribunal_codigo=tribunal_codigo, ano=ano)

    except Exception as e:
        return CalendarExtractionResult(
            success=False,
            error=f"An error occurred during extraction: {str(e)}"
        )


def save_calendar_extraction(
    user,
    tribunal_codigo: str,
    filename: str,
    file_size: int,
    result: CalendarExtractionResult,
    file_type: str = "PDF",
) -> CalendarExtraction:
    """
    Save an extraction (successful or not) for later review.

    Args:
        user: Django User object
        tribunal_codigo: Court the ordinance belongs to
        filename: Original filename
        file_size: File size in bytes
        result: Output of extract_calendar_from_pdf or extract_calendar_from_text
        file_type: "PDF" for uploads, "TEXTO" for pasted ordinance text

    Returns:
        CalendarExtraction model instance
    """
    return CalendarExtraction.objects.create(
        user=user,
        tribunal_codigo=tribunal_codigo.strip().upper(),
        filename=filename,
        file_type=file_type,
        file_size=file_size,
        page_count=result.page_count,
        status="PROCESSADO" if result.success else "ERRO",
        feriados=result.feriados,
        suspensoes=result.suspensoes,
        erro_processamento=result.error or "",
        prompt_tokens=result.prompt_tokens,
        completion_tokens=result.completion_tokens,
        total_tokens=result.total_tokens,
        model_name=result.model_name,
    )


def _choice(value, choices, default):
    value = str(value or "").strip().upper()
    return value if value in {key for key, _ in choices} else default


def _flag(entry: dict, key: str, default: bool = True) -> bool:
    value = entry.get(key, default)
    return default if value is None else bool(value)


@transaction.atomic
def import_calendar_extraction(extraction: CalendarExtraction) -> tuple[int, int]:
    """
    Create court holidays and suspensions from a reviewed extraction.

    Entries with missing or unparseable dates, or inverted ranges, are
    skipped. Entries already present are not duplicated.

    Returns:
        Tuple of (holidays_created, suspensions_created)
    """
    calendar, _ = CourtCalendar.objects.get_or_create(tribunal_codigo=extraction.tribunal_codigo)
    holidays_created = 0
    suspensions_created = 0

    for entry in extraction.feriados:
        try:
            data = parse_iso_date(entry.get("data"))
        except (InvalidSimulationInput, AttributeError):
            logger.info("Skipping holiday without a valid date: %r", entry)
            continue
        _, created = CourtHoliday.objects.get_or_create(
            calendar=calendar,
            data=data,
            nome=str(entry.get("nome") or "Feriado")[:255],
            defaults={
                "tipo": _choice(entry.get("tipo"), CourtHoliday.TIPO_CHOICES, "FORENSE"),
                "suspende_expediente": _flag(entry, "suspende_expediente"),
                "prazos_prorrogados": _flag(entry, "prazos_prorrogados"),
                "fundamento_legal": str(entry.get("fundamento_legal") or "")[:255],
            },
        )
        holidays_created += int(created)

    for entry in extraction.suspensoes:
        try:
            data_inicio = parse_iso_date(entry.get("data_inicio"))
            data_fim = parse_iso_date(entry.get("data_fim"))
        except (InvalidSimulationInput, AttributeError):
            logger.info("Skipping suspension without valid dates: %r", entry)
            continue
        if data_fim < data_inicio:
            logger.info("Skipping inverted suspension range: %r", entry)
            continue
        _, created = CourtSuspension.objects.get_or_create(
            calendar=calendar,
            data_inicio=data_inicio,
            data_fim=data_fim,
            nome=str(entry.get("nome") or "Suspensão")[:255],
            defaults={
                "tipo": _choice(entry.get("tipo"), CourtSuspension.TIPO_CHOICES, "SUSPENSAO_PORTARIA"),
                "suspende_prazos": _flag(entry, "suspende_prazos"),
                "suspende_audiencias": _flag(entry, "suspende_audiencias"),
                "fundamento_legal": str(entry.get("fundamento_legal") or "")[:255],
            },
        )
        suspensions_created += int(created)

    extraction.status = "IMPORTADO"
    extraction.save(update_fields=["status"])
    logger.info(
        "Imported extraction %s into %s: %d holidays, %d suspensions",
        extraction.pk, calendar, holidays_created, suspensions_created,
    )
    return holidays_created, suspensions_created


def get_user_extractions(user, limit: int = 20):
    """Get user's ordinance extraction history."""
    return CalendarExtraction.objects.filter(user=user)[:limit]
