"""
Deadline Engine

Pure Python business logic, framework-agnostic.
This module should have NO Django imports.

Computes Brazilian procedural deadlines (CPC/2015) from an intimation date:
business-day counting over holiday and suspension calendars, start-date rules
per intimation method (Art. 231), statutory doubling (Arts. 180, 183, 186, 229)
and the forensic recess (Art. 220). Every step is recorded in an ordered
audit log returned with the result.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)

# Calendar search window = duration * WINDOW_MULTIPLIER days after the base date
WINDOW_MULTIPLIER = 4

# Art. 231 §3: electronic notice is deemed received after 3 business days
ELECTRONIC_NOTICE_BUSINESS_DAYS = 3

# Internal safety margin before the official due date
INTERNAL_MARGIN_BUSINESS_DAYS = 2

# Longest duration accepted, in days
MAX_DAYS = 3650

# Calendar room needed after the base date besides the (doubled) window:
# recess extension, working-day snaps and the next year's recess bounds
DATE_HEADROOM_DAYS = 400

WEEKDAY_NAMES_PT = (
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo",
)


class InvalidSimulationInput(ValueError):
    """Raised when a simulation request cannot be computed."""

    pass


class CountingMode(str, Enum):
    BUSINESS_DAYS = "DIAS_UTEIS"
    CALENDAR_DAYS = "DIAS_CORRIDOS"
    # Accepted but counted as calendar days; no hour-level precision.
    HOURS = "HORAS"

    @property
    def label(self) -> str:
        return "dias úteis" if self is CountingMode.BUSINESS_DAYS else "dias corridos"


class IntimationMethod(str, Enum):
    ELECTRONIC_NOTICE = "INTIMACAO_ELETRONICA"
    SYSTEM_AVAILABILITY = "DISPONIBILIZACAO_SISTEMA"
    OFFICIAL_GAZETTE_INTIMATION = "INTIMACAO_DIARIO_OFICIAL"
    OFFICIAL_GAZETTE_PUBLICATION = "PUBLICACAO_DIARIO"
    RETURN_RECEIPT_FILING = "JUNTADA_AR"
    WRIT_FILING = "JUNTADA_MANDADO"
    OTHER = "OUTRO"

    @classmethod
    def parse(cls, value: Optional[str]) -> "IntimationMethod":
        """Case-insensitive lookup; anything unknown maps to OTHER."""
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            return cls.OTHER


class PartyType(str, Enum):
    FEDERAL_TREASURY = "FAZENDA_FEDERAL"
    STATE_TREASURY = "FAZENDA_ESTADUAL"
    MUNICIPAL_TREASURY = "FAZENDA_MUNICIPAL"
    AUTARCHY = "AUTARQUIA"
    PUBLIC_FOUNDATION = "FUNDACAO_PUBLICA"
    PUBLIC_PROSECUTOR = "MINISTERIO_PUBLICO"
    PUBLIC_DEFENDER = "DEFENSORIA_PUBLICA"


TREASURY_PARTY_TYPES = frozenset(
    {
        PartyType.FEDERAL_TREASURY,
        PartyType.STATE_TREASURY,
        PartyType.MUNICIPAL_TREASURY,
        PartyType.AUTARCHY,
        PartyType.PUBLIC_FOUNDATION,
    }
)


class SpecialRule(str, Enum):
    DOUBLE_TREASURY = "DOBRA_FAZENDA"
    DOUBLE_PROSECUTOR = "DOBRA_MP"
    DOUBLE_DEFENDER = "DOBRA_DEFENSORIA"
    DOUBLE_CO_LITIGANTS = "DOBRA_LITISCONSORCIO"
    RECESS_SUSPENSION = "SUSPENSAO_RECESSO"

    @classmethod
    def parse_all(cls, values: Iterable[str]) -> frozenset:
        """Known flags only; unknown strings are inert."""
        rules = set()
        for value in values:
            try:
                rules.add(cls(str(value).strip().upper()))
            except ValueError:
                continue
        return frozenset(rules)


def format_date_br(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def parse_iso_date(value) -> date:
    """
    Parse an ISO date (or datetime) string, dropping any time of day.

    Raises:
        InvalidSimulationInput: If the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidSimulationInput("data_intimacao é obrigatória")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidSimulationInput(f"data_intimacao inválida: {value!r}")


# ============================================================
# Input / output types
# ============================================================


@dataclass(frozen=True)
class Party:
    """A litigant as seen by the doubling rules."""

    pole: str = ""
    party_type: str = ""
    double_deadline: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Party":
        if not isinstance(data, dict):
            raise InvalidSimulationInput("Cada parte deve ser um objeto")
        return cls(
            pole=str(data.get("polo") or ""),
            party_type=str(data.get("tipo_parte") or "").strip().upper(),
            double_deadline=bool(data.get("prazo_dobro", False)),
        )

    def is_type(self, *types: PartyType) -> bool:
        return self.party_type in {t.value for t in types}


@dataclass(frozen=True)
class SimulationInput:
    """Parameters of one deadline computation (request-scoped)."""

    days: int
    intimation_date: date
    counting_mode: CountingMode = CountingMode.BUSINESS_DAYS
    intimation_method: IntimationMethod = IntimationMethod.OTHER
    raw_intimation_method: str = ""
    court_code: Optional[str] = None
    state_code: Optional[str] = None
    legal_basis: Optional[str] = None
    deadline_type: Optional[str] = None
    parties: tuple = ()
    special_rules: frozenset = frozenset()
    raw_special_rules: tuple = ()

    @classmethod
    def from_payload(cls, payload: dict) -> "SimulationInput":
        """
        Build a SimulationInput from a JSON request body.

        Args:
            payload: Decoded JSON object using the Portuguese field names

        Returns:
            A validated SimulationInput

        Raises:
            InvalidSimulationInput: For a missing, invalid or out-of-range date,
                a non-positive or too long duration, an unknown counting mode
                or malformed lists
        """
        if not isinstance(payload, dict):
            raise InvalidSimulationInput("O corpo da requisição deve ser um objeto JSON")

        intimation_date = parse_iso_date(payload.get("data_intimacao"))

        raw_days = payload.get("dias")
        if isinstance(raw_days, bool):
            raise InvalidSimulationInput("dias deve ser um inteiro positivo")
        try:
            days = int(raw_days)
        except (TypeError, ValueError, OverflowError):
            raise InvalidSimulationInput("dias deve ser um inteiro positivo")
        if days <= 0 or (isinstance(raw_days, float) and not raw_days.is_integer()):
            raise InvalidSimulationInput("dias deve ser um inteiro positivo")
        if days > MAX_DAYS:
            raise InvalidSimulationInput(f"dias deve ser no máximo {MAX_DAYS}")
        try:
            intimation_date + timedelta(days=days * 2 * WINDOW_MULTIPLIER + DATE_HEADROOM_DAYS)
        except OverflowError:
            raise InvalidSimulationInput("data_intimacao fora do intervalo suportado")

        raw_mode = str(payload.get("contagem_tipo") or CountingMode.BUSINESS_DAYS.value)
        try:
            counting_mode = CountingMode(raw_mode.strip().upper())
        except ValueError:
            raise InvalidSimulationInput(f"contagem_tipo inválido: {raw_mode!r}")

        raw_parties = payload.get("partes") or []
        raw_rules = payload.get("regras_especiais") or []
        if not isinstance(raw_parties, list):
            raise InvalidSimulationInput("partes deve ser uma lista")
        if not isinstance(raw_rules, list):
            raise InvalidSimulationInput("regras_especiais deve ser uma lista")

        raw_method = str(payload.get("metodo_intimacao") or "")

        return cls(
            days=days,
            intimation_date=intimation_date,
            counting_mode=counting_mode,
            intimation_method=IntimationMethod.parse(raw_method),
            raw_intimation_method=raw_method,
            court_code=(payload.get("tribunal_codigo") or None),
            state_code=(str(payload.get("uf")).strip().upper() if payload.get("uf") else None),
            legal_basis=payload.get("artigo_legal") or None,
            deadline_type=payload.get("tipo_prazo") or None,
            parties=tuple(Party.from_dict(p) for p in raw_parties),
            special_rules=SpecialRule.parse_all(raw_rules),
            raw_special_rules=tuple(str(r) for r in raw_rules),
        )

    def has_rule(self, rule: SpecialRule) -> bool:
        return rule in self.special_rules


@dataclass(frozen=True)
class LogStep:
    """One entry of the audit trail."""

    step: int
    description: str
    result: str

    def to_dict(self) -> dict:
        return {"etapa": self.step, "descricao": self.description, "resultado": self.result}


class CalculationLog:
    """Append-only, auto-numbered audit trail."""

    def __init__(self):
        self.steps: list[LogStep] = []

    def add(self, description: str, result: str) -> LogStep:
        entry = LogStep(step=len(self.steps) + 1, description=description, result=result)
        self.steps.append(entry)
        logger.debug("step %d: %s -> %s", entry.step, description, result)
        return entry

    def __len__(self):
        return len(self.steps)


@dataclass(frozen=True)
class DoublingOutcome:
    effective_days: int
    applied: bool = False
    reason: str = ""


@dataclass
class SimulationResult:
    """Outcome of simulate(); to_dict() gives the API response shape."""

    intimation_date: date
    start_date: date
    end_date: date
    original_days: int
    effective_days: int
    counting_mode: CountingMode
    doubling: DoublingOutcome
    holiday_count: int
    suspension_count: int
    log: list
    internal_due_date: Optional[date] = None
    business_days_remaining: Optional[int] = None
    warnings: list = field(default_factory=list)
    legal_basis: Optional[str] = None
    deadline_type: Optional[str] = None
    ai_suggestion: str = ""

    @property
    def calendar_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_dict(self) -> dict:
        return {
            "data_intimacao": self.intimation_date.isoformat(),
            "data_inicio_contagem": self.start_date.isoformat(),
            "data_fim_prazo": self.end_date.isoformat(),
            "prazo_original": self.original_days,
            "prazo_efetivo": self.effective_days,
            "contagem_tipo": self.counting_mode.value,
            "dias_corridos": self.calendar_days,
            "dobra_aplicada": self.doubling.applied,
            "dobra_motivo": self.doubling.reason,
            "feriados_no_periodo": self.holiday_count,
            "suspensoes_no_periodo": self.suspension_count,
            "log_calculo": [step.to_dict() for step in self.log],
            "prazo_interno": (
                self.internal_due_date.isoformat() if self.internal_due_date else None
            ),
            "dias_uteis_restantes": self.business_days_remaining,
            "alertas": list(self.warnings),
            "artigo_legal": self.legal_basis,
            "tipo_prazo": self.deadline_type,
            "sugestao_ia": self.ai_suggestion,
        }


# ============================================================
# Calendar loading
# ============================================================


class CalendarSource(Protocol):
    """Read-only access to holiday and suspension reference data."""

    def list_national_and_state_holidays(
        self, start: date, end: date, state: Optional[str]
    ) -> list:
        """Holiday dates in [start, end]: national ones plus `state`'s when given."""
        ...

    def list_court_holidays(self, start: date, end: date, court: str) -> list:
        """Court holiday dates in [start, end] that extend deadlines."""
        ...

    def list_court_suspensions(self, start: date, end: date, court: str) -> list:
        """(first_day, last_day) ranges overlapping [start, end] that suspend deadlines."""
        ...


@dataclass(frozen=True)
class CalendarSnapshot:
    """Merged non-working days, keyed by date ordinal."""

    non_working: frozenset = frozenset()
    holiday_count: int = 0
    court_holiday_count: int = 0
    suspension_count: int = 0

    def is_working_day(self, day: date) -> bool:
        return day.weekday() < 5 and day.toordinal() not in self.non_working

    def next_working_day(self, day: date) -> date:
        """The given day if it is a working day, else the next one."""
        while not self.is_working_day(day):
            day += timedelta(days=1)
        return day


def load_non_working_days(
    source: CalendarSource,
    base_date: date,
    window_days: int,
    state_code: Optional[str] = None,
    court_code: Optional[str] = None,
) -> CalendarSnapshot:
    """
    Fetch and merge every non-working day in the search window.

    Args:
        source: Calendar reference data
        base_date: First day of the window
        window_days: Length of the window in days (must be positive)
        state_code: UF for state holidays; national only when absent
        court_code: Court for court holidays and suspensions; skipped when absent

    Returns:
        CalendarSnapshot with the merged day ordinals and per-source counts
    """
    if window_days <= 0:
        raise ValueError("window_days must be positive")

    end = base_date + timedelta(days=window_days)
    holidays = list(source.list_national_and_state_holidays(base_date, end, state_code or None))
    court_holidays = []
    suspensions = []
    if court_code:
        court_holidays = list(source.list_court_holidays(base_date, end, court_code))
        suspensions = list(source.list_court_suspensions(base_date, end, court_code))

    days = {d.toordinal() for d in holidays}
    days.update(d.toordinal() for d in court_holidays)
    for first_day, last_day in suspensions:
        days.update(range(first_day.toordinal(), last_day.toordinal() + 1))

    return CalendarSnapshot(
        non_working=frozenset(days),
        holiday_count=len(holidays),
        court_holiday_count=len(court_holidays),
        suspension_count=len(suspensions),
    )


# ============================================================
# Pipeline stages
# ============================================================


def resolve_start_date(
    base_date: date,
    method: IntimationMethod,
    mode: CountingMode,
    calendar: CalendarSnapshot,
    log: CalculationLog,
    raw_method: str = "",
) -> date:
    """
    Day on which counting begins, per Art. 231 CPC.

    In business-day mode the result is moved forward to a working day.
    """
    if method in (IntimationMethod.ELECTRONIC_NOTICE, IntimationMethod.SYSTEM_AVAILABILITY):
        counted = 0
        cursor = base_date + timedelta(days=1)
        while True:
            if calendar.is_working_day(cursor):
                counted += 1
            if counted >= ELECTRONIC_NOTICE_BUSINESS_DAYS:
                break
            cursor += timedelta(days=1)
        start = cursor + timedelta(days=1)
        log.add(
            "Intimação eletrônica: disponibilização + 3 dias úteis (Art. 231 §3 CPC)",
            f"Considerada feita em {format_date_br(cursor)}. "
            f"Prazo inicia em {format_date_br(start)}",
        )
    elif method in (
        IntimationMethod.OFFICIAL_GAZETTE_INTIMATION,
        IntimationMethod.OFFICIAL_GAZETTE_PUBLICATION,
    ):
        start = base_date + timedelta(days=1)
        log.add(
            "Publicação no Diário Oficial (Art. 231 VII CPC)",
            f"Prazo inicia no primeiro dia útil após publicação: {format_date_br(start)}",
        )
    elif method in (IntimationMethod.RETURN_RECEIPT_FILING, IntimationMethod.WRIT_FILING):
        start = base_date + timedelta(days=1)
        log.add(
            "Juntada aos autos (Art. 231 CPC)",
            f"Prazo inicia no dia útil seguinte: {format_date_br(start)}",
        )
    else:
        start = base_date + timedelta(days=1)
        log.add(
            f"Evento gatilho: {raw_method or method.value}",
            f"Prazo inicia no dia seguinte: {format_date_br(start)}",
        )

    if mode is CountingMode.BUSINESS_DAYS:
        start = calendar.next_working_day(start)
        log.add("Ajuste: início da contagem em dia útil (Art. 224 §1 CPC)", format_date_br(start))

    return start


def evaluate_doubling(days: int, parties: Iterable[Party], rules: frozenset) -> DoublingOutcome:
    """
    Apply the first matching "prazo em dobro" rule.

    Order: Public Treasury, Public Prosecutor, Public Defender, co-litigants
    with distinct counsel. At most one rule applies, so the result is never
    more than twice the original.
    """
    flagged = [p for p in parties if p.double_deadline]

    if any(p.is_type(*TREASURY_PARTY_TYPES) for p in flagged) or (
        SpecialRule.DOUBLE_TREASURY in rules
    ):
        reason = "Fazenda Pública - Art. 183 CPC"
    elif any(p.is_type(PartyType.PUBLIC_PROSECUTOR) for p in flagged) or (
        SpecialRule.DOUBLE_PROSECUTOR in rules
    ):
        reason = "Ministério Público - Art. 180 CPC"
    elif any(p.is_type(PartyType.PUBLIC_DEFENDER) for p in flagged) or (
        SpecialRule.DOUBLE_DEFENDER in rules
    ):
        reason = "Defensoria Pública - Art. 186 CPC"
    elif SpecialRule.DOUBLE_CO_LITIGANTS in rules:
        reason = "Litisconsórcio com advogados diferentes - Art. 229 CPC"
    else:
        return DoublingOutcome(effective_days=days)

    return DoublingOutcome(effective_days=days * 2, applied=True, reason=reason)


def count_days(
    start: date,
    effective_days: int,
    mode: CountingMode,
    calendar: CalendarSnapshot,
    log: CalculationLog,
) -> date:
    """End date of the deadline; the start date counts as day 1."""
    if mode is CountingMode.BUSINESS_DAYS:
        counted = 0
        cursor = start
        while True:
            if calendar.is_working_day(cursor):
                counted += 1
            if counted >= effective_days:
                break
            cursor += timedelta(days=1)
        end = cursor
        log.add(
            f"Contagem de {effective_days} dias úteis (Art. 219 CPC)",
            f"De {format_date_br(start)} até {format_date_br(end)}",
        )
    else:
        end = start + timedelta(days=effective_days - 1)
        log.add(
            f"Contagem de {effective_days} dias corridos",
            f"De {format_date_br(start)} até {format_date_br(end)}",
        )
    return end


def recess_window(year: int) -> tuple[date, date]:
    """Forensic recess (Art. 220 CPC): Dec 20 of `year` to Jan 20 of the next."""
    return date(year, 12, 20), date(year + 1, 1, 20)


def apply_recess(
    start: date,
    end: date,
    reference_year: int,
    mode: CountingMode,
    calendar: CalendarSnapshot,
    log: CalculationLog,
) -> tuple[date, int]:
    """
    Extend `end` by its inclusive overlap with the recess window.

    Runs once. A second overlap produced by the extension itself is not
    compensated again.

    Returns:
        Tuple of (new_end_date, overlap_days)
    """
    recess_start, recess_end = recess_window(reference_year)
    if end < recess_start or start > recess_end:
        return end, 0

    overlap = (min(end, recess_end) - max(start, recess_start)).days + 1
    if overlap <= 0:
        return end, 0

    end = end + timedelta(days=overlap)
    if mode is CountingMode.BUSINESS_DAYS:
        end = calendar.next_working_day(end)
    log.add(
        "Recesso forense (Art. 220 CPC): 20/dez a 20/jan - prazos suspensos",
        f"{overlap} dias suspensos. Novo vencimento: {format_date_br(end)}",
    )
    return end, overlap


def internal_due_date(end: date, calendar: CalendarSnapshot) -> date:
    """Safety date INTERNAL_MARGIN_BUSINESS_DAYS working days before `end`."""
    cursor = end
    counted = 0
    while counted < INTERNAL_MARGIN_BUSINESS_DAYS:
        cursor -= timedelta(days=1)
        if calendar.is_working_day(cursor):
            counted += 1
    return cursor


def business_days_between(today: date, end: date, calendar: CalendarSnapshot) -> int:
    """Working days from `today` (exclusive) to `end` (inclusive); negative if past."""
    if today == end:
        return 0
    forward = end > today
    low, high = (today, end) if forward else (end, today)
    count = 0
    cursor = low + timedelta(days=1)
    while cursor <= high:
        if calendar.is_working_day(cursor):
            count += 1
        cursor += timedelta(days=1)
    return count if forward else -count


def deadline_warnings(params: SimulationInput, remaining: Optional[int], end: date,
                      recess_days: int) -> list:
    warnings = []
    if remaining is not None:
        if remaining < 0:
            warnings.append(
                f"ALERTA CRÍTICO: Prazo VENCIDO há {abs(remaining)} dia(s) útil(eis)!"
            )
        elif remaining == 0:
            warnings.append(f"ALERTA: Prazo vence HOJE ({format_date_br(end)})!")
        elif remaining <= 2:
            warnings.append(
                f"URGENTE: Restam apenas {remaining} dia(s) útil(eis) para o prazo!"
            )
        elif remaining <= 5:
            warnings.append(f"ATENÇÃO: Restam {remaining} dias úteis para o prazo.")

    if recess_days:
        warnings.append(
            f"Recesso forense (Art. 220 CPC): vencimento prorrogado em {recess_days} dia(s)."
        )
    if params.counting_mode is CountingMode.HOURS:
        warnings.append(
            "Prazo em horas calculado como dias corridos. Confirme o horário de vencimento."
        )
    return warnings


# ============================================================
# Pipeline
# ============================================================


def simulate(
    params: SimulationInput,
    source: CalendarSource,
    today: Optional[date] = None,
) -> SimulationResult:
    """
    Run the deterministic deadline computation.

    Args:
        params: Validated simulation input
        source: Calendar reference data (read once per call)
        today: Reference day for the remaining-days count and urgency
            warnings; both are omitted when None

    Returns:
        SimulationResult with an empty ai_suggestion
    """
    log = CalculationLog()
    mode = params.counting_mode
    base_date = params.intimation_date

    log.add("Data da intimação/evento", format_date_br(base_date))

    calendar = load_non_working_days(
        source,
        base_date,
        params.days * WINDOW_MULTIPLIER,
        state_code=params.state_code,
        court_code=params.court_code,
    )
    log.add(
        "Feriados e suspensões carregados",
        f"{calendar.holiday_count} feriados gerais, "
        f"{calendar.court_holiday_count} feriados do tribunal, "
        f"{calendar.suspension_count} suspensões",
    )

    start = resolve_start_date(
        base_date,
        params.intimation_method,
        mode,
        calendar,
        log,
        raw_method=params.raw_intimation_method,
    )

    doubling = evaluate_doubling(params.days, params.parties, params.special_rules)
    if doubling.applied:
        log.add(
            f"Prazo em dobro aplicado: {doubling.reason}",
            f"{params.days} dias → {doubling.effective_days} dias",
        )

    end = count_days(start, doubling.effective_days, mode, calendar, log)

    recess_days = 0
    if params.has_rule(SpecialRule.RECESS_SUSPENSION):
        end, recess_days = apply_recess(start, end, base_date.year, mode, calendar, log)

    if mode is CountingMode.BUSINESS_DAYS:
        end = calendar.next_working_day(end)

    log.add(
        "Data final do prazo",
        f"{format_date_br(end)} ({WEEKDAY_NAMES_PT[end.weekday()]})",
    )

    remaining = business_days_between(today, end, calendar) if today else None

    return SimulationResult(
        intimation_date=base_date,
        start_date=start,
        end_date=end,
        original_days=params.days,
        effective_days=doubling.effective_days,
        counting_mode=mode,
        doubling=doubling,
        holiday_count=calendar.holiday_count + calendar.court_holiday_count,
        suspension_count=calendar.suspension_count,
        log=list(log.steps),
        internal_due_date=internal_due_date(end, calendar),
        business_days_remaining=remaining,
        warnings=deadline_warnings(params, remaining, end, recess_days),
        legal_basis=params.legal_basis,
        deadline_type=params.deadline_type,
    )
