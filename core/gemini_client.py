"""
Gemini API Client for deadline review and court calendar extraction

Pure Python implementation - NO Django imports.
Uses the google-genai SDK for all API calls:
- GeminiDeadlineAdvisor writes a short risk narrative for a computed deadline.
- GeminiCalendarExtractor reads a court ordinance (PDF or text) and returns
  the holidays and suspensions it declares as structured data.
"""

import io
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

from google import genai
from google.genai import types
from pypdf import PdfReader

logger = logging.getLogger(__name__)

# Default model name, can be overridden via GEMINI_MODEL_NAME environment variable
DEFAULT_MODEL_NAME = "gemini-2.5-flash"

DEFAULT_TIMEOUT_SECONDS = 20

# Ordinance text sent to the model is capped at this many characters
MAX_ORDINANCE_CHARS = 12000

FINISH_REASON_MESSAGES = {
    "MAX_TOKENS": "Response was truncated due to maximum token limit",
    "SAFETY": "Response was blocked due to safety filters",
    "RECITATION": "Response was blocked due to recitation concerns",
    "OTHER": "Response generation stopped unexpectedly",
}


@dataclass
class AdviceResult:
    """Result of a deadline risk review."""

    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass
class CalendarExtractionResult:
    """Holidays and suspensions extracted from a court ordinance."""

    success: bool
    feriados: list = field(default_factory=list)
    suspensoes: list = field(default_factory=list)
    raw_text: Optional[str] = None
    error: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    page_count: Optional[int] = None
    model_name: Optional[str] = None


class ResponseIncompleteError(Exception):
    """Raised when Gemini returns no usable candidate."""

    pass


def validate_pdf_bytes(pdf_bytes: bytes) -> tuple[bool, str]:
    """
    Validate that bytes represent a valid PDF file.

    Args:
        pdf_bytes: Raw file content

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not pdf_bytes:
        return False, "File is empty"

    if not pdf_bytes.startswith(b"%PDF-"):
        return False, "File is not a valid PDF"

    return True, ""


def get_page_count(pdf_bytes: bytes) -> int:
    """
    Get the number of pages in a PDF.

    Args:
        pdf_bytes: Raw PDF file content

    Returns:
        Number of pages in the PDF
    """
    reader = PdfReader(io.BytesIO(pdf_bytes))
    return len(reader.pages)


def parse_calendar_json(text: str) -> tuple[list, list]:
    """
    Pull the {"feriados": [...], "suspensoes": [...]} object out of a reply.

    The model sometimes wraps the JSON in Markdown fences or prose, so the
    outermost braces are located first.

    Raises:
        ValueError: If no JSON object can be decoded
    """
    match = re.search(r"\{[\s\S]*\}", text or "")
    if not match:
        raise ValueError("No JSON found in response")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")

    feriados = data.get("feriados") or []
    suspensoes = data.get("suspensoes") or []
    if not isinstance(feriados, list) or not isinstance(suspensoes, list):
        raise ValueError("feriados and suspensoes must be lists")
    return feriados, suspensoes


def _usage(response) -> tuple[Optional[int], Optional[int], Optional[int]]:
    usage = response.usage_metadata
    if not usage:
        return None, None, None
    return usage.prompt_token_count, usage.candidates_token_count, usage.total_token_count


def _response_text(response) -> str:
    """
    Text of the first candidate.

    Raises:
        ResponseIncompleteError: No candidates, truncated/blocked, or empty text
    """
    if not response.candidates:
        raise ResponseIncompleteError("No response from Gemini API")

    finish_reason = response.candidates[0].finish_reason
    if finish_reason and finish_reason.name not in ("STOP", "FINISH_REASON_UNSPECIFIED"):
        raise ResponseIncompleteError(
            FINISH_REASON_MESSAGES.get(
                finish_reason.name, f"Response incomplete (finish_reason: {finish_reason.name})"
            )
        )

    text = response.text if response.text else ""
    if not text.strip():
        raise ResponseIncompleteError("Empty response from Gemini API")
    return text


class _GeminiClientBase:
    def __init__(self, api_key: str, model_name: str = None, timeout_seconds: float = None):
        """
        Initialize the client with a Gemini API key.

        Args:
            api_key: Google Gemini API key
            model_name: Gemini model to use (defaults to GEMINI_MODEL_NAME env var or gemini-2.5-flash)
            timeout_seconds: Per-request HTTP timeout
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.api_key = api_key
        self.model_name = model_name or os.environ.get("GEMINI_MODEL_NAME", DEFAULT_MODEL_NAME)
        self.timeout_seconds = timeout_seconds or DEFAULT_TIMEOUT_SECONDS
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
        )


class GeminiDeadlineAdvisor(_GeminiClientBase):
    """
    Best-effort narrative review of a computed deadline.

    advise() is attempted once and never raises; callers substitute their own
    fallback text when the result is not successful.
    """

    SYSTEM_INSTRUCTION = (
        "Você é um assistente jurídico especializado em prazos processuais "
        "brasileiros (CPC/2015).\n"
        "Responda SEMPRE em português brasileiro. Seja direto e conciso.\n"
        "Forneça: (1) Avaliação de risco, (2) Recomendações práticas, "
        "(3) Alertas sobre exceções ou armadilhas."
    )

    def advise(self, params, result) -> AdviceResult:
        """
        Ask Gemini for a risk assessment of a deadline computation.

        Args:
            params: core.deadline_engine.SimulationInput
            result: core.deadline_engine.SimulationResult

        Returns:
            AdviceResult with the narrative or error details
        """
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=self._build_prompt(params, result),
                config=types.GenerateContentConfig(
                    system_instruction=self.SYSTEM_INSTRUCTION,
                    temperature=0.3,
                    max_output_tokens=1024,
                ),
            )
            text = _response_text(response)
        except Exception as e:
            logger.warning("Deadline advice failed: %s: %s", type(e).__name__, e)
            return AdviceResult(success=False, error=f"Advice failed: {type(e).__name__}: {str(e)}")

        prompt_tokens, completion_tokens, total_tokens = _usage(response)
        return AdviceResult(
            success=True,
            text=text.strip(),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )

    def _build_prompt(self, params, result) -> str:
        """Build the review prompt from the computed deadline."""
        doubling = (
            f"Sim - {result.doubling.reason}" if result.doubling.applied else "Não"
        )
        rules = ", ".join(params.raw_special_rules) or "Nenhuma"
        parties = "; ".join(f"{p.pole} - {p.party_type}" for p in params.parties) or "Nenhuma"
        return f"""Analise o seguinte cálculo de prazo processual:
- Tipo: {params.deadline_type or "Genérico"}
- Artigo: {params.legal_basis or "N/A"}
- Tribunal: {params.court_code or "N/A"}
- UF: {params.state_code or "N/A"}
- Data intimação: {result.intimation_date.strftime("%d/%m/%Y")}
- Método intimação: {params.raw_intimation_method or params.intimation_method.value}
- Prazo original: {params.days} {params.counting_mode.label}
- Prazo efetivo (com dobra): {result.effective_days} dias
- Dobra aplicada: {doubling}
- Data início contagem: {result.start_date.strftime("%d/%m/%Y")}
- Data fim prazo: {result.end_date.strftime("%d/%m/%Y")}
- Regras especiais: {rules}
- Partes: {parties}

Forneça uma análise breve (máx 200 palavras) com riscos, recomendações e alertas."""


class GeminiCalendarExtractor(_GeminiClientBase):
    """
    Extracts holidays and court suspensions from ordinances (portarias).

    This class is framework-agnostic and can be used in any Python context.
    """

    def extract_from_pdf(
        self, pdf_bytes: bytes, tribunal_codigo: str = "", ano: int = None
    ) -> CalendarExtractionResult:
        """
        Extract calendar entries from an ordinance PDF.

        Args:
            pdf_bytes: Raw PDF file content as bytes
            tribunal_codigo: Court the ordinance belongs to (prompt context)
            ano: Year assumed for dates written without one

        Returns:
            CalendarExtractionResult with entries or error details
        """
        is_valid, error_msg = validate_pdf_bytes(pdf_bytes)
        if not is_valid:
            return CalendarExtractionResult(success=False, error=error_msg)

        try:
            page_count = get_page_count(pdf_bytes)
        except Exception as e:
            return CalendarExtractionResult(success=False, error=f"Failed to read PDF: {str(e)}")

        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=pdf_bytes, mime_type="application/pdf"),
                    types.Part.from_text(text=self._build_prompt(tribunal_codigo)),
                ],
            )
        ]
        result = self._extract(contents, ano)
        result.page_count = page_count
        return result

    def extract_from_text(
        self, text: str, tribunal_codigo: str = "", ano: int = None
    ) -> CalendarExtractionResult:
        """Extract calendar entries from ordinance text already on hand."""
        if not text or not text.strip():
            return CalendarExtractionResult(success=False, error="Ordinance text is empty")

        prompt = self._build_prompt(tribunal_codigo, text[:MAX_ORDINANCE_CHARS])
        return self._extract(prompt, ano)

    def _extract(self, contents, ano: Optional[int]) -> CalendarExtractionResult:
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=self._build_system_instruction(ano),
                    temperature=0.1,
                    max_output_tokens=4096,
                    response_mime_type="application/json",
                ),
            )
            text = _response_text(response)
        except Exception as e:
            return CalendarExtractionResult(
                success=False, error=f"Extraction failed: {type(e).__name__}: {str(e)}"
            )

        prompt_tokens, completion_tokens, total_tokens = _usage(response)
        try:
            feriados, suspensoes = parse_calendar_json(text)
        except ValueError as e:
            return CalendarExtractionResult(
                success=False,
                raw_text=text,
                error=f"Failed to parse AI response: {str(e)}",
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens,
                model_name=self.model_name,
            )

        return CalendarExtractionResult(
            success=True,
            feriados=feriados,
            suspensoes=suspensoes,
            raw_text=text,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            model_name=self.model_name,
        )

    def _build_system_instruction(self, ano: Optional[int]) -> str:
        return f"""Você é um assistente jurídico especializado em calendários judiciais brasileiros.
Sua tarefa é extrair feriados e suspensões de expediente de portarias, resoluções e atos de tribunais.

Responda EXCLUSIVAMENTE com um JSON válido no seguinte formato:
{{
  "feriados": [
    {{
      "data": "YYYY-MM-DD",
      "nome": "Nome do feriado",
      "tipo": "NACIONAL|ESTADUAL|MUNICIPAL|FORENSE|PONTO_FACULTATIVO",
      "suspende_expediente": true,
      "prazos_prorrogados": true,
      "fundamento_legal": "Art. X da Portaria Y"
    }}
  ],
  "suspensoes": [
    {{
      "tipo": "RECESSO_DEZ_JAN|FERIAS_JULHO|SUSPENSAO_PRAZOS_ART220|SUSPENSAO_PORTARIA|INDISPONIBILIDADE_SISTEMA|LUTO_OFICIAL|CALAMIDADE|ELEICOES|OPERACAO_ESPECIAL",
      "data_inicio": "YYYY-MM-DD",
      "data_fim": "YYYY-MM-DD",
      "nome": "Descrição da suspensão",
      "suspende_prazos": true,
      "suspende_audiencias": true,
      "fundamento_legal": "Art. X da Portaria Y"
    }}
  ]
}}

Regras:
- Extraia TODOS os feriados e suspensões mencionados no texto
- Para recesso forense (geralmente 20/dez a 20/jan), use tipo "RECESSO_DEZ_JAN"
- Para pontos facultativos, use tipo "PONTO_FACULTATIVO"
- Datas devem estar no formato YYYY-MM-DD
- Se o ano não estiver explícito na data, use o ano {ano or "corrente"}
- NÃO invente feriados que não estão no texto"""

    def _build_prompt(self, tribunal_codigo: str, text: str = None) -> str:
        court = f" do tribunal {tribunal_codigo}" if tribunal_codigo else ""
        if text is None:
            return (
                f"Extraia todos os feriados e suspensões da portaria/resolução{court} "
                "neste documento. Responda APENAS com o JSON, sem texto adicional."
            )
        return (
            f"Extraia todos os feriados e suspensões do seguinte texto de "
            f"portaria/resolução{court}:\n\n---\n{text}\n---\n\n"
            "Responda APENAS com o JSON, sem texto adicional."
        )
