"""
Tests for Prazos services.
"""
from datetime import date
from unittest.mock import patch, MagicMock

from django.test import TestCase, override_settings

from accounts.models import CustomUser
from core.deadline_engine import InvalidSimulationInput
from core.gemini_client import AdviceResult, CalendarExtractionResult
from prazos.models import CalendarExtraction, CourtCalendar, CourtHoliday, CourtSuspension, Holiday
from prazos.services import (
    AI_FALLBACK_MESSAGE,
    API_KEY_MISSING_MESSAGE,
    DjangoCalendarSource,
    extract_calendar_from_pdf,
    extract_calendar_from_text,
    get_user_extractions,
    import_calendar_extraction,
    run_simulation,
    save_calendar_extraction,
)


ELECTRONIC_NOTICE = {
    "dias": 5,
    "contagem_tipo": "DIAS_UTEIS",
    "data_intimacao": "2026-03-02",
    "metodo_intimacao": "INTIMACAO_ELETRONICA",
    "tribunal_codigo": "TJSP",
    "uf": "SP",
}


class DjangoCalendarSourceTests(TestCase):
    """Tests for the database-backed calendar source."""

    def setUp(self):
        self.source = DjangoCalendarSource()
        Holiday.objects.create(data=date(2026, 4, 21), nome="Tiradentes")
        Holiday.objects.create(data=date(2026, 7, 9), nome="Revolução", tipo="ESTADUAL", uf="SP")
        Holiday.objects.create(data=date(2026, 4, 23), nome="São Jorge", tipo="ESTADUAL", uf="RJ")

        calendar = CourtCalendar.objects.create(tribunal_codigo="TJSP")
        CourtHoliday.objects.create(calendar=calendar, data=date(2026, 1, 25), nome="Aniversário de SP")
        CourtHoliday.objects.create(
            calendar=calendar, data=date(2026, 2, 18), nome="Cinzas", prazos_prorrogados=False
        )
        CourtSuspension.objects.create(
            calendar=calendar, nome="Sistema fora", data_inicio=date(2026, 3, 30), data_fim=date(2026, 4, 2)
        )
        CourtSuspension.objects.create(
            calendar=calendar, nome="Só audiências", data_inicio=date(2026, 5, 4), data_fim=date(2026, 5, 8),
            suspende_prazos=False,
        )

    def test_national_and_matching_state_holidays(self):
        days = self.source.list_national_and_state_holidays(date(2026, 1, 1), date(2026, 12, 31), "SP")

        self.assertEqual(sorted(days), [date(2026, 4, 21), date(2026, 7, 9)])

    def test_national_only_without_state(self):
        days = self.source.list_national_and_state_holidays(date(2026, 1, 1), date(2026, 12, 31), None)

        self.assertEqual(days, [date(2026, 4, 21)])

    def test_holiday_range_is_inclusive(self):
        days = self.source.list_national_and_state_holidays(date(2026, 4, 21), date(2026, 4, 21), None)

        self.assertEqual(days, [date(2026, 4, 21)])

    def test_court_holidays_only_when_deadlines_extended(self):
        days = self.source.list_court_holidays(date(2026, 1, 1), date(2026, 12, 31), "TJSP")

        self.assertEqual(days, [date(2026, 1, 25)])
        self.assertEqual(self.source.list_court_holidays(date(2026, 1, 1), date(2026, 12, 31), "TRF3"), [])

    def test_suspensions_overlapping_the_range(self):
        ranges = self.source.list_court_suspensions(date(2026, 4, 1), date(2026, 6, 30), "TJSP")

        self.assertEqual(ranges, [(date(2026, 3, 30), date(2026, 4, 2))])


@override_settings(GEMINI_API_KEY="", PRAZOS_AI_ENABLED=True)
class RunSimulationTests(TestCase):
    """Tests for run_simulation against the database calendar."""

    def test_response_shape(self):
        result = run_simulation(ELECTRONIC_NOTICE, today=date(2026, 3, 2))

        self.assertEqual(result["data_intimacao"], "2026-03-02")
        self.assertEqual(result["data_inicio_contagem"], "2026-03-06")
        self.assertEqual(result["data_fim_prazo"], "2026-03-12")
        self.assertEqual(result["prazo_original"], 5)
        self.assertEqual(result["prazo_efetivo"], 5)
        self.assertEqual(result["contagem_tipo"], "DIAS_UTEIS")
        self.assertFalse(result["dobra_aplicada"])
        self.assertEqual(result["dobra_motivo"], "")
        self.assertEqual(result["sugestao_ia"], "")
        self.assertEqual(result["log_calculo"][-1]["etapa"], len(result["log_calculo"]))

    def test_database_holiday_pushes_end_date(self):
        calendar = CourtCalendar.objects.create(tribunal_codigo="TJSP")
        CourtHoliday.objects.create(calendar=calendar, data=date(2026, 3, 10), nome="Feriado forense")

        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["data_fim_prazo"], "2026-03-13")
        self.assertEqual(result["feriados_no_periodo"], 1)

    def test_other_court_holiday_ignored(self):
        calendar = CourtCalendar.objects.create(tribunal_codigo="TRF3")
        CourtHoliday.objects.create(calendar=calendar, data=date(2026, 3, 10), nome="Feriado forense")

        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["data_fim_prazo"], "2026-03-12")

    def test_invalid_payload_raises(self):
        with self.assertRaises(InvalidSimulationInput):
            run_simulation({"dias": 0, "data_intimacao": "2026-03-02"})

        with self.assertRaises(InvalidSimulationInput):
            run_simulation({"dias": 5, "data_intimacao": "02/03/2026"})

    def test_injected_source(self):
        source = MagicMock()
        source.list_national_and_state_holidays.return_value = [date(2026, 3, 9)]
        source.list_court_holidays.return_value = []
        source.list_court_suspensions.return_value = []

        result = run_simulation(ELECTRONIC_NOTICE, source=source)

        self.assertEqual(result["data_fim_prazo"], "2026-03-13")
        source.list_national_and_state_holidays.assert_called_once()

    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_ai_skipped_without_api_key(self, mock_advisor_class):
        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["sugestao_ia"], "")
        mock_advisor_class.assert_not_called()

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_ai_suggestion_included(self, mock_advisor_class):
        mock_advisor_class.return_value.advise.return_value = AdviceResult(
            success=True, text="Risco baixo."
        )

        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["sugestao_ia"], "Risco baixo.")
        self.assertEqual(result["data_fim_prazo"], "2026-03-12")

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_ai_failure_uses_fallback(self, mock_advisor_class):
        mock_advisor_class.return_value.advise.return_value = AdviceResult(
            success=False, error="Advice failed: TimeoutError: timed out"
        )

        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["sugestao_ia"], AI_FALLBACK_MESSAGE)
        self.assertEqual(result["data_fim_prazo"], "2026-03-12")

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_ai_constructor_error_uses_fallback(self, mock_advisor_class):
        mock_advisor_class.side_effect = RuntimeError("boom")

        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["sugestao_ia"], AI_FALLBACK_MESSAGE)

    @override_settings(GEMINI_API_KEY="test-key", PRAZOS_AI_ENABLED=False)
    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_ai_disabled_by_setting(self, mock_advisor_class):
        result = run_simulation(ELECTRONIC_NOTICE)

        self.assertEqual(result["sugestao_ia"], "")
        mock_advisor_class.assert_not_called()

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiDeadlineAdvisor")
    def test_with_ai_false(self, mock_advisor_class):
        result = run_simulation(ELECTRONIC_NOTICE, with_ai=False)

        self.assertEqual(result["sugestao_ia"], "")
        mock_advisor_class.assert_not_called()


class ExtractCalendarFromPdfTests(TestCase):
    """Tests for extract_calendar_from_pdf service function."""

    @override_settings(GEMINI_API_KEY="")
    def test_missing_api_key(self):
        result = extract_calendar_from_pdf(MagicMock())

        self.assertFalse(result.success)
        self.assertEqual(result.error, API_KEY_MISSING_MESSAGE)

    @override_settings(GEMINI_API_KEY="test-key", GEMINI_MODEL_NAME="gemini-test")
    @patch("prazos.services.GeminiCalendarExtractor")
    def test_delegates_to_extractor(self, mock_extractor_class):
        expected = CalendarExtractionResult(success=True, feriados=[{"data": "2026-01-25"}])
        mock_extractor_class.return_value.extract_from_pdf.return_value = expected
        uploaded = MagicMock()
        uploaded.read.return_value = b"%PDF-1.4 content"

        result = extract_calendar_from_pdf(uploaded, tribunal_codigo="TJSP", ano=2026)

        self.assertIs(result, expected)
        mock_extractor_class.assert_called_once_with("test-key", "gemini-test")
        mock_extractor_class.return_value.extract_from_pdf.assert_called_once_with(
            b"%PDF-1.4 content", tribunal_codigo="TJSP", ano=2026
        )

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiCalendarExtractor")
    def test_unexpected_error(self, mock_extractor_class):
        mock_extractor_class.side_effect = RuntimeError("network down")

        result = extract_calendar_from_pdf(MagicMock())

        self.assertFalse(result.success)
        self.assertIn("network down", result.error)


class ExtractCalendarFromTextTests(TestCase):
    """Tests for extract_calendar_from_text service function."""

    @override_settings(GEMINI_API_KEY="")
    def test_missing_api_key(self):
        result = extract_calendar_from_text("Portaria 1/2026")

        self.assertFalse(result.success)
        self.assertEqual(result.error, API_KEY_MISSING_MESSAGE)

    @override_settings(GEMINI_API_KEY="test-key", GEMINI_MODEL_NAME="gemini-test")
    @patch("prazos.services.GeminiCalendarExtractor")
    def test_delegates_to_extractor(self, mock_extractor_class):
        expected = CalendarExtractionResult(success=True, suspensoes=[{"data_inicio": "2026-12-20"}])
        mock_extractor_class.return_value.extract_from_text.return_value = expected

        result = extract_calendar_from_text("Portaria 1/2026", tribunal_codigo="TJSP", ano=2026)

        self.assertIs(result, expected)
        mock_extractor_class.return_value.extract_from_text.assert_called_once_with(
            "Portaria 1/2026", tribunal_codigo="TJSP", ano=2026
        )

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("prazos.services.GeminiCalendarExtractor")
    def test_unexpected_error(self, mock_extractor_class):
        mock_extractor_class.return_value.extract_from_text.side_effect = RuntimeError("quota")

        result = extract_calendar_from_text("Portaria 1/2026")

        self.assertFalse(result.success)
        self.assertIn("quota", result.error)


class CalendarExtractionServiceTests(TestCase):
    """Tests for saving and importing ordinance extractions."""

    def setUp(self):
        self.user = CustomUser.objects.create_user(
            username='testuser',
            email='test@example.com',
            password='testpass123'
        )

    def _save(self, result, tribunal_codigo="tjsp"):
        return save_calendar_extraction(
            user=self.user,
            tribunal_codigo=tribunal_codigo,
            filename="portaria.pdf",
            file_size=2048,
            result=result,
        )

    def test_save_successful_extraction(self):
        extraction = self._save(CalendarExtractionResult(
            success=True,
            feriados=[{"data": "2026-01-25", "nome": "Aniversário de SP"}],
            prompt_tokens=500,
            completion_tokens=100,
            total_tokens=600,
            page_count=4,
            model_name="gemini-2.5-flash",
        ))

        self.assertEqual(CalendarExtraction.objects.count(), 1)
        self.assertEqual(extraction.tribunal_codigo, "TJSP")
        self.assertEqual(extraction.status, "PROCESSADO")
        self.assertEqual(extraction.feriados[0]["nome"], "Aniversário de SP")
        self.assertEqual(extraction.total_tokens, 600)
        self.assertEqual(extraction.page_count, 4)
        self.assertEqual(extraction.erro_processamento, "")
        self.assertEqual(extraction.file_type, "PDF")

    def test_save_text_extraction(self):
        extraction = save_calendar_extraction(
            user=self.user,
            tribunal_codigo="TRF3",
            filename="Texto colado (TRF3)",
            file_size=120,
            result=CalendarExtractionResult(success=True),
            file_type="TEXTO",
        )

        self.assertEqual(extraction.file_type, "TEXTO")
        self.assertIsNone(extraction.page_count)

    def test_save_failed_extraction(self):
        extraction = self._save(CalendarExtractionResult(success=False, error="Extraction failed: boom"))

        self.assertEqual(extraction.status, "ERRO")
        self.assertEqual(extraction.erro_processamento, "Extraction failed: boom")
        self.assertIsNone(extraction.total_tokens)

    def test_import_creates_calendar_entries(self):
        extraction = self._save(CalendarExtractionResult(
            success=True,
            feriados=[
                {"data": "2026-01-25", "nome": "Aniversário de SP", "tipo": "municipal"},
                {"data": "2026-11-20", "nome": "Consciência Negra", "tipo": "DESCONHECIDO",
                 "prazos_prorrogados": False},
                {"data": "25/12/2026", "nome": "Data em formato errado"},
                {"nome": "Sem data"},
            ],
            suspensoes=[
                {"tipo": "RECESSO_DEZ_JAN", "data_inicio": "2026-12-20", "data_fim": "2027-01-20",
                 "nome": "Recesso"},
                {"data_inicio": "2026-06-10", "data_fim": "2026-06-01", "nome": "Invertida"},
            ],
        ))

        holidays, suspensions = import_calendar_extraction(extraction)

        self.assertEqual((holidays, suspensions), (2, 1))
        calendar = CourtCalendar.objects.get(tribunal_codigo="TJSP")
        municipal = calendar.holidays.get(data=date(2026, 1, 25))
        self.assertEqual(municipal.tipo, "MUNICIPAL")
        self.assertTrue(municipal.prazos_prorrogados)
        other = calendar.holidays.get(data=date(2026, 11, 20))
        self.assertEqual(other.tipo, "FORENSE")
        self.assertFalse(other.prazos_prorrogados)
        recess = calendar.suspensions.get()
        self.assertEqual(recess.tipo, "RECESSO_DEZ_JAN")
        self.assertTrue(recess.suspende_prazos)

        extraction.refresh_from_db()
        self.assertEqual(extraction.status, "IMPORTADO")

    def test_import_twice_does_not_duplicate(self):
        extraction = self._save(CalendarExtractionResult(
            success=True,
            feriados=[{"data": "2026-01-25", "nome": "Aniversário de SP"}],
            suspensoes=[{"data_inicio": "2026-12-20", "data_fim": "2027-01-20", "nome": "Recesso"}],
        ))

        import_calendar_extraction(extraction)
        self.assertEqual(import_calendar_extraction(extraction), (0, 0))
        self.assertEqual(CourtHoliday.objects.count(), 1)
        self.assertEqual(CourtSuspension.objects.count(), 1)

    def test_get_user_extractions_only_returns_own(self):
        self._save(CalendarExtractionResult(success=True))
        other = CustomUser.objects.create_user(username='other', password='testpass123')
        save_calendar_extraction(other, "TRF3", "x.pdf", 10, CalendarExtractionResult(success=True))

        extractions = list(get_user_extractions(self.user))

        self.assertEqual(len(extractions), 1)
        self.assertEqual(extractions[0].user, self.user)
