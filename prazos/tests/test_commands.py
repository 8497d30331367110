"""
Tests for the seed_holidays management command.
"""
from datetime import date
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from prazos.models import Holiday


class SeedHolidaysCommandTests(TestCase):

    def test_seeds_national_holidays(self):
        out = StringIO()
        call_command("seed_holidays", "2026", stdout=out)

        self.assertEqual(Holiday.objects.count(), 13)
        self.assertIn("Created 13 holidays.", out.getvalue())
        self.assertTrue(Holiday.objects.filter(data=date(2026, 4, 3), uf__isnull=True).exists())
        self.assertTrue(Holiday.objects.filter(data=date(2026, 6, 4), uf__isnull=True).exists())

    def test_idempotent(self):
        call_command("seed_holidays", "2026", stdout=StringIO())
        out = StringIO()
        call_command("seed_holidays", "2026", stdout=out)

        self.assertEqual(Holiday.objects.count(), 13)
        self.assertIn("Created 0 holidays.", out.getvalue())

    def test_several_years_with_state_holiday(self):
        call_command(
            "seed_holidays", "2026", "2027",
            uf="sp", nome="Revolução Constitucionalista", data="07-09",
            stdout=StringIO(),
        )

        self.assertEqual(Holiday.objects.count(), 28)
        state = Holiday.objects.filter(uf="SP").order_by("data")
        self.assertEqual([h.data for h in state], [date(2026, 7, 9), date(2027, 7, 9)])
        self.assertEqual(state[0].tipo, "ESTADUAL")

    def test_unknown_uf(self):
        with self.assertRaises(CommandError):
            call_command("seed_holidays", "2026", uf="XX", nome="x", data="01-01", stdout=StringIO())

    def test_uf_requires_name_and_day(self):
        with self.assertRaises(CommandError):
            call_command("seed_holidays", "2026", uf="SP", stdout=StringIO())

    def test_bad_day_format(self):
        with self.assertRaises(CommandError):
            call_command("seed_holidays", "2026", uf="SP", nome="x", data="9 de julho", stdout=StringIO())

    def test_impossible_day(self):
        with self.assertRaises(CommandError):
            call_command("seed_holidays", "2026", uf="SP", nome="x", data="02-30", stdout=StringIO())
