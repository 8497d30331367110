import logging
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from core.holidays import national_holidays
from prazos.models import UF_CHOICES, Holiday

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Seed national holidays (fixed and Easter-based) for the given years. "
        "Optionally add one state holiday per year with --uf/--nome/--data."
    )

    def add_arguments(self, parser):
        parser.add_argument("years", nargs="+", type=int)
        parser.add_argument("--uf", help="State code for an extra state holiday")
        parser.add_argument("--nome", help="Name of the state holiday")
        parser.add_argument("--data", help="Day of the state holiday as MM-DD")

    def handle(self, *args, **options):
        uf = (options.get("uf") or "").upper() or None
        state_day = None
        if uf:
            if uf not in {code for code, _ in UF_CHOICES}:
                raise CommandError(f"Unknown UF: {uf}")
            if not options.get("nome") or not options.get("data"):
                raise CommandError("--uf requires --nome and --data")
            try:
                month, day = (int(part) for part in options["data"].split("-"))
            except ValueError:
                raise CommandError("--data must be MM-DD")
            state_day = (month, day)

        created = 0
        for year in options["years"]:
            for day, name in national_holidays(year):
                _, was_created = Holiday.objects.get_or_create(
                    data=day, uf=None, nome=name, defaults={"tipo": "NACIONAL"}
                )
                created += int(was_created)

            if state_day:
                try:
                    day = date(year, *state_day)
                except ValueError:
                    raise CommandError(f"Invalid --data for {year}: {options['data']}")
                _, was_created = Holiday.objects.get_or_create(
                    data=day, uf=uf, nome=options["nome"], defaults={"tipo": "ESTADUAL"}
                )
                created += int(was_created)

        logger.info("seed_holidays created %d holidays for %s", created, options["years"])
        self.stdout.write(self.style.SUCCESS(f"Created {created} holidays."))
