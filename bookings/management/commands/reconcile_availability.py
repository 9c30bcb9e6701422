from __future__ import annotations

from django.core.management.base import BaseCommand

from bookings.services import reconcile_availability


class Command(BaseCommand):
    help = "Check every slot's available counter against its non-cancelled bookings."

    def add_arguments(self, parser):
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Write the recomputed counters back instead of only reporting drift.",
        )

    def handle(self, *args, **options):
        drifts = reconcile_availability(apply=options["apply"])
        for drift in drifts:
            self.stdout.write(f"{drift.slot_id}: available={drift.recorded} expected={drift.expected}")

        if not drifts:
            self.stdout.write(self.style.SUCCESS("All slots are consistent."))
        elif options["apply"]:
            self.stdout.write(self.style.SUCCESS(f"Corrected {len(drifts)} slot(s)."))
        else:
            self.stdout.write(self.style.WARNING(f"{len(drifts)} slot(s) drifted. Re-run with --apply to fix."))
