"""
Ledger consistency check.
Reports students whose fee_paid differs from the sum of their payments, or
whose fee_due differs from total_fee - fee_paid.
Usage: python manage.py check_ledgers [--fix] [--student ID]
Without --fix: report only.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from students import ledger
from students.models import Student


class Command(BaseCommand):
    help = 'Check every student ledger against its payment rows (optionally repair from payments)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Rewrite fee_paid/fee_due from the payment rows (default: report only)',
        )
        parser.add_argument('--student', type=int, help='Check a single student id')

    def handle(self, *args, **options):
        fix = options['fix']
        if not fix:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes will be made. Use --fix to repair.'))

        ids = Student.objects.order_by('pk').values_list('pk', flat=True)
        if options.get('student'):
            ids = ids.filter(pk=options['student'])

        checked = broken = repaired = 0
        for student_id in ids:
            with transaction.atomic():
                student = Student.objects.select_for_update().get(pk=student_id)
                report = ledger.audit(student)
                checked += 1
                if report['consistent']:
                    continue
                broken += 1
                self.stdout.write(
                    f"  student_id={student.pk} {student.name}: fee_paid={report['fee_paid']} "
                    f"payments={report['payments_total']} fee_due={report['fee_due']} "
                    f"expected_due={report['total_fee'] - report['payments_total']}"
                )
                if fix:
                    state = ledger.recompute_for_total(student.total_fee, report['payments_total'])
                    student.save(update_fields=ledger.apply_to(student, state))
                    repaired += 1

        self.stdout.write(f'Checked: {checked}, inconsistent: {broken}, repaired: {repaired}')
        if broken and not fix:
            self.stdout.write(self.style.ERROR('Inconsistent ledgers found'))
        else:
            self.stdout.write(self.style.SUCCESS('Done'))
