"""
Re-run the chronological round redistribution and persist class -> package linkage.
Usage: python manage.py fix_package_assignments [--student-id N] [--dry-run]
Without --student-id every student that owns a package is processed.
"""
from django.core.management.base import BaseCommand, CommandError

from core.exceptions import EngineError
from lessons.models import ClassRecord
from packages.models import Package
from packages.services.rounds import get_student_packages_with_classes_by_rounds, plan_student_rounds


class Command(BaseCommand):
    help = 'Redistribute classes across package rounds (paid rounds are left untouched)'

    def add_arguments(self, parser):
        parser.add_argument('--student-id', type=int, help='Only process this student')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report the reassignments without saving them',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if options.get('student_id'):
            student_ids = [options['student_id']]
        else:
            student_ids = list(
                Package.objects.values_list('student_id', flat=True).distinct().order_by('student_id')
            )

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes will be made.'))

        total = 0
        for student_id in student_ids:
            try:
                if dry_run:
                    _, reassignments = plan_student_rounds(student_id)
                    moved = len(reassignments)
                    for class_record, package_id in reassignments:
                        self.stdout.write(
                            f'  class {class_record.id}: package {class_record.package_id} -> {package_id}'
                        )
                else:
                    before = _linkage(student_id)
                    get_student_packages_with_classes_by_rounds(student_id)
                    after = _linkage(student_id)
                    moved = sum(1 for cid, pid in after.items() if before.get(cid) != pid)
            except EngineError as e:
                raise CommandError(f'Student {student_id}: {e.message}')
            total += moved
            self.stdout.write(f'Student {student_id}: {moved} class(es) reassigned')

        verb = 'would be reassigned' if dry_run else 'reassigned'
        self.stdout.write(self.style.SUCCESS(f'Done. {total} class(es) {verb} across {len(student_ids)} student(s).'))


def _linkage(student_id):
    return dict(ClassRecord.objects.filter(student_id=student_id).values_list('id', 'package_id'))
