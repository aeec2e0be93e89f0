"""
Management command to issue secret codes to students that do not have one.
"""
from django.core.management.base import BaseCommand
from django.db.models import Q

from accounts.models import User


class Command(BaseCommand):
    help = 'Assign a secret code to every student missing one'

    def add_arguments(self, parser):
        parser.add_argument(
            '--list',
            action='store_true',
            help='Print every student with their code after backfilling',
        )

    def handle(self, *args, **options):
        missing = User.objects.students().filter(Q(secret_code__isnull=True) | Q(secret_code=''))
        total = missing.count()

        if not total:
            self.stdout.write(self.style.SUCCESS('All students already have secret codes.'))
        else:
            self.stdout.write(f'Found {total} students without secret codes...')

        for student in missing:
            student.secret_code = User.objects.unique_secret_code()
            student.save(update_fields=['secret_code', 'updated_at'])
            self.stdout.write(self.style.SUCCESS(f'✓ {student.name}: {student.secret_code}'))

        if total:
            self.stdout.write(self.style.SUCCESS(f'\n✓ Issued {total} secret codes.'))

        if options['list']:
            self.stdout.write('\nStudent roster:')
            for student in User.objects.students().select_related('teacher').order_by('name'):
                teacher = student.teacher.name if student.teacher else '-'
                self.stdout.write(f'  {student.name:<30} {student.secret_code}  (teacher: {teacher})')
