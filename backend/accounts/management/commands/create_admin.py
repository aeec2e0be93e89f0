"""
Management command to create an administrator account.
"""
from django.core.management.base import BaseCommand, CommandError

from accounts.models import User


class Command(BaseCommand):
    help = 'Create an admin user'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True)
        parser.add_argument('--name', default='Administrator')
        parser.add_argument('--password', required=True)

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise CommandError(f'User already exists: {email}')

        if len(options['password']) < 6:
            raise CommandError('Password must be at least 6 characters')

        admin = User.objects.create_admin(
            name=options['name'],
            email=email,
            password=options['password'],
        )
        self.stdout.write(self.style.SUCCESS(f'✓ Created admin {admin.name} ({admin.email})'))
