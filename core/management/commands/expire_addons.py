# Expire Add-ons Management Command
from django.core.management.base import BaseCommand

from core.placement import expire_addons


class Command(BaseCommand):
    help = 'Expires add-on purchases past their end date and clears the listing placements they granted.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would expire without saving changes to the database.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        self.stdout.write('Expiring add-ons...')
        result = expire_addons(dry_run=dry_run)

        self.stdout.write(
            f"Processed {result['processed']} of {result['total']} expired add-ons "
            f"({result['errors']} errors)."
        )

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        elif result['errors']:
            self.stdout.write(self.style.WARNING('Expiry completed with errors.'))
        else:
            self.stdout.write(self.style.SUCCESS('Expiry completed successfully.'))
