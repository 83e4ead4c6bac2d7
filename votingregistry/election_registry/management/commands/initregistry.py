from django.core.management.base import BaseCommand

from election_registry import services


class Command(BaseCommand):
    help = "Create a new voting registry and print its id."

    def add_arguments(self, parser):
        parser.add_argument('--admin', required=True,
                            help="Identity of the principal who will administer the registry.")

    def handle(self, *args, **options):
        registry = services.initialize(options['admin'])
        self.stdout.write(str(registry.pk))
