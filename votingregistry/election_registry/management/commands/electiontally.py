import json

from django.core.management.base import BaseCommand, CommandError

from election_registry import services
from election_registry.exceptions import RegistryError
from election_registry.models import VotingRegistry


class Command(BaseCommand):
    help = "Print an election's vote counts as JSON."

    def add_arguments(self, parser):
        parser.add_argument('registry', type=int, help="Id of the voting registry.")
        parser.add_argument('election_id', type=int)
        parser.add_argument('--live', action='store_true',
                            help="Show the running counts of an election that has not ended.")

    def handle(self, *args, **options):
        try:
            registry = VotingRegistry.objects.get(pk=options['registry'])
        except VotingRegistry.DoesNotExist:
            raise CommandError(f"Registry {options['registry']} does not exist.")

        project = services.get_election_results if options['live'] else services.tally_votes
        try:
            rows = project(registry, options['election_id'])
        except RegistryError as e:
            raise CommandError(f"[{e.code}] {e}")

        self.stdout.write(json.dumps([dict(row) for row in rows], indent=2))
