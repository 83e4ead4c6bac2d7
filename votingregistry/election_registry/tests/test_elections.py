from django.core.exceptions import PermissionDenied

from election_registry import services
from election_registry.exceptions import (
    ElectionNotFound,
    InvalidElectionState,
    InvalidElectionWindow,
    NotAdmin,
)
from election_registry.models import Election, VotingRegistry

from .base import ADMIN, RegistryTestCase


class CreateElectionTests(RegistryTestCase):

    def test_ids_start_at_one_and_increase(self):
        self.assertEqual(services.create_election(self.registry, "E1", 100, 200, caller=ADMIN), 1)
        self.assertEqual(services.create_election(self.registry, "E2", 300, 400, caller=ADMIN), 2)

        self.registry.refresh_from_db()
        self.assertEqual(self.registry.next_election_id, 3)

    def test_new_election_is_upcoming(self):
        election_id = services.create_election(self.registry, "E1", 100, 200, caller=ADMIN)

        self.assertEqual(services.get_election_details(self.registry, election_id), {
            "name": "E1",
            "candidates": [],
            "state": "upcoming",
            "start_time": 100,
            "end_time": 200,
        })

    def test_non_admin_is_rejected(self):
        with self.assertRaises(NotAdmin) as ctx:
            services.create_election(self.registry, "E1", 100, 200, caller="mallory")

        self.assertIsInstance(ctx.exception, PermissionDenied)
        self.assertEqual(self.registry.elections.count(), 0)
        self.registry.refresh_from_db()
        self.assertEqual(self.registry.next_election_id, 1)

    def test_end_must_follow_start(self):
        for start_time, end_time in [(200, 100), (150, 150)]:
            with self.assertRaises(InvalidElectionWindow):
                services.create_election(self.registry, "E1", start_time, end_time, caller=ADMIN)

        self.assertEqual(self.registry.elections.count(), 0)
        # The failed attempts did not use up an id.
        self.assertEqual(services.create_election(self.registry, "E1", 100, 200, caller=ADMIN), 1)

    def test_ids_are_per_registry(self):
        other = services.initialize("other-admin")
        services.create_election(self.registry, "E1", 100, 200, caller=ADMIN)

        self.assertEqual(services.create_election(other, "E1", 100, 200, caller="other-admin"), 1)
        with self.assertRaises(NotAdmin):
            services.create_election(other, "E2", 100, 200, caller=ADMIN)

    def test_list_elections(self):
        self.create_election(name="E1")
        second = self.create_election(name="E2")
        services.end_election(self.registry, second, caller=ADMIN)

        self.assertEqual(services.list_elections(self.registry), [
            {"election_id": 1, "name": "E1", "state": "upcoming"},
            {"election_id": 2, "name": "E2", "state": "ended"},
        ])


class AddCandidateTests(RegistryTestCase):

    def setUp(self):
        super().setUp()
        self.election_id = services.create_election(self.registry, "E1", 100, 200, caller=ADMIN)

    def test_candidate_ids_are_sequential(self):
        self.assertEqual(services.add_candidate(self.registry, self.election_id, "X", caller=ADMIN), 1)
        self.assertEqual(services.add_candidate(self.registry, self.election_id, "Y", caller=ADMIN), 2)

        self.assertEqual(services.get_candidates(self.registry, self.election_id), [
            {"candidate_id": 1, "name": "X"},
            {"candidate_id": 2, "name": "Y"},
        ])
        self.assertEqual(self.counts(self.election_id), {1: 0, 2: 0})
        self.assertRosterMatchesCounts(self.election_id)

    def test_candidate_ids_are_per_election(self):
        services.add_candidate(self.registry, self.election_id, "X", caller=ADMIN)
        other = services.create_election(self.registry, "E2", 100, 200, caller=ADMIN)

        self.assertEqual(services.add_candidate(self.registry, other, "Z", caller=ADMIN), 1)

    def test_anyone_may_add_a_candidate(self):
        candidate_id = services.add_candidate(self.registry, self.election_id, "X", caller="some-voter")
        self.assertEqual(candidate_id, 1)

    def test_unknown_election(self):
        with self.assertRaises(ElectionNotFound):
            services.add_candidate(self.registry, 99, "X", caller=ADMIN)

    def test_roster_is_frozen_once_ongoing(self):
        services.add_candidate(self.registry, self.election_id, "X", caller=ADMIN)
        services.start_election(self.registry, self.election_id, caller=ADMIN)

        with self.assertRaises(InvalidElectionState):
            services.add_candidate(self.registry, self.election_id, "Late", caller=ADMIN)

        self.assertEqual(len(services.get_candidates(self.registry, self.election_id)), 1)
        self.assertEqual(self.counts(self.election_id), {1: 0})
        self.assertRosterMatchesCounts(self.election_id)

    def test_roster_is_frozen_once_ended(self):
        services.add_candidate(self.registry, self.election_id, "X", caller=ADMIN)
        services.end_election(self.registry, self.election_id, caller=ADMIN)

        with self.assertRaises(InvalidElectionState):
            services.add_candidate(self.registry, self.election_id, "Late", caller=ADMIN)

        self.assertEqual(services.get_candidates(self.registry, self.election_id), [
            {"candidate_id": 1, "name": "X"},
        ])
        self.assertRosterMatchesCounts(self.election_id)

    def test_rejected_candidate_does_not_use_an_id(self):
        services.start_election(self.registry, self.election_id, caller=ADMIN)
        with self.assertRaises(InvalidElectionState):
            services.add_candidate(self.registry, self.election_id, "X", caller=ADMIN)

        election = Election.objects.get(registry=self.registry, election_id=self.election_id)
        self.assertEqual(election.next_candidate_id, 1)


class PhaseTransitionTests(RegistryTestCase):

    def setUp(self):
        super().setUp()
        self.election_id = self.create_election()

    def state(self):
        return services.get_election_details(self.registry, self.election_id)["state"]

    def test_admin_starts_election(self):
        services.start_election(self.registry, self.election_id, caller=ADMIN)
        self.assertEqual(self.state(), "ongoing")

    def test_non_admin_cannot_start(self):
        with self.assertRaises(NotAdmin):
            services.start_election(self.registry, self.election_id, caller="mallory")
        self.assertEqual(self.state(), "upcoming")

    def test_start_only_from_upcoming(self):
        services.start_election(self.registry, self.election_id, caller=ADMIN)
        with self.assertRaises(InvalidElectionState):
            services.start_election(self.registry, self.election_id, caller=ADMIN)

        services.end_election(self.registry, self.election_id, caller=ADMIN)
        with self.assertRaises(InvalidElectionState):
            services.start_election(self.registry, self.election_id, caller=ADMIN)
        self.assertEqual(self.state(), "ended")

    def test_start_unknown_election(self):
        with self.assertRaises(ElectionNotFound):
            services.start_election(self.registry, 42, caller=ADMIN)

    def test_end_from_upcoming(self):
        services.end_election(self.registry, self.election_id, caller=ADMIN)
        self.assertEqual(self.state(), "ended")

    def test_end_from_ongoing(self):
        services.start_election(self.registry, self.election_id, caller=ADMIN)
        services.end_election(self.registry, self.election_id, caller=ADMIN)
        self.assertEqual(self.state(), "ended")

    def test_ending_twice_is_harmless(self):
        services.end_election(self.registry, self.election_id, caller=ADMIN)
        services.end_election(self.registry, self.election_id, caller=ADMIN)
        self.assertEqual(self.state(), "ended")

    def test_non_admin_cannot_end(self):
        services.start_election(self.registry, self.election_id, caller=ADMIN)
        with self.assertRaises(NotAdmin):
            services.end_election(self.registry, self.election_id, caller="mallory")
        self.assertEqual(self.state(), "ongoing")

    def test_admin_check_comes_before_lookup(self):
        with self.assertRaises(NotAdmin):
            services.end_election(self.registry, 42, caller="mallory")

    def test_end_unknown_election(self):
        with self.assertRaises(ElectionNotFound):
            services.end_election(self.registry, 42, caller=ADMIN)

    def test_stale_registry_instance_is_safe(self):
        stale = VotingRegistry.objects.get(pk=self.registry.pk)
        services.create_election(self.registry, "E2", 100, 200, caller=ADMIN)

        # The stale copy still thinks the next id is 2.
        self.assertEqual(services.create_election(stale, "E3", 100, 200, caller=ADMIN), 3)


class ElectionQueryTests(RegistryTestCase):

    def test_details_include_roster_in_order(self):
        election_id = self.create_election(name="Mayor", candidates=("Ada", "Grace", "Linus"))

        details = services.get_election_details(self.registry, election_id)

        self.assertEqual(details["name"], "Mayor")
        self.assertEqual([c["name"] for c in details["candidates"]], ["Ada", "Grace", "Linus"])
        self.assertEqual([c["candidate_id"] for c in details["candidates"]], [1, 2, 3])

    def test_unknown_election(self):
        for query in (services.get_election_details, services.get_candidates):
            with self.assertRaises(ElectionNotFound):
                query(self.registry, 7)

    def test_elections_of_another_registry_are_invisible(self):
        other = services.initialize("other-admin")
        services.create_election(other, "Elsewhere", 100, 200, caller="other-admin")

        with self.assertRaises(ElectionNotFound):
            services.get_election_details(self.registry, 1)
