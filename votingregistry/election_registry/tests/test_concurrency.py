import threading

from django.db import connection
from django.test import TransactionTestCase, override_settings

from election_registry import services
from election_registry.exceptions import VoteAlreadyCasted

from .base import ADMIN


@override_settings(VOTING_REGISTRY={"BROADCAST_VOTES": False})
class WriterLockTests(TransactionTestCase):
    """Operations racing on one registry from separate connections."""

    def setUp(self):
        self.registry = services.initialize(ADMIN)

    def race(self, *calls):
        """Start every call at once, each on its own thread and connection."""
        barrier = threading.Barrier(len(calls))
        outcomes = [None] * len(calls)

        def run(index, call):
            try:
                barrier.wait()
                outcomes[index] = call()
            except Exception as e:
                outcomes[index] = e
            finally:
                connection.close()

        threads = [threading.Thread(target=run, args=(i, call)) for i, call in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return outcomes

    def test_concurrent_elections_get_distinct_ids(self):
        outcomes = self.race(
            lambda: services.create_election(self.registry, "E1", 100, 200, caller=ADMIN),
            lambda: services.create_election(self.registry, "E2", 100, 200, caller=ADMIN),
        )

        self.assertEqual(sorted(outcomes), [1, 2])
        self.registry.refresh_from_db()
        self.assertEqual(self.registry.next_election_id, 3)

    def test_concurrent_double_vote_counts_once(self):
        election_id = services.create_election(self.registry, "E1", 100, 200, caller=ADMIN)
        services.add_candidate(self.registry, election_id, "X", caller=ADMIN)
        services.start_election(self.registry, election_id, caller=ADMIN)
        services.register_voter(self.registry, "alice", caller="alice")

        outcomes = self.race(
            lambda: services.vote(self.registry, election_id, 1, caller="alice"),
            lambda: services.vote(self.registry, election_id, 1, caller="alice"),
        )

        errors = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
        self.assertEqual(len(errors), 1, outcomes)
        self.assertIsInstance(errors[0], VoteAlreadyCasted)
        self.assertEqual(services.get_election_results(self.registry, election_id), [
            {"candidate_id": 1, "count": 1},
        ])
        self.assertEqual(services.get_voter(self.registry, "alice")["vote_history"], [election_id])
