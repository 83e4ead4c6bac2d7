"""
Operations on a voting registry.

Every mutating operation runs in one transaction that first locks the
registry row, so writers on the same registry never interleave and an
error anywhere rolls the whole operation back. The calling principal is
always passed explicitly as ``caller``; nothing here works out who is
calling.

Read-only queries take no lock and only ever see committed data.
"""
import logging
from contextlib import contextmanager
from functools import partial

from django.db import transaction
from django.db.models import F

from .conf import registry_setting
from .exceptions import (
    CandidateNotFound,
    ElectionNotFound,
    InvalidElectionState,
    InvalidElectionWindow,
    NoVotesToRevoke,
    NotAdmin,
    NotAuthorized,
    VoteAlreadyCasted,
    VoterAlreadyRegistered,
    VoterNotFound,
)
from .models import Candidate, Election, Voter, VoteCount, VotingRegistry
from .notifications import broadcast_vote_casted
from .serializers import (
    CandidateSerializer,
    ElectionDetailSerializer,
    ElectionSummarySerializer,
    VoteCountSerializer,
    VoterSerializer,
)

logger = logging.getLogger(__name__)


# ---
# Helpers
# ---

@contextmanager
def _exclusive(registry):
    """
    Open a transaction holding the registry's writer lock.

    Yields the registry row re-read under the lock; callers must use it
    instead of the instance they were given, which may be stale.
    """
    with transaction.atomic():
        yield VotingRegistry.objects.select_for_update().get(pk=registry.pk)


def _require_admin(registry, caller):
    if not registry.is_admin(caller):
        raise NotAdmin(f"'{caller}' is not the admin of this registry.")


def _get_voter(registry, identity):
    try:
        return Voter.objects.get(registry=registry, identity=identity)
    except Voter.DoesNotExist:
        raise VoterNotFound(f"Voter '{identity}' is not registered.")


def _get_election(registry, election_id):
    try:
        return Election.objects.get(registry=registry, election_id=election_id)
    except Election.DoesNotExist:
        raise ElectionNotFound(f"Election {election_id} does not exist.")


def _require_phase(election, phase, action):
    if election.state != phase:
        raise InvalidElectionState(
            f"Cannot {action} election {election.election_id}: it is {election.state}, not {phase}."
        )


def _vote_counts(election):
    # A single statement, so a concurrent write is seen whole or not at all.
    # Count rows are created with their candidate, so id order is roster order.
    rows = VoteCount.objects.filter(election=election).order_by('candidate_id').values(
        'candidate_id', 'count'
    )
    return VoteCountSerializer(list(rows), many=True).data


# ---
# Registry & Identity Registry
# ---

def initialize(admin_identity):
    """Create an empty registry administered by ``admin_identity``."""
    registry = VotingRegistry.objects.create(admin=admin_identity)
    logger.info("Created registry %s with admin '%s'", registry.pk, admin_identity)
    return registry


def register_voter(registry, details, *, caller):
    """
    Register the caller as a voter. Anyone may self-register, once.

    Raises VoterAlreadyRegistered.
    """
    with _exclusive(registry) as locked:
        if Voter.objects.filter(registry=locked, identity=caller).exists():
            raise VoterAlreadyRegistered(f"'{caller}' is already registered.")

        Voter.objects.create(registry=locked, identity=caller, details=details)

    logger.info("Registered voter '%s' in registry %s", caller, registry.pk)


def verify_voter(registry, identity):
    """Whether ``identity`` is a registered voter. Never raises."""
    return Voter.objects.filter(registry=registry, identity=identity).exists()


def get_voter_details(registry, identity):
    """Raises VoterNotFound."""
    return _get_voter(registry, identity).details


def get_voter(registry, identity):
    """
    The whole voter record: identity, details, has_voted and vote_history.

    Raises VoterNotFound.
    """
    return VoterSerializer(_get_voter(registry, identity)).data


def update_voter_details(registry, identity, new_details, *, caller):
    """
    Replace a voter's details. Only the voter themself may do this;
    the admin gets no override.

    Raises NotAuthorized, VoterNotFound.
    """
    if caller != identity:
        raise NotAuthorized(f"'{caller}' cannot update the details of '{identity}'.")

    with _exclusive(registry) as locked:
        updated = Voter.objects.filter(registry=locked, identity=identity).update(details=new_details)
        if not updated:
            raise VoterNotFound(f"Voter '{identity}' is not registered.")


# ---
# Election Catalog & State Machine
# ---

def create_election(registry, name, start_time, end_time, *, caller):
    """
    Create an upcoming election and return its id.

    Ids are handed out from the registry's counter, starting at 1.

    Raises NotAdmin, InvalidElectionWindow.
    """
    with _exclusive(registry) as locked:
        _require_admin(locked, caller)
        if end_time <= start_time:
            raise InvalidElectionWindow(
                f"Election '{name}' ends at {end_time}, which is not after its start {start_time}."
            )

        election_id = locked.next_election_id
        Election.objects.create(
            registry=locked,
            election_id=election_id,
            name=name,
            start_time=start_time,
            end_time=end_time,
        )
        locked.next_election_id = election_id + 1
        locked.save(update_fields=['next_election_id'])

    logger.info("Created election %s '%s' in registry %s", election_id, name, registry.pk)
    return election_id


def add_candidate(registry, election_id, name, *, caller):
    """
    Append a candidate to an upcoming election's roster and return its id.

    The candidate and its zero vote count are written together, so the
    roster and the count table always hold the same candidate ids.

    Raises ElectionNotFound, InvalidElectionState.
    """
    with _exclusive(registry) as locked:
        election = _get_election(locked, election_id)
        _require_phase(election, Election.Phase.UPCOMING, "add a candidate to")

        candidate_id = election.next_candidate_id
        Candidate.objects.create(election=election, candidate_id=candidate_id, name=name)
        VoteCount.objects.create(election=election, candidate_id=candidate_id)
        election.next_candidate_id = candidate_id + 1
        election.save(update_fields=['next_candidate_id'])

    logger.info("'%s' added candidate %s '%s' to election %s", caller, candidate_id, name, election_id)
    return candidate_id


def start_election(registry, election_id, *, caller):
    """
    Open an upcoming election for voting.

    Raises NotAdmin, ElectionNotFound, InvalidElectionState.
    """
    with _exclusive(registry) as locked:
        _require_admin(locked, caller)
        election = _get_election(locked, election_id)
        _require_phase(election, Election.Phase.UPCOMING, "start")

        election.state = Election.Phase.ONGOING
        election.save(update_fields=['state'])

    logger.info("Election %s in registry %s is now ongoing", election_id, registry.pk)


def end_election(registry, election_id, *, caller):
    """
    End an election from any phase, including one that never started.

    Raises NotAdmin, ElectionNotFound.
    """
    with _exclusive(registry) as locked:
        _require_admin(locked, caller)
        election = _get_election(locked, election_id)

        election.state = Election.Phase.ENDED
        election.save(update_fields=['state'])

    logger.info("Election %s in registry %s has ended", election_id, registry.pk)


def list_elections(registry):
    """Every election of the registry as ``{election_id, name, state}``, by id."""
    return ElectionSummarySerializer(
        Election.objects.filter(registry=registry), many=True
    ).data


# ---
# Vote Casting & Revocation
# ---

def vote(registry, election_id, candidate_id, *, caller):
    """
    Cast the caller's vote for a candidate in an ongoing election.

    A voter gets one vote across the whole registry, not one per election.
    Once the vote commits, a VoteCasted message is broadcast; if that
    fails the vote still stands.

    Raises VoterNotFound, ElectionNotFound, InvalidElectionState,
    CandidateNotFound, VoteAlreadyCasted.
    """
    with _exclusive(registry) as locked:
        voter = _get_voter(locked, caller)
        election = _get_election(locked, election_id)
        _require_phase(election, Election.Phase.ONGOING, "vote in")

        if not Candidate.objects.filter(election=election, candidate_id=candidate_id).exists():
            raise CandidateNotFound(
                f"Candidate {candidate_id} is not running in election {election_id}."
            )

        if voter.has_voted:
            raise VoteAlreadyCasted(f"'{caller}' has already voted.")

        voter.has_voted = True
        voter.vote_history = voter.vote_history + [election.election_id]
        voter.save(update_fields=['has_voted', 'vote_history'])

        VoteCount.objects.filter(election=election, candidate_id=candidate_id).update(
            count=F('count') + 1
        )

        transaction.on_commit(
            partial(broadcast_vote_casted, locked.pk, caller, election.election_id, candidate_id),
            robust=True,
        )

    logger.info("'%s' voted in election %s", caller, election_id)


def revoke_vote(registry, election_id, candidate_id, *, caller):
    """
    Take back the caller's vote in an election.

    The count decremented is the one for ``candidate_id`` as given, which
    is not checked against the candidate the voter actually picked. If the
    voter has no vote recorded in this election nothing happens, unless
    the STRICT_REVOCATION setting is on, in which case NoVotesToRevoke is
    raised. Votes in an ended election can no longer be revoked.

    Raises VoterNotFound, ElectionNotFound, NoVotesToRevoke,
    InvalidElectionState, CandidateNotFound.
    """
    with _exclusive(registry) as locked:
        voter = _get_voter(locked, caller)
        election = _get_election(locked, election_id)

        if not voter.has_voted:
            raise NoVotesToRevoke(f"'{caller}' has not voted.")

        # An ended election's counts are final.
        if election.state == Election.Phase.ENDED:
            raise InvalidElectionState(
                f"Cannot revoke a vote in election {election.election_id}: it has ended."
            )

        if election.election_id not in voter.vote_history:
            if registry_setting('STRICT_REVOCATION'):
                raise NoVotesToRevoke(f"'{caller}' has no vote in election {election_id}.")
            logger.warning(
                "'%s' has no vote in election %s to revoke, ignoring", caller, election_id
            )
            return

        try:
            vote_count = VoteCount.objects.get(election=election, candidate_id=candidate_id)
        except VoteCount.DoesNotExist:
            raise CandidateNotFound(
                f"Candidate {candidate_id} is not running in election {election_id}."
            )
        if vote_count.count == 0:
            raise NoVotesToRevoke(f"Candidate {candidate_id} has no votes to take back.")

        vote_count.count = F('count') - 1
        vote_count.save(update_fields=['count'])

        # Only the first matching entry goes.
        voter.vote_history.remove(election.election_id)
        voter.has_voted = False
        voter.save(update_fields=['has_voted', 'vote_history'])

    logger.info("'%s' revoked their vote in election %s", caller, election_id)


# ---
# Tally & Query Surface
# ---

def tally_votes(registry, election_id):
    """
    The final count for each candidate, in roster order, as
    ``[{"candidate_id": ..., "count": ...}]``. Only for ended elections.

    Raises ElectionNotFound, InvalidElectionState.
    """
    election = _get_election(registry, election_id)
    _require_phase(election, Election.Phase.ENDED, "tally")
    return _vote_counts(election)


def get_election_results(registry, election_id):
    """
    Same projection as tally_votes but in any phase, so running counts
    can be watched while the election is still going.

    Raises ElectionNotFound.
    """
    return _vote_counts(_get_election(registry, election_id))


def get_election_details(registry, election_id):
    """Raises ElectionNotFound."""
    return ElectionDetailSerializer(_get_election(registry, election_id)).data


def get_candidates(registry, election_id):
    """Raises ElectionNotFound."""
    election = _get_election(registry, election_id)
    return CandidateSerializer(election.candidates.all(), many=True).data
