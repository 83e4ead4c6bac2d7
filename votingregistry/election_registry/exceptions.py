"""
Failure kinds raised by the registry services.

Every error is a precondition violation detected before anything is
written, or inside the transaction that is then rolled back. The Django
base classes let an outer layer map them without knowing these types:
PermissionDenied -> 403, ObjectDoesNotExist -> 404.
"""
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied


class RegistryError(Exception):
    code = "registry_error"
    default_message = "The voting registry rejected the operation."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


# --- Authorization ---

class NotAdmin(RegistryError, PermissionDenied):
    code = "not_admin"
    default_message = "Only the registry admin can do this."


class NotAuthorized(RegistryError, PermissionDenied):
    code = "not_authorized"
    default_message = "A voter can only change their own record."


# --- Lookups ---

class NotFound(RegistryError, ObjectDoesNotExist):
    code = "not_found"


class VoterNotFound(NotFound):
    code = "voter_not_found"
    default_message = "Voter is not registered."


class ElectionNotFound(NotFound):
    code = "election_not_found"
    default_message = "Election does not exist."


class CandidateNotFound(NotFound):
    code = "candidate_not_found"
    default_message = "Candidate is not on this election's roster."


# --- Uniqueness ---

class AlreadyExists(RegistryError):
    code = "already_exists"


class VoterAlreadyRegistered(AlreadyExists):
    code = "voter_already_registered"
    default_message = "This identity is already registered as a voter."


# --- State ---

class InvalidState(RegistryError):
    code = "invalid_state"


class VoteAlreadyCasted(InvalidState):
    code = "vote_already_casted"
    default_message = "This voter has already cast a vote."


class NoVotesToRevoke(InvalidState):
    code = "no_votes_to_revoke"
    default_message = "There is no vote to revoke."


class InvalidElectionState(InvalidState):
    code = "invalid_election_state"
    default_message = "The election is not in the right phase for this."


# --- Input ---

class InvalidElectionWindow(RegistryError, ValueError):
    code = "invalid_election_window"
    default_message = "An election must end after it starts."
