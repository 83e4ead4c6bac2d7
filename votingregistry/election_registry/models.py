from django.db import models


# --- Model 1: The Registry ---
# The top-level aggregate. Every operation goes through one of these.

class VotingRegistry(models.Model):
    """
    Owns the voters and the election catalog, and names the single
    admin principal allowed to run elections.
    """
    admin = models.CharField(max_length=255, editable=False,
                             help_text="Identity of the administrative principal.")

    next_election_id = models.PositiveBigIntegerField(default=1,
                                                      help_text="Id handed to the next created election.")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "voting registries"

    def __str__(self):
        return f"Registry {self.pk} (admin {self.admin})"

    def is_admin(self, identity):
        return identity == self.admin


# --- Model 2: The Voter List ---

class Voter(models.Model):
    """
    One registered principal. A voter registers themself and is never removed.
    """
    registry = models.ForeignKey(VotingRegistry, on_delete=models.CASCADE,
                                 related_name="voters")

    identity = models.CharField(max_length=255, db_index=True)

    details = models.TextField(blank=True)

    # Shared across every election of the registry, not per election.
    has_voted = models.BooleanField(default=False)

    # Election ids this voter has a live vote in.
    vote_history = models.JSONField(default=list, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['registry', 'identity'],
                                    name='unique_voter_identity_per_registry'),
        ]

    def __str__(self):
        return f"Voter {self.identity}"


# --- Model 3: The Election ---

class Election(models.Model):
    """
    A single election and its phase.
    Candidates can only be added while it is upcoming,
    votes can only be cast while it is ongoing.
    """

    class Phase(models.TextChoices):
        UPCOMING = "upcoming", "Upcoming"
        ONGOING = "ongoing", "Ongoing"
        ENDED = "ended", "Ended"

    registry = models.ForeignKey(VotingRegistry, on_delete=models.CASCADE,
                                 related_name="elections")

    # This is the id callers use; unique within the registry.
    election_id = models.PositiveBigIntegerField()

    name = models.CharField(max_length=255)

    state = models.CharField(max_length=16, choices=Phase.choices,
                             default=Phase.UPCOMING)

    next_candidate_id = models.PositiveBigIntegerField(default=1)

    # Opaque caller-supplied timestamps, never compared against the clock.
    start_time = models.BigIntegerField()
    end_time = models.BigIntegerField()

    class Meta:
        ordering = ['registry', 'election_id']
        constraints = [
            models.UniqueConstraint(fields=['registry', 'election_id'],
                                    name='unique_election_id_per_registry'),
        ]

    def __str__(self):
        return f"Election {self.election_id}: {self.name} ({self.state})"


# --- Model 4: The Candidate Roster ---

class Candidate(models.Model):
    election = models.ForeignKey(Election, on_delete=models.CASCADE,
                                 related_name="candidates")

    candidate_id = models.PositiveBigIntegerField()

    name = models.CharField(max_length=255)

    class Meta:
        # Roster order is insertion order.
        ordering = ['candidate_id']
        constraints = [
            models.UniqueConstraint(fields=['election', 'candidate_id'],
                                    name='unique_candidate_id_per_election'),
        ]

    def __str__(self):
        return f"Candidate {self.candidate_id}: {self.name}"


# --- Model 5: The Vote Counts ---
# Kept parallel to the roster: one row per candidate, created with it.

class VoteCount(models.Model):
    election = models.ForeignKey(Election, on_delete=models.CASCADE,
                                 related_name="vote_counts")

    candidate_id = models.PositiveBigIntegerField()

    count = models.PositiveBigIntegerField(default=0)

    class Meta:
        ordering = ['candidate_id']
        constraints = [
            models.UniqueConstraint(fields=['election', 'candidate_id'],
                                    name='unique_vote_count_per_candidate'),
        ]

    def __str__(self):
        return f"{self.count} vote(s) for candidate {self.candidate_id}"
