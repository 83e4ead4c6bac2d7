from rest_framework import serializers
from .models import Candidate, Election, Voter


# --- Serializers for the Tally ---

class VoteCountSerializer(serializers.Serializer):
    """
    Read-only serializer for one row of a tally.
    It is fed plain dicts, not model instances.
    """
    candidate_id = serializers.IntegerField()
    count = serializers.IntegerField(min_value=0)


# --- Serializers for the Election Catalog ---

class CandidateSerializer(serializers.ModelSerializer):

    class Meta:
        model = Candidate
        fields = ['candidate_id', 'name']


class ElectionDetailSerializer(serializers.ModelSerializer):
    """
    Read-only view of one election, with its roster in ballot order.
    """
    candidates = CandidateSerializer(many=True, read_only=True)

    class Meta:
        model = Election
        fields = ['name', 'candidates', 'state', 'start_time', 'end_time']


class ElectionSummarySerializer(serializers.ModelSerializer):

    class Meta:
        model = Election
        fields = ['election_id', 'name', 'state']


# --- Serializers for the Voter List ---

class VoterSerializer(serializers.ModelSerializer):

    class Meta:
        model = Voter
        fields = ['identity', 'details', 'has_voted', 'vote_history']


# --- Serializer for the outbound notification ---

class VoteCastedSerializer(serializers.Serializer):
    """
    Payload of the VoteCasted message published after a vote commits.
    """
    voter = serializers.CharField()
    election_id = serializers.IntegerField()
    candidate_id = serializers.IntegerField()
