import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .conf import registry_setting
from .serializers import VoteCastedSerializer

logger = logging.getLogger(__name__)

# Consumers subscribed to a vote group receive {"type": VOTE_CASTED, "payload": {...}}.
# Channels dispatches "vote.casted" to a consumer method named vote_casted().
VOTE_CASTED = "vote.casted"


def vote_group_name(registry_pk, election_id):
    """The channel-layer group that hears about votes in one election."""
    return f"{registry_setting('GROUP_PREFIX')}_{registry_pk}_{election_id}"


def broadcast_vote_casted(registry_pk, voter, election_id, candidate_id):
    """
    Publish a VoteCasted message for a committed vote.

    Delivery is best-effort: the vote is already committed when this runs,
    so any failure here is logged and never reaches the caller.
    """
    if not registry_setting('BROADCAST_VOTES'):
        return

    payload = dict(VoteCastedSerializer({
        "voter": voter,
        "election_id": election_id,
        "candidate_id": candidate_id,
    }).data)
    group_name = vote_group_name(registry_pk, election_id)

    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer configured, dropping VoteCasted for %s", group_name)
            return

        async_to_sync(channel_layer.group_send)(
            group_name,
            {
                "type": VOTE_CASTED,
                "payload": payload,
            }
        )
        logger.debug("Sent VoteCasted to %s", group_name)
    except Exception:
        # The vote stands regardless.
        logger.exception("Could not broadcast VoteCasted to %s", group_name)
