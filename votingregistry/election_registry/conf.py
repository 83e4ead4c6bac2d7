from django.conf import settings

# Overridden per key by the VOTING_REGISTRY dict in the Django settings.
DEFAULTS = {
    # Publish a VoteCasted message on the channel layer after each vote.
    'BROADCAST_VOTES': True,
    # Channel-layer groups are named "<prefix>_<registry pk>_<election id>".
    'GROUP_PREFIX': 'votes',
    # Raise NoVotesToRevoke instead of doing nothing when the voter has
    # no vote in the election they try to revoke from.
    'STRICT_REVOCATION': False,
}


def registry_setting(name):
    """Read one registry setting, falling back to its default."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown voting registry setting: {name}")
    overrides = getattr(settings, 'VOTING_REGISTRY', None) or {}
    return overrides.get(name, DEFAULTS[name])
