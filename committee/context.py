"""Per-request context resolution: pick the leader and the committee members."""

import logging

from committee.errors import LeaderNotFound, NoMembersResolved
from committee.models import CommitteeContext, CommitteeRequest
from committee.registry import MemberRegistry

logger = logging.getLogger(__name__)


def build_context(registry: MemberRegistry, request: CommitteeRequest) -> CommitteeContext:
    """Resolve leader and members for one request. Pure; no backend calls.

    An empty member list selects the whole registry. Requested names missing
    from the registry are dropped silently.

    Raises:
        LeaderNotFound: The requested leader is not registered.
        NoMembersResolved: No requested member is registered.
    """
    leader = registry.get(request.leader)
    if leader is None:
        raise LeaderNotFound(request.leader)

    if request.members:
        requested = set(request.members)
        members = {name: registry[name] for name in registry.names() if name in requested}
        dropped = sorted(requested - set(members))
        if dropped:
            logger.debug("Ignoring unknown committee members: %s", dropped)
    else:
        members = {name: registry[name] for name in registry.names()}

    if not members:
        raise NoMembersResolved(request.members)

    return CommitteeContext(
        messages=list(request.messages),
        leader=leader,
        members=members,
        want_opinions=request.want_opinions,
        want_reviews=request.want_reviews,
    )
