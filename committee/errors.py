"""Error taxonomy for the committee pipeline."""


class CommitteeError(Exception):
    """Base class for every committee failure."""


class ConfigurationError(CommitteeError):
    """Raised when settings are empty/invalid or a backend cannot be initialised."""


class LeaderNotFound(CommitteeError):
    def __init__(self, leader: str) -> None:
        self.leader = leader
        super().__init__(f"leader model not found: {leader!r}")


class NoMembersResolved(CommitteeError):
    def __init__(self, requested: list[str]) -> None:
        self.requested = list(requested)
        super().__init__(f"no member model found among {self.requested}")


class MemberCallFailed(CommitteeError):
    """A single member call failed in phase 1 or 2. Logged, never raised out of a phase."""

    def __init__(self, member: str, stage: str, reason: str) -> None:
        self.member = member
        self.stage = stage
        self.reason = reason
        super().__init__(f"[{member}] {stage}: {reason}")


class LeaderCallFailed(CommitteeError):
    def __init__(self, leader: str, reason: str) -> None:
        self.leader = leader
        self.reason = reason
        super().__init__(f"[{leader}] {reason}")


class StageFailed(CommitteeError):
    """Fatal failure wrapped with the name of the stage it came from."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")
