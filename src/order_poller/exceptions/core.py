class PollerError(Exception):
    pass

class ConfigError(PollerError):
    pass


class RecoverableError(PollerError):
    """Transient failure; absorbed at the source/sink boundary and never retried."""


class UpstreamError(RecoverableError):
    """Upstream answered, but not with the payload shape the source expects."""


class FatalError(PollerError):
    """Non-recoverable failure; the process is expected to exit."""


class ContractViolation(FatalError):
    """A source or sink raised where it promised never to raise."""
