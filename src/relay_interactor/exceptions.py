"""
Exception types raised by the relay interactor.

Transport failures coming from the node (web3 RPC errors, aiohttp errors,
timeouts) are not wrapped here: they propagate unchanged from every operation
except relay-call validation, which folds all failures into a
ValidationOutcome.
"""


class InteractorError(Exception):
    """Base class for relay interactor errors."""


class UninitializedError(InteractorError):
    """Chain context was read before initialize() completed."""

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Chain context not initialized: cannot read {attribute} before initialize()")
        self.attribute = attribute


class InvalidAddressError(InteractorError, ValueError):
    """An account address given to the contract registry is malformed."""

    def __init__(self, address: object) -> None:
        super().__init__(f"Invalid address: {address!r}")
        self.address = address


class UnknownEventError(InteractorError, ValueError):
    """An event name is not declared in the contract's ABI."""

    def __init__(self, event_name: str, contract_name: str = "contract") -> None:
        super().__init__(f"Event {event_name} not found in {contract_name} ABI")
        self.event_name = event_name


class SimulationFailure(InteractorError):
    """
    A stage of relay-call simulation failed.

    Never escapes RelayCallValidator.validate(); the message becomes the
    return value of a reverted ValidationOutcome.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{self._prefix(stage)}: {describe_exception(cause)}")

    @staticmethod
    def _prefix(stage: str) -> str:
        if stage == "canRelay":
            return "canRelay reverted (should not happen)"
        return f"{stage} failed"


def describe_exception(exc: BaseException) -> str:
    """Text of an exception, falling back to its class name when empty."""
    message = str(exc).strip()
    if not message:
        return type(exc).__name__
    return message
