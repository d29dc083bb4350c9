"""Cold start bookkeeping"""


class ColdStart:
    """Tracks whether the current execution environment has served a request.

    The flag starts out true when the object is created (normally at import
    time) and is flipped by ``consume``. Each utility owns one instance, so a
    cold start is reported once per utility per process.
    """

    def __init__(self) -> None:
        self._cold = True

    def peek(self) -> bool:
        """Read the flag without changing it"""
        return self._cold

    def consume(self) -> bool:
        """Return the flag and mark the environment as warm"""
        cold = self._cold
        self._cold = False
        return cold

    def reset(self) -> None:
        """Mark the environment as cold again (used by tests)"""
        self._cold = True
