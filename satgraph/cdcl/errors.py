class InvariantViolation(RuntimeError):
    """
    Raised when the trail, the implication graph or conflict analysis reach a
    state that correct bookkeeping can never produce. The solve is aborted.
    """


class SearchBudgetExhausted(RuntimeError):
    """Raised when a solve runs past its `max_steps` budget."""

    def __init__(self, steps):
        super().__init__(f"Search stopped after {steps} steps without an answer")
        self.steps = steps
