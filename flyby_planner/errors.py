class PlannerError(Exception):
    """Base class for failures reported by the planner."""
    pass


class PreconditionError(PlannerError, ValueError):
    """
    Invalid input detected before any background work starts
    (mismatched attractors, bad bounds, inverted date window, malformed system).
    The caller must change its inputs before retrying.
    """
    pass


class InfeasibleTrajectoryError(PlannerError):
    """The search could not produce any trajectory satisfying the constraints."""
    pass


class NumericalError(PlannerError, ArithmeticError):
    """
    A primitive received degenerate input (zero radius, singular geometry...).
    Inside a trajectory search this only rejects the candidate being evaluated.
    """
    pass


class LambertError(NumericalError):
    pass


class SearchCancelled(Exception):
    """
    Raised by SearchOutcome.unwrap() when the search was cancelled.
    Deliberately not a PlannerError: a cancelled search did not fail.
    """
    pass
