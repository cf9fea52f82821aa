"""Exception types raised by the retrieval evaluation harness."""


class EvaluationError(Exception):
    """Base class for evaluation harness errors."""


class LoadError(EvaluationError):
    """Suite definition is missing, unreadable, or malformed.

    Fatal: raised before any test case runs.
    """


class RetrievalError(EvaluationError, RuntimeError):
    """A retrieval backend failed to answer a query.

    Recoverable per test case: the case is recorded as failed and the suite
    continues.
    """
