"""Domain exceptions."""


class FitmacroError(Exception):
    """Base error for the FitMacro API."""


class LlmUnavailableError(FitmacroError):
    """Raised when an LLM call is needed but no client is configured."""


class NutritionParseError(FitmacroError):
    """Raised when a stage that is the only source of nutrition fails."""


class PizzaEstimationError(FitmacroError):
    """Raised when the pizza subroutine cannot produce per-slice totals."""


class AuthError(FitmacroError):
    """Raised when a bearer token cannot be verified."""
