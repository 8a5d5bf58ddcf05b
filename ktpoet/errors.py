"""Error taxonomy shared by the type model, the builders and the CLI.

Every failure is fatal and propagates to the caller. Each error carries a
machine-readable code from VALID_ERROR_CODES, a message, and an optional
suggestion that the CLI prints as a hint.
"""

VALID_ERROR_CODES = {
    # Translation and rendering
    "UNSUPPORTED_SHAPE",
    "UNIMPLEMENTED_ARITY",
    "MISSING_TYPE_ARGUMENT",
    "ILLEGAL_MODIFIER_COMBINATION",
    # CLI configuration
    "PATH_NOT_FOUND",
    "INVALID_INDENT",
    "INVALID_PACKAGE_NAME",
    "CONFLICT_OUTPUT_FLAGS",
}


class KtPoetError(Exception):
    code = "UNSUPPORTED_SHAPE"

    def __init__(
        self, message: str, suggestion: str | None = None, code: str | None = None
    ):
        code = code or type(self).code
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class UnsupportedShape(KtPoetError):
    """A value outside the closed set of variants reached a dispatch point."""

    code = "UNSUPPORTED_SHAPE"


class UnimplementedArity(KtPoetError):
    """Variadic function arity (kotlin.FunctionN) cannot be reconstructed."""

    code = "UNIMPLEMENTED_ARITY"


class MissingTypeArgument(KtPoetError, LookupError):
    code = "MISSING_TYPE_ARGUMENT"


class IllegalModifierCombination(KtPoetError):
    code = "ILLEGAL_MODIFIER_COMBINATION"


class ConfigError(KtPoetError):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        super().__init__(message, suggestion, code=code)
