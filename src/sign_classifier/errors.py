"""Exception hierarchy for sign_classifier.

Configuration errors are deliberately *not* ``ValueError`` subclasses: they are
raised from inside pydantic validators and must reach the caller unchanged
instead of being folded into a ``pydantic.ValidationError``.
"""


class SignClassifierError(Exception):
    """Base class for every error raised by sign_classifier."""


class SampleError(SignClassifierError):
    """A single sample could not be turned into features.

    Dataset assembly recovers from these locally: the sample is logged and
    skipped, the rest of the build continues.
    """


class InvalidPixelError(SampleError):
    """A pixel sample is absent, not 4-channel, or out of range."""


class CroppingError(SampleError):
    """The region of interest could not be isolated from an image."""


class ImageDecodeError(SampleError):
    """An image file could not be read or decoded."""


class InconsistentFeatureSizeError(SignClassifierError):
    """Feature vectors of one batch do not share the expected length."""


class InvalidConfigurationError(SignClassifierError):
    """Feature extraction or dataset assembly was misconfigured."""


class InvalidModelConfigurationError(SignClassifierError):
    """A network builder parameter is missing or out of range."""


class InvalidActivationParameterError(SignClassifierError):
    """An activation was constructed with an unusable parameter."""


class TrainingFaultError(SignClassifierError):
    """A training pass produced a numeric fault; training is aborted."""


class EvaluationError(SignClassifierError):
    """A model could not be scored against the given dataset."""
