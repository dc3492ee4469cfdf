"""Errors raised by model estimation, fusion and evaluation."""


class FusionError(Exception):
    """Base class for sequential fusion errors."""

    pass


class InsufficientDataError(FusionError, ValueError):
    """A channel/class pair has no training observations."""

    def __init__(self, channel, label):
        """Initialize the exception.

        Args:
            channel: Channel identifier that could not be fitted.
            label: Class label with no training trials (None when the
                training labels name only one class).
        """
        self.channel = channel
        self.label = label
        target = "the second class" if label is None else f"class {label!r}"
        self.message = (
            f"Cannot fit a Gaussian for channel {channel!r}, {target}: "
            f"no training observations."
        )
        super().__init__(self.message)


class InvalidChannelReferenceError(FusionError, ValueError):
    """An ordering or subset references channels absent from the model set."""

    def __init__(self, channels):
        """Initialize the exception.

        Args:
            channels: The unknown channel identifiers.
        """
        self.channels = list(channels)
        self.message = f"Unknown channel(s): {self.channels}"
        super().__init__(self.message)


class EmptyTrialSetError(FusionError, ValueError):
    """Accuracy was requested over zero trials."""

    pass
