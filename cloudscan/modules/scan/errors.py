"""
Error kinds raised by the cloud-to-scan conversion.

None of these is fatal: a transform failure drops one frame, an invalid
configuration is rejected while the previous one stays in effect.
"""


class TransformUnavailable(LookupError):
    """The transform between two frames could not be resolved in time."""

    def __init__(self, target_frame: str, source_frame: str, stamp: float, reason: str = ""):
        self.target_frame = target_frame
        self.source_frame = source_frame
        self.stamp = stamp
        self.reason = reason
        message = f"Transform {source_frame} -> {target_frame} unavailable at t={stamp:.6f}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigurationInvalid(ValueError):
    """A scan configuration update violated one of the parameter invariants."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")
