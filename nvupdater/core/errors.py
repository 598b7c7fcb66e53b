"""Error types raised by the update-check flow."""


class UpdaterError(Exception):
    """Base class for all NvUpdater errors."""


class NetworkFailure(UpdaterError):
    """NVIDIA endpoint unreachable or no connectivity."""


class ParseFailure(UpdaterError):
    """Vendor response did not have the expected format.

    ``request`` holds the URL that produced the unexpected response.
    """

    def __init__(self, message: str, request: str = ""):
        super().__init__(message)
        self.request = request


class ChannelUnsupported(ParseFailure):
    """The catalog has no entry for this GPU on the requested driver channel."""


class UnknownGpu(ParseFailure):
    """The GPU name does not appear in NVIDIA's product catalog."""


class NoSupportedGpu(UpdaterError):
    """No NVIDIA display adapter was found."""


class VersionFormatError(UpdaterError):
    """A driver version string could not be read as a number."""


class DownloadFailure(UpdaterError):
    """Installer download did not complete."""


# Process exit codes for unrecoverable startup failures
EXIT_UNSUPPORTED = 1
EXIT_INVALID_RESPONSE = 10
EXIT_NETWORK = 11
EXIT_NO_GPU = 255
