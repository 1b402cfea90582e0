"""
Custom exception hierarchy for audiobookrepack.

Every fatal condition of a repack run is one of these classes; they carry an
error code and a suggestion so the CLI can print a useful message.
"""


class RepackError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message, error_code=None, suggestion=None):
        self.error_code = error_code
        self.suggestion = suggestion
        super().__init__(message)

    def get_user_message(self):
        """Get a user-friendly error message with suggestions."""
        message = str(self)
        if self.suggestion:
            message += f"\n\nSuggestion: {self.suggestion}"
        if self.error_code:
            message += f"\nError Code: {self.error_code}"
        return message


class DependencyError(RepackError):
    """Raised when required external tools are not found or not working."""

    def __init__(self, dependency_name, message=None):
        self.dependency_name = dependency_name

        if not message:
            message = f"Required dependency '{dependency_name}' is not available"

        suggestion = self._get_dependency_suggestion(dependency_name)
        super().__init__(message, error_code="DEP001", suggestion=suggestion)

    def _get_dependency_suggestion(self, dependency_name):
        """Provide specific installation suggestions for different dependencies."""
        suggestions = {
            "ffmpeg": "Install FFmpeg from https://ffmpeg.org/ and ensure it's in your system PATH",
            "ffprobe": "ffprobe ships with FFmpeg; install FFmpeg and ensure ffprobe is in your system PATH",
        }
        return suggestions.get(dependency_name.lower(), f"Please install {dependency_name}")


class UnparseableTitleError(RepackError):
    """Raised when a folder name does not follow the book naming convention."""

    def __init__(self, title):
        self.title = title

        message = f"Could not parse book information from title: '{title}'"
        suggestion = ("Rename the folder to '<Title> - Written by <Author> - Narrated by <Narrator>' "
                      "or tag the first chapter file with title and album")
        super().__init__(message, error_code="TITLE001", suggestion=suggestion)


class ProbeFailureError(RepackError):
    """Raised when ffprobe (or the ffmetadata extraction) fails for a file."""

    def __init__(self, message, filename, exit_code=None, stderr=None):
        self.filename = filename
        self.exit_code = exit_code
        self.stderr = stderr

        full_message = f"Probe failed: {message} (file: {filename})"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"
        if stderr:
            full_message += f"\n{stderr.strip()}"

        suggestion = "Check that the file is a readable audio file and is not corrupted"
        super().__init__(full_message, error_code="PROBE001", suggestion=suggestion)


class ExternalToolError(RepackError):
    """Raised when the ffmpeg concatenation process fails or cannot be started."""

    def __init__(self, message, exit_code=None, stderr=None):
        self.exit_code = exit_code
        self.stderr = stderr

        full_message = f"FFmpeg failed: {message}"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"

        suggestion = "Check the log file for FFmpeg output; a partially written output file may need to be removed"
        super().__init__(full_message, error_code="TOOL001", suggestion=suggestion)


class MetadataError(RepackError):
    """Raised when tagging the finished output file fails."""

    def __init__(self, message, filename):
        self.filename = filename

        full_message = f"Metadata operation failed: {message} (file: {filename})"
        suggestion = "Check file permissions and ensure the file is not corrupted"
        super().__init__(full_message, error_code="META001", suggestion=suggestion)


class ValidationError(RepackError):
    """Raised when input validation fails."""

    def __init__(self, message, validation_type, value=None):
        self.validation_type = validation_type
        self.value = value

        full_message = f"Validation failed ({validation_type}): {message}"
        if value is not None:
            full_message += f" (value: {value})"

        suggestion = self._get_validation_suggestion(validation_type)
        super().__init__(full_message, error_code="VAL001", suggestion=suggestion)

    def _get_validation_suggestion(self, validation_type):
        """Provide specific suggestions for different validation failures."""
        suggestions = {
            "path": "Ensure the folder exists and you have appropriate permissions",
            "no_chapters": "The folder must contain the chapter files (e.g. .m4a) of one audiobook",
        }
        return suggestions.get(validation_type, "Please check the input and try again")


class ConfigurationError(RepackError):
    """Raised when configuration is invalid."""

    def __init__(self, message, config_key=None, config_value=None):
        self.config_key = config_key
        self.config_value = config_value

        full_message = f"Configuration error: {message}"
        if config_key:
            full_message += f" (key: {config_key})"
        if config_value is not None:
            full_message += f" (value: {config_value})"

        suggestion = "Check your configuration settings and ensure all values are valid"
        super().__init__(full_message, error_code="CFG001", suggestion=suggestion)


class RepackInterruptedError(RepackError):
    """Raised when a running concatenation is cancelled."""

    def __init__(self, message, stage=None):
        self.stage = stage

        full_message = f"Processing interrupted: {message}"
        if stage:
            full_message += f" (stage: {stage})"

        suggestion = "Processing must be restarted; remove the partially written output file first"
        super().__init__(full_message, error_code="INT001", suggestion=suggestion)


def classify_error(exception):
    """Classify errors for reporting."""
    if isinstance(exception, (DependencyError, ConfigurationError)):
        return "fatal"  # Cannot continue without fixing the environment
    elif isinstance(exception, (ValidationError, UnparseableTitleError)):
        return "user_error"  # User needs to fix the input
    elif isinstance(exception, MetadataError):
        return "recoverable"  # Output exists, only tagging failed
    elif isinstance(exception, RepackError):
        return "fatal"
    else:
        return "unknown"
