"""Exception hierarchy for the Order of Merit builder.

Every failure in the pipeline is fatal for the run: a season ranking built
from incomplete or misattributed competition data is worse than no ranking.
The exceptions carry structured context so the CLI can log what went wrong
and how to fix it.
"""

from typing import Any


class OomError(Exception):
    """Base exception for all Order of Merit errors.

    Attributes:
        message: Human-readable error message.
        error_data: Structured error information for logging.
        suggestion: Hint for how to resolve the error.
    """

    def __init__(
        self,
        message: str,
        error_data: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message.
            error_data: Structured context (URLs, ids, paths, etc.).
            suggestion: Actionable correction hint.
        """
        super().__init__(message)
        self.message = message
        self.error_data = error_data or {}
        self.suggestion = suggestion

    def __str__(self) -> str:
        """Return formatted error message with suggestion if available."""
        base = self.message
        if self.suggestion:
            return f"{base}\nSuggestion: {self.suggestion}"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to structured dictionary for logging.

        Returns:
            Dictionary with error type, message, data, and suggestion.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_data": self.error_data,
            "suggestion": self.suggestion,
        }


class ConfigError(OomError):
    """Unreadable or malformed configuration, credentials or cache file.

    Examples:
        - oom.conf missing
        - creds.conf with no PIN line
        - a hand-edited <id>.txt cache record with a broken row
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        line_number: int | None = None,
        error_data: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize configuration error.

        Args:
            message: Human-readable error message.
            path: File that could not be read or parsed.
            line_number: 1-based line number of the offending line.
            error_data: Additional context.
            suggestion: How to resolve the error.
        """
        data = error_data or {}
        data.update({"path": path, "line_number": line_number})

        default_suggestion = suggestion or (
            f"Check the contents of '{path}'. Cache records may be deleted "
            f"to have them rebuilt from the club website."
            if path
            else "Check the command-line arguments and configuration."
        )

        super().__init__(message, data, default_suggestion)
        self.path = path
        self.line_number = line_number


class FetchError(OomError):
    """Transport failure or non-success response from the club website.

    Fetch errors are never retried: every requested competition is needed
    for the ranking, so the run is aborted instead.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        error_data: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize fetch error.

        Args:
            message: Human-readable error message.
            url: The URL that failed.
            status_code: HTTP status code if applicable.
            error_data: Additional context.
            suggestion: How to resolve the error.
        """
        data = error_data or {}
        data.update({"url": url, "status_code": status_code})

        default_suggestion = suggestion or (
            "Check network connectivity and that the club website is up, "
            "then rerun. Competitions already cached will not be fetched again."
        )

        super().__init__(message, data, default_suggestion)
        self.url = url
        self.status_code = status_code


class LoginError(FetchError):
    """The club website rejected the supplied credentials."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(
            message,
            url=url,
            suggestion="Check the email and PIN in the credentials file.",
        )


class ParseError(OomError):
    """A page did not match either known result layout at an expected anchor.

    Examples:
        - A result row without the closing ``</a></td>``
        - A championship row without ``</td></tr>``
    """

    def __init__(
        self,
        message: str,
        layout: str | None = None,
        anchor: str | None = None,
        html_snippet: str | None = None,
        error_data: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize parse error.

        Args:
            message: Human-readable error message.
            layout: Layout mode in use ("standard" or "championship").
            anchor: The marker that could not be found.
            html_snippet: Relevant HTML snippet (truncated).
            error_data: Additional context.
            suggestion: How to resolve the error.
        """
        data = error_data or {}
        data.update(
            {
                "layout": layout,
                "anchor": anchor,
                "html_snippet": html_snippet[:500] if html_snippet else None,
            }
        )

        default_suggestion = suggestion or (
            f"The results page layout may have changed. "
            f"Check for '{anchor}' in the source page."
            if anchor
            else "The results page layout may have changed."
        )

        super().__init__(message, data, default_suggestion)
        self.layout = layout
        self.anchor = anchor


class ResolutionError(OomError):
    """A requested competition id is not on the club's listing page."""

    def __init__(
        self,
        message: str,
        comp_id: str | None = None,
        year: int | None = None,
        error_data: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize resolution error.

        Args:
            message: Human-readable error message.
            comp_id: The competition id that could not be found.
            year: The season whose listing was consulted.
            error_data: Additional context.
            suggestion: How to resolve the error.
        """
        data = error_data or {}
        data.update({"comp_id": comp_id, "year": year})

        default_suggestion = suggestion or (
            f"Competition {comp_id} is not listed for {year}. "
            f"Check the ?compid= values in the configuration file and the --year option."
        )

        super().__init__(message, data, default_suggestion)
        self.comp_id = comp_id
        self.year = year
