import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import cloudscraper
import structlog
from requests.exceptions import HTTPError, RequestException

from .exceptions import FetchError, LoginError, OomError

logger = structlog.get_logger(__name__)

LOGIN_REQUIRED_MARKER = "<title>Login Required"

# The capability handed to the resolver and loader: url -> page bytes.
Fetcher = Callable[[str], bytes]


@dataclass(frozen=True)
class Credentials:
    email: str
    pin: str


class ClubSession:
    """Logged-in session with the club website.

    Built once by the caller and passed to the pipeline; ``fetch`` may be
    called from several worker threads. When a credentials provider is given
    the session logs in before its first fetch, so runs served entirely from
    the cache never ask for credentials.
    """

    def __init__(
        self,
        base_url: str,
        credentials_provider: Callable[[], Credentials] | None = None,
        delay_range: tuple[float, float] = (0.0, 0.5),
    ):
        """
        Initialize the session with cloudscraper to get past bot protection.

        :param base_url: Root URL of the club website.
        :param credentials_provider: Called once to get login credentials.
        :param delay_range: Tuple (min, max) seconds to wait between requests.
        """
        self.base_url = base_url.rstrip("/")
        self.scraper = cloudscraper.create_scraper()
        self.credentials_provider = credentials_provider
        self.delay_range = delay_range
        self.last_request_time = 0.0
        self.logged_in = False
        self._login_error: OomError | None = None
        self._rate_lock = threading.Lock()
        self._login_lock = threading.Lock()

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/login.php"

    def _wait_for_rate_limit(self) -> None:
        """Sleeps for a random amount of time to respect rate limits."""
        with self._rate_lock:
            elapsed = time.time() - self.last_request_time
            wait_time = random.uniform(*self.delay_range)
            if elapsed < wait_time:
                sleep_time = wait_time - elapsed
                logger.debug("rate_limit_sleep", seconds=round(sleep_time, 2))
                time.sleep(sleep_time)
            self.last_request_time = time.time()

    def login(self, credentials: Credentials) -> None:
        """Logs in to the club website.

        The first request only sets the session cookie; the form post then
        authenticates it.

        Raises:
            LoginError: The website answered with its login page again.
            FetchError: The login pages could not be fetched.
        """
        self._request("get", self.login_url)
        response = self._request(
            "post",
            self.login_url,
            data={
                "task": "login",
                "topmenu": "1",
                "memberid": credentials.email,
                "pin": credentials.pin,
                "cachemid": "1",
                "Submit": "Login",
            },
        )
        if LOGIN_REQUIRED_MARKER in response.text:
            raise LoginError(
                f"Login as {credentials.email} was refused", url=self.login_url
            )
        self.logged_in = True
        logger.info("logged_in", email=credentials.email)

    def _ensure_logged_in(self) -> None:
        """Logs in on first use; a failed login is re-raised, never retried."""
        if self.credentials_provider is None:
            return
        with self._login_lock:
            if self._login_error is not None:
                raise self._login_error
            if self.logged_in:
                return
            try:
                self.login(self.credentials_provider())
            except OomError as e:
                self._login_error = e
                raise

    def fetch(self, url: str) -> bytes:
        """Returns the body of the page at url.

        Raises:
            LoginError: The first fetch needed a login and it was refused.
            FetchError: Transport error or non-success status. Not retried.
        """
        self._ensure_logged_in()
        self._wait_for_rate_limit()
        logger.info("fetching_page", url=url)
        return self._request("get", url).content

    def _request(self, method: str, url: str, **kwargs):
        try:
            response = self.scraper.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(
                f"Server returned status {status} for {url}", url=url, status_code=status
            ) from e
        except RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e
