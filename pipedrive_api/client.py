import base64
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import backoff
import requests
import singer
from requests.exceptions import JSONDecodeError, RequestException, Timeout

from pipedrive_api.exceptions import APIBadResponse

logger = singer.get_logger()

__version__ = "0.1.0"

DEFAULT_DOMAIN_URL = "https://api.pipedrive.com"
API_PATH_PREFIX = "/v1"
AUTH_URL = "https://oauth.pipedrive.com/oauth"
DEFAULT_USER_AGENT = f"pipedrive-api/{__version__}"
DEFAULT_TIMEOUT = 30

MAX_TIMEOUT_TRIES = 5
MAX_PARSE_TRIES = 3
PARSE_RETRY_INTERVAL = 5

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

JSON_CONTENT_TYPE = re.compile(r"\bjson\b")

IRREGULAR_PLURALS = {"person": "people"}
ENTITY_NAME_OVERRIDES = {"people": "persons", "calllogs": "call_logs"}


def pluralize(word):
    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", word):
        return word + "es"
    return word + "s"


def entity_name(type_name: str) -> str:
    """REST resource name for an entity type, e.g. ``Person`` -> ``persons``."""
    plural = pluralize(type_name.replace("_", "").lower())
    return ENTITY_NAME_OVERRIDES.get(plural, plural)


class Envelope(dict):
    """Response mapping with attribute access, nested mappings included."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for key, value in self.items():
            super().__setitem__(key, _wrap(value))

    def __setitem__(self, key, value):
        super().__setitem__(key, _wrap(value))

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name, value):
        self[name] = value


def _wrap(value):
    if isinstance(value, dict) and not isinstance(value, Envelope):
        return Envelope(value)
    if isinstance(value, list):
        return [_wrap(item) for item in value]
    return value


@dataclass
class ClientOptions:
    timeout: Optional[float] = DEFAULT_TIMEOUT
    proxies: Dict[str, str] = field(default_factory=dict)
    verify: bool = True
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    debug: bool = False


def _log_backoff(details):
    logger.warning(
        f"retrying {details['args'][1].upper()} {details['args'][2]} "
        f"in {details['wait']:.1f}s (attempt {details['tries']}): {details['exception']!r}"
    )


class Base:
    """Pipedrive entity endpoint bound to one set of OAuth credentials.

    Subclasses name the entity (``class CallLog(Base)`` talks to
    ``/v1/call_logs``) and mix in the operations they support.
    """

    client_id: str = None
    client_secret: str = None
    domain_url: str = None
    authentication_callback: Callable[[Dict[str, Any]], Any] = None

    def __init__(
        self,
        client_id=None,
        client_secret=None,
        access_token=None,
        refresh_token=None,
        domain_url=None,
        authentication_callback=None,
        client_options: Optional[ClientOptions] = None,
    ):
        self._connection = None
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.domain_url = (domain_url or DEFAULT_DOMAIN_URL).rstrip("/")
        self.authentication_callback = authentication_callback
        self.client_options = client_options or ClientOptions()

    @property
    def access_token(self):
        return self._access_token

    @access_token.setter
    def access_token(self, value):
        self._access_token = value
        # cached session still carries the old bearer token
        self.reset_connection()

    @property
    def refresh_token(self):
        return self._refresh_token

    @refresh_token.setter
    def refresh_token(self, value):
        self._refresh_token = value
        self.reset_connection()

    @property
    def entity_name(self):
        return entity_name(type(self).__name__)

    @property
    def headers(self):
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self.client_options.user_agent,
        }
        headers.update(self.client_options.headers)
        return headers

    @property
    def connection(self):
        if self._connection is None:
            session = requests.Session()
            session.headers.update(self.headers)
            session.proxies.update(self.client_options.proxies)
            session.verify = self.client_options.verify
            self._connection = session
        return self._connection

    def reset_connection(self):
        if self._connection is not None:
            self._connection.close()
        self._connection = None

    def set_credentials(self, creds):
        self.access_token = creds.get("access_token", self.access_token)
        self.refresh_token = creds.get("refresh_token", self.refresh_token)

    def make_api_call(self, method, *args, fields_to_select=None, **params):
        if not method:
            raise ValueError("method param missing")
        method = method.lower()
        if method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method: {method}")

        url = self.build_url(args, fields_to_select)
        can_refresh = True
        while True:
            response, body = self._send(method, url, params)
            if response.status_code == 401 and can_refresh:
                can_refresh = False
                logger.info(f"got 401 from {url}, refreshing access token")
                self.refresh_access_token()
                continue
            return self.process_response(response, body)

    @backoff.on_exception(
        backoff.expo,
        Timeout,
        max_tries=MAX_TIMEOUT_TRIES,
        on_backoff=_log_backoff,
    )
    @backoff.on_exception(
        backoff.constant,
        APIBadResponse,
        interval=PARSE_RETRY_INTERVAL,
        jitter=None,
        max_tries=MAX_PARSE_TRIES,
        on_backoff=_log_backoff,
    )
    def _send(self, method, url, params):
        kwargs = {"timeout": self.client_options.timeout}
        if method == "get":
            kwargs["params"] = params or None
        elif method != "delete":
            kwargs["json"] = params

        if self.client_options.debug:
            logger.debug(f"{method.upper()} {url} {kwargs}")
        response = self.connection.request(method.upper(), url, **kwargs)
        if self.client_options.debug:
            logger.debug(f"{response.status_code} {response.text}")

        return response, self._parse_body(response)

    def _parse_body(self, response):
        content_type = response.headers.get("Content-Type", "")
        if not response.content or not JSON_CONTENT_TYPE.search(content_type):
            return None
        try:
            return response.json()
        except JSONDecodeError:
            raise APIBadResponse(
                f"got bad json, trying again (status: {response.status_code}, response_text: {response.text})",
                status_code=response.status_code,
            )

    def refresh_access_token(self):
        if not self.refresh_token:
            logger.warning("no refresh token configured, skipping token refresh")
            return

        basic = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode()
        ).decode()
        try:
            res = self.connection.post(
                f"{AUTH_URL}/token",
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self.refresh_token,
                },
                headers={
                    "Authorization": f"Basic {basic}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                timeout=self.client_options.timeout,
            )
            creds = res.json() if res.ok else None
        except (RequestException, ValueError) as err:
            logger.warning(f"token refresh failed: {err!r}")
            return

        if not isinstance(creds, dict) or "access_token" not in creds:
            logger.warning(
                f"token refresh rejected (status: {res.status_code}, response: {res.text})"
            )
            return

        self.set_credentials(creds)
        logger.info("access token refreshed")
        if self.authentication_callback is not None:
            self.authentication_callback(creds)

    def build_url(self, args, fields_to_select=None):
        url = f"{self.domain_url}{API_PATH_PREFIX}/{self.entity_name}"
        if args and args[0] is not None:
            url += f"/{args[0]}"
        if isinstance(fields_to_select, (list, tuple)) and len(fields_to_select) > 0:
            url += ":({})".format(",".join(fields_to_select))
        return url

    def process_response(self, response, body):
        if response.ok:
            if isinstance(body, dict):
                return Envelope(body, success=True)
            return Envelope(success=True)
        return self.failed_response(response, body)

    def failed_response(self, response, body):
        failed = Envelope(body if isinstance(body, dict) else {})
        failed.update(success=False, not_authorized=False, failed=False)
        if response.status_code == 401:
            failed["not_authorized"] = True
        elif response.status_code == 420:
            failed["failed"] = True
        return failed
