"""Minimal Reddit API client for reading submissions and replying to them."""
import time
from typing import Any, Dict, List, Optional

import requests

from src import settings
from src.logging_conf import logger
from src.queue.models import QueueItem

MAX_RETRIES = 3


class RedditAPIError(Exception):
    """Raised when a Reddit API call needed for a decision fails."""


class RedditClient:
    """Talks to Reddit's OAuth API on behalf of the bot account."""

    def __init__(self):
        self.base_url = "https://oauth.reddit.com"
        self.token_url = "https://www.reddit.com/api/v1/access_token"
        self.username = settings.REDDIT_USERNAME
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": settings.REDDIT_USER_AGENT,
            "Accept": "application/json"
        })
        self._token_expires_at = 0.0

    def get_new_submissions(self, subreddit: str, limit: int = 25) -> List[QueueItem]:
        """Return the newest submissions of a subreddit, newest first."""
        response = self._request("GET", f"/r/{subreddit}/new", params={"limit": limit, "raw_json": 1})
        if response is None:
            raise RedditAPIError(f"Could not list new submissions of r/{subreddit}")

        return [
            QueueItem.create(child["data"])
            for child in response.get("data", {}).get("children", [])
            if child.get("kind") == "t3"
        ]

    def refresh_submission(self, item: QueueItem) -> None:
        """Re-fetch view and comment counts of a submission in place."""
        response = self._request("GET", "/api/info", params={"id": item.fullname, "raw_json": 1})
        children = (response or {}).get("data", {}).get("children", [])
        if not children:
            raise RedditAPIError(f"Could not refresh submission {item.id}")
        item.update_from_listing(children[0]["data"])

    def has_commented_on(self, item: QueueItem) -> bool:
        """
        Check whether the bot account already left a top-level comment.

        Only the first COMMENT_HISTORY_LIMIT top-level comments are read, so
        the bot should not run on subreddits with very busy threads.
        """
        response = self._request(
            "GET",
            f"/comments/{item.id}",
            params={"limit": settings.COMMENT_HISTORY_LIMIT, "depth": 1, "raw_json": 1},
        )
        if not isinstance(response, list) or len(response) < 2:
            raise RedditAPIError(f"Could not read comments of submission {item.id}")

        comments = response[1].get("data", {}).get("children", [])
        return any(
            c.get("kind") == "t1"
            and (c.get("data", {}).get("author") or "").lower() == (self.username or "").lower()
            for c in comments
        )

    def reply(self, item: QueueItem, text: str) -> bool:
        """Post a top-level comment. Returns False if Reddit rejected it."""
        response = self._request(
            "POST",
            "/api/comment",
            data={"thing_id": item.fullname, "text": text, "api_type": "json"},
        )
        if response is None:
            logger.error(f"Failed to reply to submission {item.id}")
            return False

        errors = response.get("json", {}).get("errors")
        if errors:
            logger.error(f"Reddit rejected reply to submission {item.id}: {errors}")
            return False

        logger.info(f"Replied to submission {item.id}")
        return True

    def _authorize(self) -> None:
        """Exchange the refresh token for a bearer token when the current one is stale."""
        if time.time() < self._token_expires_at:
            return

        response = requests.post(
            self.token_url,
            auth=(settings.REDDIT_CLIENT_ID, settings.REDDIT_CLIENT_SECRET),
            data={"grant_type": "refresh_token", "refresh_token": settings.REDDIT_REFRESH_TOKEN},
            headers={"User-Agent": settings.REDDIT_USER_AGENT},
            timeout=settings.REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        token = response.json()
        self.session.headers["Authorization"] = f"Bearer {token['access_token']}"
        # Renew a minute early
        self._token_expires_at = time.time() + int(token.get("expires_in", 3600)) - 60
        logger.debug("Obtained Reddit access token")

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        retry_count: int = 0,
    ) -> Optional[Any]:
        """Make API request with retry logic."""
        url = f"{self.base_url}{endpoint}"

        try:
            self._authorize()
            response = self.session.request(
                method=method, url=url, params=params, data=data, timeout=settings.REQUEST_TIMEOUT
            )

            if response.status_code == 429 and retry_count < MAX_RETRIES:
                retry_after = int(float(response.headers.get("Retry-After", 60)))
                logger.warning(f"Rate limited. Waiting {retry_after}s...")
                time.sleep(retry_after)
                return self._request(method, endpoint, params, data, retry_count + 1)

            if response.status_code == 401 and retry_count < 1:
                self._token_expires_at = 0.0
                return self._request(method, endpoint, params, data, retry_count + 1)

            if response.status_code >= 500 and retry_count < MAX_RETRIES:
                wait_time = 2 ** retry_count
                logger.warning(f"Server error {response.status_code}. Retrying in {wait_time}s...")
                time.sleep(wait_time)
                return self._request(method, endpoint, params, data, retry_count + 1)

            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            if retry_count < MAX_RETRIES and isinstance(e, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
                wait_time = 2 ** retry_count
                time.sleep(wait_time)
                return self._request(method, endpoint, params, data, retry_count + 1)
            logger.error(f"Reddit API request failed: {e}")
            return None
        except ValueError as e:
            logger.error(f"Reddit API returned invalid JSON for {endpoint}: {e}")
            return None
