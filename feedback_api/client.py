"""
Feedback client - talks to the feedback API over HTTP.

Stands in for the web pages: a one-shot form, a guided prompt that asks one question at
a time, a card listing and a carousel that cycles through fetched feedback locally.
The client does no validation of its own; the server's error message is passed through.
"""

import logging
from typing import Callable, Optional

import requests

from feedback_api.services.carousel import rotate, visible_window

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"

GUIDED_QUESTIONS = [
    ("name", "What's your name?"),
    ("feedback", "What's your feedback?"),
]


class FeedbackClientError(Exception):
    """Request failed; `message` is the server's error text when it sent one."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class FeedbackClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise FeedbackClientError(f"Could not reach {url}: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text or f"HTTP {response.status_code}"
            raise FeedbackClientError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise FeedbackClientError(
                f"Unexpected non-JSON response from {url}", status_code=response.status_code
            ) from e

    def submit(self, name: str, feedback: str) -> dict:
        """POST /feedback and return the stored record."""
        return self._request("POST", "/feedback", json={"name": name, "feedback": feedback})

    def list(self) -> list:
        """GET /feedback, newest first."""
        return self._request("GET", "/feedback")


def submit_form(client: FeedbackClient, name: str, feedback: str, out: Callable = print) -> bool:
    """Submit once and tell the user whether it worked."""
    try:
        client.submit(name, feedback)
    except FeedbackClientError as e:
        logger.warning(f"Feedback submission failed: {e.message}")
        out("Error submitting feedback")
        return False
    out("Feedback submitted successfully!")
    return True


def guided_prompt(client: FeedbackClient, ask: Callable = input, out: Callable = print) -> bool:
    """
    Ask each question in turn, then submit once.

    A blank answer repeats the question. Submission happens exactly once, after the last
    question is answered, so a completed session can never produce two records.
    """
    answers = {}
    for field, question in GUIDED_QUESTIONS:
        answer = ""
        while not answer.strip():
            answer = ask(f"{question} ")
        answers[field] = answer

    return submit_form(client, answers["name"], answers["feedback"], out=out)


def fetch_feedback(client: FeedbackClient, out: Callable = print) -> list:
    """Load feedback once; an error leaves the view empty."""
    try:
        return client.list()
    except FeedbackClientError as e:
        logger.error(f"Error fetching feedback: {e.message}")
        out(f"Error fetching feedback: {e.message}")
        return []


def render_card(record: dict) -> str:
    return f"{record['name']}\n  {record['feedback']}"


def show_list(client: FeedbackClient, out: Callable = print) -> int:
    """Print every record as a card. Returns how many were shown."""
    feedbacks = fetch_feedback(client, out=out)
    if not feedbacks:
        out("No feedback yet.")
    for record in feedbacks:
        out(render_card(record))
        out("-" * 40)
    return len(feedbacks)


def run_carousel(
    client: FeedbackClient,
    ask: Callable = input,
    out: Callable = print,
    size: int = 3,
) -> None:
    """
    Cycle through feedback: 'n' next, 'p' previous, 'q' quit.

    Feedback is fetched once; navigation only rotates the local copy.
    """
    feedbacks = fetch_feedback(client, out=out)
    if not feedbacks:
        out("No feedback yet.")
        return

    position = 0
    while True:
        for record in visible_window(rotate(feedbacks, position), 0, size):
            out(render_card(record))
        out("=" * 40)

        try:
            choice = ask("[n]ext, [p]revious, [q]uit: ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            break

        if choice in ("q", "quit", "exit"):
            break
        if choice == "n":
            position += 1
        elif choice == "p":
            position -= 1
        else:
            out("Invalid choice. Use n/p/q")
