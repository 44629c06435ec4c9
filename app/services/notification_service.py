"""
Notifications - password reset messages.
The request path only builds the link and enqueues; Celery delivers the mail.
"""

from functools import lru_cache
from html import escape
from urllib.parse import urlencode

from app.config import get_settings


def reset_link(frontend_url: str, reset_token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset?{urlencode({'resetToken': reset_token})}"


def render_email(text: str) -> str:
    """Wrap a message in the plain HTML body used for all outgoing mail."""
    return f"""
    <div className="email" style="border: 1px solid black; padding: 20px; font-family: sans-serif; line-height: 2; font-size: 20px;">
      <h2>Hello There!</h2>
      <p>{text}</p>
    </div>
    """


def render_reset_email(link: str) -> str:
    return render_email(
        f'Your Password Reset Token is here!<br><br><a href="{escape(link)}">Click Here to Reset</a>'
    )


class ResetNotifier:
    """Sends the reset link for a freshly issued reset token."""

    def __init__(self, frontend_url: str):
        self.frontend_url = frontend_url

    def send_reset(self, email: str, reset_token: str) -> None:
        from app.queue.tasks import send_password_reset_email

        send_password_reset_email.delay(email, reset_link(self.frontend_url, reset_token))


@lru_cache
def get_reset_notifier() -> ResetNotifier:
    """FastAPI dependency; overridden in tests."""
    return ResetNotifier(get_settings().frontend_url)
