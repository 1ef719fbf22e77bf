"""
Guardian notifier - WhatsApp alert link for a failed quiz
"""
import logging
from typing import Callable, Optional
from urllib.parse import quote

from nokhba.config import settings
from nokhba.utils.change_feed import change_feed

logger = logging.getLogger(__name__)

# (user_id, phone, url) -> None; must not be relied upon to report delivery
Launcher = Callable[[str, str, str], None]


def normalize_phone(phone: str, country_prefix: str = None) -> str:
    """
    Convert a local number to international form.

    A leading "0" gets the country prefix in front of it
    ("01222652380" -> "201222652380"); anything else passes unchanged.
    """
    country_prefix = settings.GUARDIAN_COUNTRY_PREFIX if country_prefix is None else country_prefix
    phone = phone.strip()
    if phone.startswith("0"):
        return country_prefix + phone
    return phone


def should_notify(passed: bool, phone: Optional[str]) -> bool:
    return not passed and bool(phone and phone.strip())


def build_message(student_name: str, lesson_title: str, score: int, total: int) -> str:
    return (
        f"تحذير من {settings.ACADEMY_NAME} 🚨\n"
        f"الطالب: {student_name}\n"
        f"رسب في امتحان \"{lesson_title}\"\n"
        f"الدرجة: {score}/{total}\n"
        f"يرجى المتابعة."
    )


def build_link(phone: str, message: str) -> str:
    return f"{settings.WHATSAPP_BASE_URL}/{phone}?text={quote(message, safe='')}"


def publish_alert(user_id: str, phone: str, url: str) -> None:
    """Hand the link to the student's client, which opens WhatsApp"""
    change_feed.publish(f"alerts:{user_id}", {"type": "guardian_alert", "phone": phone, "url": url})


class GuardianNotifier:
    """
    Builds and hands off the guardian alert.

    The decision is `should_notify`; the hand-off is fire-and-forget and
    never raises back into the grading flow.
    """

    def __init__(self, launcher: Launcher = publish_alert):
        self.launcher = launcher

    def notify(
        self,
        user_id: str,
        student_name: str,
        parent_phone: Optional[str],
        lesson_title: str,
        score: int,
        total: int,
        passed: bool
    ) -> Optional[str]:
        """
        Returns:
            The WhatsApp link handed off, or None when no alert applies
        """
        if not should_notify(passed, parent_phone):
            if not passed:
                logger.info(f"No guardian phone for user {user_id}, alert skipped")
            return None

        phone = normalize_phone(parent_phone)
        url = build_link(phone, build_message(student_name, lesson_title, score, total))

        try:
            self.launcher(user_id, phone, url)
            logger.info(f"Guardian alert handed off for user {user_id}")
        except Exception as e:
            logger.error(f"Guardian alert hand-off failed for user {user_id}: {str(e)}")

        return url


# Global instance
guardian_notifier = GuardianNotifier()
