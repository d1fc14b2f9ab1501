# rentals/mailer.py
from typing import Optional, Sequence, Union

from flask import current_app
from flask_mail import Message

from rentals.extensions import mail


def send_email(
    subject: str,
    recipients: Union[str, Sequence[str]],
    body: str,
    html: Optional[str] = None,
) -> bool:
    """Send through Flask-Mail. Failures are logged and reported as False."""
    recips = [recipients] if isinstance(recipients, str) else [r for r in recipients or [] if r]
    if not recips:
        return False
    try:
        msg = Message(subject=subject, recipients=recips)
        msg.sender = current_app.config.get("MAIL_DEFAULT_SENDER")
        msg.body = body
        if html:
            msg.html = html
        mail.send(msg)
        current_app.logger.info("send_email: sent '%s' to %s recipient(s)", subject, len(recips))
        return True
    except Exception as e:
        current_app.logger.warning("send_email failed for '%s': %s", subject, e)
        return False
