"""Templated notification emails sent through the SMTP relay."""
import logging
import os
import re
import smtplib
import time
from collections import deque
from email.message import EmailMessage
from email.utils import formataddr
from typing import Dict, Optional, Sequence

from flask import current_app
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

LOG = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates', 'email')
_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html']),
    trim_blocks=True,
    lstrip_blocks=True,
)
_HTML_BREAK_PATTERN = re.compile(r"</p>|</h\d>|<br\s*/?>|<hr\s*/?>", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<[^>]+>")
OUTBOX_LIMIT = 100


class EmailDeliveryError(RuntimeError):
    """Raised when a message could not be rendered or handed to the relay."""


def html_to_text(html_body: str) -> str:
    text = _HTML_BREAK_PATTERN.sub("\n", html_body)
    text = _TAG_PATTERN.sub("", text)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def render(template_name: str, **context) -> str:
    try:
        return _JINJA_ENV.get_template(template_name).render(**context)
    except TemplateError as e:
        raise EmailDeliveryError(f"Could not render {template_name}: {e}") from e


class Mailer:
    def __init__(self, config):
        self.server = config.get('MAIL_SERVER')
        self.port = config.get('MAIL_PORT', 587)
        self.use_tls = config.get('MAIL_USE_TLS', True)
        self.use_ssl = config.get('MAIL_USE_SSL', False)
        self.username = config.get('MAIL_USERNAME')
        self.password = config.get('MAIL_PASSWORD')
        self.default_sender = config.get('MAIL_DEFAULT_SENDER')
        self.timeout = config.get('MAIL_TIMEOUT', 30)
        self.retries = max(1, config.get('MAIL_RETRIES', 1))
        self.backoff = config.get('RETRY_BACKOFF', 1.0)
        self.suppress = config.get('MAIL_SUPPRESS_SEND', False)
        # Last messages built while sending is suppressed, newest last
        self.outbox = deque(maxlen=OUTBOX_LIMIT)

    def build_message(self, subject: str, recipients: Sequence[str], html_body: str,
                      sender_name: Optional[str] = None, bcc: bool = False) -> EmailMessage:
        if not recipients:
            raise EmailDeliveryError("No recipients")
        if not self.default_sender:
            raise EmailDeliveryError("MAIL_DEFAULT_SENDER is not configured")
        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = formataddr((sender_name, self.default_sender)) if sender_name else self.default_sender
        if bcc:
            # Newsletter style: recipients must not see each other
            message['To'] = self.default_sender
            message['Bcc'] = ', '.join(recipients)
        else:
            message['To'] = ', '.join(recipients)
        message.set_content(html_to_text(html_body))
        message.add_alternative(html_body, subtype='html')
        return message

    def _connect(self):
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.server, self.port, timeout=self.timeout)
        connection = smtplib.SMTP(self.server, self.port, timeout=self.timeout)
        if self.use_tls:
            connection.starttls()
        return connection

    def send(self, message: EmailMessage) -> None:
        if self.suppress:
            LOG.info("Mail sending suppressed: %s", message['Subject'])
            self.outbox.append(message)
            return
        if not self.server:
            raise EmailDeliveryError("MAIL_SERVER is not configured")
        last_error = None
        for attempt in range(1, self.retries + 1):
            try:
                with self._connect() as connection:
                    if self.username:
                        connection.login(self.username, self.password or '')
                    connection.send_message(message)
                return
            except (smtplib.SMTPException, OSError) as e:
                last_error = e
                LOG.warning("SMTP delivery failed (attempt %s/%s): %s", attempt, self.retries, e)
                if attempt < self.retries:
                    time.sleep(self.backoff * (2 ** (attempt - 1)))
        raise EmailDeliveryError(f"SMTP delivery failed after {self.retries} attempts: {last_error}")


def get_mailer() -> Mailer:
    mailer = current_app.extensions.get('mailer')
    if mailer is None:
        mailer = Mailer(current_app.config)
        current_app.extensions['mailer'] = mailer
    return mailer


def _admin_email() -> str:
    admin_email = current_app.config.get('ADMIN_EMAIL')
    if not admin_email:
        raise EmailDeliveryError("ADMIN_EMAIL is not configured")
    return admin_email


def send_book_request_email(book_request: Dict) -> None:
    """Tell the site admin that a visitor asked for a book."""
    mailer = get_mailer()
    html_body = render('book_request.html', request=book_request)
    message = mailer.build_message(
        "New Book Request Received", [_admin_email()], html_body, sender_name="Bookify Request",
    )
    mailer.send(message)


def send_new_book_notification(book: Dict, recipients: Optional[Sequence[str]] = None) -> None:
    """Announce a newly added book; falls back to the admin when nobody subscribed."""
    mailer = get_mailer()
    recipients = list(recipients or []) or [_admin_email()]
    html_body = render('new_book.html', book=book)
    message = mailer.build_message(
        "New Book Added on Bookify", recipients, html_body, sender_name="Bookify Updates", bcc=True,
    )
    mailer.send(message)
