"""
Transactional email templates and delivery.
"""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail
from django.utils.html import escape

logger = logging.getLogger(__name__)

SMTP_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'


def verification_submitted(name):
    return {
        'subject': 'Verification received',
        'html': f'<p>Hi {escape(name)},</p><p>We received your verification request and will review it shortly.</p>',
        'text': f'Hi {name}, we received your verification request.',
    }


def verification_decision(name, status):
    status = status.lower()
    return {
        'subject': f'Verification {status}',
        'html': f'<p>Hi {escape(name)},</p><p>Your verification request was {status}.</p>',
        'text': f'Your verification request was {status}.',
    }


def application_received(gig_title):
    return {
        'subject': f'Application received for {gig_title}',
        'html': f"<p>Thanks for applying to {escape(gig_title)}. We'll let you know once the promoter responds.</p>",
        'text': f'Application received for {gig_title}.',
    }


def deliver(to, template):
    """
    Send a rendered template to one recipient.

    Delivery is skipped (with a warning) when the SMTP backend is selected but
    no host is configured. SMTP failures are logged and do not propagate, so a
    notification problem never undoes the state change that triggered it.

    Returns:
        bool: True if the message was handed to the mail backend
    """
    if not to:
        return False

    if settings.EMAIL_BACKEND == SMTP_BACKEND and not settings.EMAIL_HOST:
        logger.warning(f"SMTP not configured; skipping email '{template['subject']}' to {to}")
        return False

    try:
        send_mail(
            template['subject'],
            template['text'],
            settings.DEFAULT_FROM_EMAIL,
            [to],
            html_message=template['html'],
        )
    except (smtplib.SMTPException, OSError):
        logger.exception(f"Failed to send email '{template['subject']}' to {to}")
        return False

    logger.info(f"Sent email '{template['subject']}' to {to}")
    return True
