"""
Email ownership checks for registration.

``/verify-email`` mails a six digit code, ``/verify-otp`` trades a correct
code for a verified mark, and ``/register`` consumes that mark. Codes and
marks live in process memory and expire; a restart forgets them.
"""
import logging
import secrets
import threading
from datetime import timedelta

from flask import current_app
from flask_mail import Message

from errors import BadRequest
from extensions import mail
from storage import utcnow

logger = logging.getLogger(__name__)


def normalize(email):
    return email.strip().lower()


class EmailVerifier:
    def __init__(self, otp_ttl=600, verified_ttl=1800):
        self.otp_ttl = timedelta(seconds=otp_ttl)
        self.verified_ttl = timedelta(seconds=verified_ttl)
        self._codes = {}
        self._verified = {}
        self._lock = threading.Lock()

    def issue(self, email):
        """Store a fresh code for ``email``, replacing any earlier one."""
        code = f"{secrets.randbelow(900000) + 100000}"
        with self._lock:
            self._codes[normalize(email)] = (code, utcnow())
        return code

    def check(self, email, code):
        key = normalize(email)
        with self._lock:
            stored = self._codes.get(key)
            if stored is None:
                raise BadRequest("No OTP found for this email")
            expected, issued_at = stored
            if utcnow() - issued_at > self.otp_ttl:
                del self._codes[key]
                raise BadRequest("OTP expired")
            if not secrets.compare_digest(expected, code):
                raise BadRequest("Invalid OTP")
            del self._codes[key]
            self._verified[key] = utcnow()

    def consume(self, email):
        """Use up the verified mark; False when there is none left."""
        key = normalize(email)
        with self._lock:
            fresh = self._fresh_mark(key)
            self._verified.pop(key, None)
            return fresh

    def _fresh_mark(self, key):
        marked_at = self._verified.get(key)
        if marked_at is None:
            return False
        if utcnow() - marked_at > self.verified_ttl:
            del self._verified[key]
            return False
        return True


def get_verifier():
    return current_app.extensions["email_verifier"]


def send_otp(email, code):
    minutes = int(get_verifier().otp_ttl.total_seconds() // 60)
    msg = Message(
        subject="Your Green Path verification code",
        recipients=[email],
        body=f"""Hello,

Your Green Path verification code is {code}.
It expires in {minutes} minutes.

If you did not request this code you can ignore this email.
""",
    )
    mail.send(msg)
    logger.info("Sent verification code to %s", email)
