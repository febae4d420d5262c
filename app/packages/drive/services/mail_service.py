"""邮件服务：通过 SMTP 发送账号激活与密码重置邮件。

发送失败只返回 ``False`` 并记录日志，由调用方决定是否影响主流程。
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from app.packages.drive.core.config import Settings, get_settings
from app.packages.drive.core.logger import logger
from app.packages.drive.models.user import User

SENDER_NAME = "DriveClone"

_ACTIVATION_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #4F46E5;">Welcome to DriveClone!</h1>
  <h2>Hi {first_name},</h2>
  <p>Thank you for registering with DriveClone. Please activate your account by clicking the link below:</p>
  <p><a href="{url}">Activate Account</a></p>
  <p>Or copy and paste this link in your browser:</p>
  <p><code style="word-break: break-all;">{url}</code></p>
  <p><strong>This link will expire in {hours} hours.</strong></p>
  <p>If you didn't create an account with DriveClone, please ignore this email.</p>
  <p>Best regards,<br>The DriveClone Team</p>
</div>
"""

_ACTIVATION_TEXT = (
    "Welcome to DriveClone!\n\nHi {first_name},\n\n"
    "Thank you for registering with DriveClone. Please activate your account by visiting:\n{url}\n\n"
    "This link will expire in {hours} hours.\n\n"
    "If you didn't create an account with DriveClone, please ignore this email.\n\n"
    "Best regards,\nThe DriveClone Team"
)

_RESET_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #DC2626;">Password Reset Request</h1>
  <h2>Hi {first_name},</h2>
  <p>You recently requested to reset your password for your DriveClone account. Click the link below to reset it:</p>
  <p><a href="{url}">Reset Password</a></p>
  <p>Or copy and paste this link in your browser:</p>
  <p><code style="word-break: break-all;">{url}</code></p>
  <p><strong>This password reset link will expire in {minutes} minutes.</strong></p>
  <p>If you didn't request a password reset, please ignore this email.</p>
  <p>Best regards,<br>The DriveClone Team</p>
</div>
"""

_RESET_TEXT = (
    "Password Reset Request\n\nHi {first_name},\n\n"
    "You recently requested to reset your password for your DriveClone account.\n"
    "Please use the following link to reset your password:\n\n{url}\n\n"
    "This password reset link will expire in {minutes} minutes.\n\n"
    "If you didn't request a password reset, please ignore this email.\n\n"
    "Best regards,\nThe DriveClone Team"
)


class Mailer:
    """SMTP 发信器；未配置 EMAIL_HOST 时不发送，直接返回 ``False``。"""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    @property
    def sender(self) -> str:
        address = self.settings.mail_from or self.settings.smtp_user or ""
        return formataddr((SENDER_NAME, address))

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        settings = self.settings
        if not settings.smtp_host:
            logger.warning("EMAIL_HOST is not configured, skipping mail to %s", to)
            return False

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as client:
                if settings.smtp_use_tls:
                    client.starttls()
                if settings.smtp_user and settings.smtp_password:
                    client.login(settings.smtp_user, settings.smtp_password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email sending to %s failed: %s", to, exc)
            return False

        logger.info("Email '%s' sent to %s", subject, to)
        return True

    def send_activation_email(self, user: User, token: str) -> bool:
        url = f"{self.settings.frontend_url.rstrip('/')}/activate/{token}"
        context = {"first_name": user.first_name, "url": url, "hours": self.settings.activation_token_expire_hours}
        return self.send(
            user.email,
            "Activate Your DriveClone Account",
            _ACTIVATION_TEXT.format(**context),
            _ACTIVATION_HTML.format(**context),
        )

    def send_password_reset_email(self, user: User, token: str) -> bool:
        url = f"{self.settings.frontend_url.rstrip('/')}/reset-password/{token}"
        context = {"first_name": user.first_name, "url": url, "minutes": self.settings.reset_token_expire_minutes}
        return self.send(
            user.email,
            "Password Reset Request - DriveClone",
            _RESET_TEXT.format(**context),
            _RESET_HTML.format(**context),
        )


def get_mailer() -> Mailer:
    """FastAPI 依赖：测试中可以替换为记录型的发信器。"""
    return Mailer()
