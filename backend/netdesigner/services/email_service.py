"""
Email Service for NetDesigner
=============================
Sends transactional email over SMTP:
- Email verification on signup
- Password reset links
- Team invitations

Unconfigured deployments log and skip sending.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from datetime import datetime

from netdesigner.core.config import settings
from netdesigner.core.logging_config import logger


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] Email service not configured, skipping '{subject}' to {to_email}")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent email to {to_email}: {subject}")
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _layout(self, heading: str, body: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #1f2937; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #0f4c81; color: white; padding: 24px; text-align: center; border-radius: 8px 8px 0 0; }}
                .content {{ background: #f8fafc; padding: 28px; border-radius: 0 0 8px 8px; }}
                .button {{ display: inline-block; background: #0f4c81; color: white; padding: 12px 26px; text-decoration: none; border-radius: 6px; font-weight: 600; margin: 18px 0; }}
                .footer {{ text-align: center; margin-top: 24px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header"><h1>{heading}</h1></div>
                <div class="content">{body}</div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} NetDesigner. All rights reserved.</p>
                </div>
            </div>
        </body>
        </html>
        """

    async def send_verification_email(self, to_email: str, user_name: str, verification_token: str) -> bool:
        """Send email verification link to a new user"""
        link = f"{self.frontend_url}/verify-email?token={verification_token}"
        html_content = self._layout("Welcome to NetDesigner", f"""
            <p>Hi {user_name or 'there'},</p>
            <p>Please verify your email address to start designing networks.</p>
            <p style="text-align: center;"><a href="{link}" class="button">Verify Email Address</a></p>
            <p style="font-size: 14px; color: #6b7280;">This link expires in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.</p>
        """)
        text_content = f"Hi {user_name or 'there'},\n\nVerify your email address: {link}\n\n- NetDesigner"
        return await self.send_email(to_email, "Verify your email - NetDesigner", html_content, text_content)

    async def send_password_reset_email(self, to_email: str, user_name: str, reset_token: str) -> bool:
        """Send password reset link"""
        link = f"{self.frontend_url}/reset-password?token={reset_token}"
        html_content = self._layout("Password Reset Request", f"""
            <p>Hi {user_name or 'there'},</p>
            <p>We received a request to reset your password.</p>
            <p style="text-align: center;"><a href="{link}" class="button">Reset Password</a></p>
            <p style="font-size: 14px; color: #6b7280;">This link expires in 1 hour. If you didn't request a reset, ignore this email.</p>
        """)
        text_content = f"Hi {user_name or 'there'},\n\nReset your password: {link}\n\nThis link expires in 1 hour."
        return await self.send_email(to_email, "Reset your password - NetDesigner", html_content, text_content)

    async def send_invitation_email(
        self,
        to_email: str,
        inviter_name: str,
        team_name: str,
        role: str,
        token: str
    ) -> bool:
        """Send a team invitation link"""
        link = f"{self.frontend_url}/accept-invitation?token={token}"
        html_content = self._layout("You're invited", f"""
            <p>{inviter_name or 'A teammate'} invited you to join <strong>{team_name}</strong> as {role}.</p>
            <p style="text-align: center;"><a href="{link}" class="button">Accept Invitation</a></p>
            <p style="font-size: 14px; color: #6b7280;">This invitation expires in 7 days.</p>
        """)
        text_content = f"{inviter_name or 'A teammate'} invited you to join {team_name} as {role}.\n\nAccept: {link}"
        return await self.send_email(to_email, f"Invitation to join {team_name} - NetDesigner", html_content, text_content)


# Singleton instance
email_service = EmailService()
