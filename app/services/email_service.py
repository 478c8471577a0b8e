"""
AWS SES Email Service for notification e-mails.

Handles e-mail formatting and AWS SES integration. Called only from the
Celery worker, never from the request path.
"""

import html
import logging
from typing import Optional
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending emails via AWS SES.
    """

    def __init__(self):
        session_kwargs = {
            'region_name': settings.AWS_REGION,
        }

        # Add credentials if provided (otherwise uses IAM role)
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            session_kwargs['aws_access_key_id'] = settings.AWS_ACCESS_KEY_ID
            session_kwargs['aws_secret_access_key'] = settings.AWS_SECRET_ACCESS_KEY

        self.ses_client = boto3.client('ses', **session_kwargs)

    def send_notification_email(
        self,
        to_email: str,
        title: str,
        message: str,
        user_name: Optional[str] = None
    ) -> bool:
        """
        Send an in-app notification as an e-mail.

        Args:
            to_email: Recipient email address
            title: Notification title (used as subject)
            message: Notification body
            user_name: Optional recipient name for the greeting

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        subject = title or "Update on your application"

        try:
            response = self.ses_client.send_email(
                Source=f"{settings.AWS_SES_FROM_NAME} <{settings.AWS_SES_FROM_EMAIL}>",
                Destination={'ToAddresses': [to_email]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {
                        'Html': {'Data': self._build_html(title, message, user_name), 'Charset': 'UTF-8'},
                        'Text': {'Data': self._build_text(message, user_name), 'Charset': 'UTF-8'}
                    }
                }
            )

            logger.info(f"Notification email sent to {to_email} (MessageId: {response.get('MessageId')})")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError: {error_code} - {error_message}")
            return False

        except BotoCoreError as e:
            logger.error(f"AWS BotoCoreError: {str(e)}")
            return False

    def _build_html(self, title: str, message: str, user_name: Optional[str] = None) -> str:
        greeting = f"Hi {html.escape(user_name)}," if user_name else "Hi there,"
        return f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>{html.escape(title)}</title></head>
<body style="margin: 0; padding: 24px; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px; padding: 32px;">
        <h2 style="margin-top: 0; color: #1f2937;">{html.escape(title)}</h2>
        <p style="color: #374151;">{greeting}</p>
        <p style="color: #374151; line-height: 1.5;">{html.escape(message)}</p>
        <p style="color: #9ca3af; font-size: 12px;">You are receiving this because of activity on your account.</p>
    </div>
</body>
</html>
"""

    def _build_text(self, message: str, user_name: Optional[str] = None) -> str:
        greeting = f"Hi {user_name}," if user_name else "Hi there,"
        return f"{greeting}\n\n{message}\n"


# Lazily constructed so importing the module never needs AWS configuration
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
